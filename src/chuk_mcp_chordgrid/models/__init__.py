"""
Pydantic models for the chord grid system.

This module provides:
- Entity: Identity shared by stored aggregates
- Song: Complete chord grid aggregate
- Section: Labelled group of measures
- Measure: One bar of chord slots
- SongStructure: Form summary (AABA, ...)
- Repertoire: Ordered set list of songs
"""

from chuk_mcp_chordgrid.models.base import Entity
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.models.song import (
    Measure,
    Section,
    Song,
    beats_per_measure,
    max_chords_for_time_signature,
)
from chuk_mcp_chordgrid.models.structure import SongStructure

__all__ = [
    "Entity",
    "Measure",
    "Repertoire",
    "Section",
    "Song",
    "SongStructure",
    "beats_per_measure",
    "max_chords_for_time_signature",
]
