"""
MCP tool implementations.

Tools are organized by domain:
- chords - Chord parsing, transposition and analysis
- songs - Song library lifecycle, favorites, transposition
- repertoires - Set lists and their song order
"""

from chuk_mcp_chordgrid.tools.chords import register_chord_tools
from chuk_mcp_chordgrid.tools.repertoires import register_repertoire_tools
from chuk_mcp_chordgrid.tools.songs import register_song_tools

__all__ = [
    "register_chord_tools",
    "register_repertoire_tools",
    "register_song_tools",
]
