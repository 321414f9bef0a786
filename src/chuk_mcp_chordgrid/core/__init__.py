"""
Core chord notation engine.

Pure functions with no state:
- PitchClass / note spelling: the 12-entry pitch table
- parse_chord: chord grammar (root, quality, extension, bass)
- transpose_chord / transpose_key: semitone arithmetic
- Analyzer: validation, enharmonic comparison, complexity, substitutions
"""

from chuk_mcp_chordgrid.core.analysis import (
    SUBSTITUTION_RULES,
    SubstitutionRule,
    are_enharmonic,
    get_complexity,
    get_substitutions,
    is_valid_chord,
    validate_progression,
)
from chuk_mcp_chordgrid.core.chord import (
    ParsedChord,
    get_display_name,
    normalize_quality,
    parse_chord,
    parse_chord_input,
)
from chuk_mcp_chordgrid.core.pitch import (
    FLAT,
    SHARP,
    NoteSpelling,
    PitchClass,
    note_index,
    transpose_note,
)
from chuk_mcp_chordgrid.core.transpose import (
    describe_transposition,
    transpose_chord,
    transpose_chords,
    transpose_key,
    validate_transposition,
)

__all__ = [
    # Pitch
    "FLAT",
    "SHARP",
    "NoteSpelling",
    "PitchClass",
    "note_index",
    "transpose_note",
    # Grammar
    "ParsedChord",
    "get_display_name",
    "normalize_quality",
    "parse_chord",
    "parse_chord_input",
    # Transposer
    "describe_transposition",
    "transpose_chord",
    "transpose_chords",
    "transpose_key",
    "validate_transposition",
    # Analyzer
    "SUBSTITUTION_RULES",
    "SubstitutionRule",
    "are_enharmonic",
    "get_complexity",
    "get_substitutions",
    "is_valid_chord",
    "validate_progression",
]
