"""
Constants and enums for the chord grid system.

No magic strings - use enums and Literal types for constrained values.
"""

from enum import Enum
from typing import Literal


class SectionType(str, Enum):
    """
    Structural role of a section within a song.

    Values are the display names used on chord charts.
    """

    INTRO = "Intro"
    VERSE = "Verse"
    CHORUS = "Chorus"
    BRIDGE = "Bridge"
    SOLO = "Solo"
    INTERLUDE = "Interlude"
    OUTRO = "Outro"
    PRE_CHORUS = "Pre-Chorus"
    POST_CHORUS = "Post-Chorus"
    BREAK = "Break"
    INSTRUMENTAL = "Instrumental"
    CODA = "Coda"

    @classmethod
    def parse(cls, value: str) -> "SectionType":
        """Parse a section type, tolerating case and '_'/'-'/' ' differences."""
        wanted = value.strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(f"Unknown section type: {value}")


class NotationType(str, Enum):
    """How chords in a song are written."""

    CHORDS = "chords"  # Letter chords: C, Am7, F#/A#
    ROMAN_NUMERALS = "roman_numerals"  # Key-relative: I, V, vi, IV


class SongOrigin(str, Enum):
    """Where a song entity came from."""

    MANUAL = "manual"  # Entered by hand
    EXTRACTED = "extracted"  # Produced by the external chord extraction service


# Field limits
MAX_SONG_TITLE_LENGTH = 100
MAX_ARTIST_NAME_LENGTH = 100
MAX_SECTION_LABEL_LENGTH = 50
MAX_CHORD_LENGTH = 20
MAX_REPERTOIRE_NAME_LENGTH = 100
MIN_TEMPO = 20
MAX_TEMPO = 300

# Defaults for new songs
DEFAULT_KEY = "C"
DEFAULT_TIME_SIGNATURE = "4/4"
DEFAULT_TEMPO = 120

# Chords scoring above this are flagged as possibly erroneous
MAX_REASONABLE_COMPLEXITY = 5

# Transposition range accepted by validate_transposition
MAX_TRANSPOSITION = 12
EXTREME_TRANSPOSITION = 7

# Measure-level markers
SpecialSymbol = Literal["%", "D.C.", "D.S.", "Fine", "Coda", "To Coda", "1.", "2.", "3.", "4."]
SPECIAL_SYMBOLS: frozenset[str] = frozenset(
    {"%", "D.C.", "D.S.", "Fine", "Coda", "To Coda", "1.", "2.", "3.", "4."}
)

COMMON_TIME_SIGNATURES: tuple[str, ...] = (
    "4/4",
    "3/4",
    "2/4",
    "6/8",
    "12/8",
    "2/2",
    "3/2",
    "5/4",
    "7/4",
)

# Chord slots a measure can hold, by time signature
MAX_CHORDS_PER_MEASURE: dict[str, int] = {
    "4/4": 4,
    "2/2": 4,
    "2/4": 4,
    "3/4": 3,
    "3/2": 3,
    "6/8": 6,
    "12/8": 12,
    "5/4": 5,
    "7/4": 7,
}

# Structure pattern letters to section names
PATTERN_LETTER_NAMES: dict[str, str] = {
    "A": "Verse",
    "B": "Chorus",
    "C": "Bridge",
    "D": "Solo",
    "E": "Intro",
    "F": "Outro",
    "G": "Interlude",
}

COMMON_STRUCTURE_PATTERNS: frozenset[str] = frozenset({"AABA", "ABAB", "ABAC", "AABC", "ABCB"})


class ErrorMessages:
    """Standardized error messages."""

    INVALID_ENTITY = "Invalid {entity} data: {details}"
    NOT_FOUND = "{entity} {entity_id} not found"
    NOT_PERSISTED = "{entity} {entity_id} has not been saved yet"
    NEVER_SAVED = "{entity} has not been saved yet"
    ADD_FAILED = "Failed to add {entity}: {reason}"
    UPDATE_FAILED = "Failed to update {entity}: {reason}"
    DELETE_FAILED = "Failed to delete {entity}: {reason}"
    LOAD_FAILED = "Failed to load {entity}s: {reason}"
    GET_FAILED = "Failed to get {entity}: {reason}"
    NO_ROWS = "no rows affected"
    NO_ID = "store did not assign an id"
    NO_SONGS_SELECTED = "No songs selected"


class SuccessMessages:
    """Standardized success messages."""

    SONG_CREATED = "Created song '{title}'."
    SONG_DELETED = "Deleted song {song_id}."
    REPERTOIRE_CREATED = "Created repertoire '{name}'."
    REPERTOIRE_DELETED = "Deleted repertoire {repertoire_id}."
