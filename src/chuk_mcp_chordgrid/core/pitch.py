"""
Pitch primitives - PitchClass and note spelling.

PitchClass represents the 12 chromatic pitches (octave-independent).
Spelling is a display concern: the same pitch class can be written
C#, C♯, Db or D♭. Notes keep the accidental style they were written in
when they are moved, so transposing by an octave gives back the same text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

SHARP = "♯"
FLAT = "♭"

# Display name mappings (module level to avoid IntEnum member issues)
_SHARP_NAMES: list[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]
_FLAT_NAMES: list[str] = [
    "C",
    "Db",
    "D",
    "Eb",
    "E",
    "F",
    "Gb",
    "G",
    "Ab",
    "A",
    "Bb",
    "B",
]

_NATURALS: dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_ACCIDENTALS: dict[str, int] = {"#": 1, SHARP: 1, "b": -1, FLAT: -1}

NOTE_PATTERN = r"[A-G][#♯b♭]?"
_NOTE_RE = re.compile(rf"^{NOTE_PATTERN}$")


class PitchClass(IntEnum):
    """
    The 12 chromatic pitch classes (0-11).

    Enharmonic equivalents share the same value (C# == Db == 1).
    Internally, we use sharp names (Cs, Ds, etc.).
    """

    C = 0
    Cs = 1  # C# / Db
    D = 2
    Ds = 3  # D# / Eb
    E = 4
    F = 5
    Fs = 6  # F# / Gb
    G = 7
    Gs = 8  # G# / Ab
    A = 9
    As = 10  # A# / Bb
    B = 11

    def transpose(self, semitones: int) -> PitchClass:
        """Transpose by a number of semitones (positive or negative)."""
        return PitchClass((self.value + semitones) % 12)

    def spell(self, prefer_flats: bool = False, unicode: bool = False) -> str:
        """
        Get human-readable name.

        Args:
            prefer_flats: Use flat names (Db) instead of sharp names (C#)
            unicode: Use the ♯/♭ glyphs instead of '#'/'b'
        """
        name = (_FLAT_NAMES if prefer_flats else _SHARP_NAMES)[self.value]
        if unicode:
            name = name[0] + name[1:].replace("#", SHARP).replace("b", FLAT)
        return name

    @classmethod
    def parse(cls, name: str) -> PitchClass:
        """Parse a pitch class from a string like 'C', 'C#', 'Db', 'F♯'."""
        index = note_index(name)
        if index is None:
            raise ValueError(f"Unknown pitch class: {name}")
        return cls(index)


@dataclass(frozen=True)
class NoteSpelling:
    """The accidental style a note was written in."""

    prefer_flats: bool = False
    unicode: bool = False

    @classmethod
    def of(cls, note: str) -> NoteSpelling:
        """Detect the spelling style of a written note."""
        accidental = note[1:2]
        return cls(
            prefer_flats=accidental in ("b", FLAT),
            unicode=accidental in (SHARP, FLAT),
        )


def note_index(note: str) -> int | None:
    """
    Get the pitch-class index (0-11) of a written note.

    Returns None for anything that is not a note letter with at most
    one accidental.
    """
    note = note.strip()
    if not _NOTE_RE.match(note):
        return None
    offset = _ACCIDENTALS.get(note[1:2], 0)
    return (_NATURALS[note[0]] + offset) % 12


def transpose_note(note: str, semitones: int) -> str:
    """
    Move a written note by a number of semitones.

    Python's % is a floor modulo, so negative counts wrap correctly.
    Unknown note names, and any note moved by whole octaves, are
    returned unchanged (Cb, Fb, E# and B# have no table spelling).
    """
    index = note_index(note)
    if index is None or semitones % 12 == 0:
        return note
    spelling = NoteSpelling.of(note.strip())
    return PitchClass((index + semitones) % 12).spell(spelling.prefer_flats, spelling.unicode)


def with_unicode_accidentals(note: str) -> str:
    """Render '#' and 'b' accidentals of a note with musical glyphs."""
    if not note:
        return note
    return note[0] + note[1:].replace("#", SHARP).replace("b", FLAT)
