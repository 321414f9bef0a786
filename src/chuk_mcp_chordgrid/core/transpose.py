"""
Transposer - semitone arithmetic over chord text.

Only pitches move: root and slash bass go through the 12-entry pitch
table, while quality and extension are copied unchanged.
"""

from __future__ import annotations

from chuk_mcp_chordgrid.constants import EXTREME_TRANSPOSITION, MAX_TRANSPOSITION

from .chord import parse_chord
from .pitch import transpose_note

_INTERVAL_NAMES: dict[int, str] = {
    1: "1 Semitone",
    2: "1 Whole Step",
    3: "Minor 3rd",
    4: "Major 3rd",
    5: "Perfect 4th",
    6: "Tritone",
    7: "Perfect 5th",
    8: "Minor 6th",
    9: "Major 6th",
    10: "Minor 7th",
    11: "Major 7th",
    12: "Octave",
}


def transpose_chord(text: str, semitones: int) -> str:
    """
    Transpose a chord by a number of semitones.

    Invalid chord text (including Roman numerals and empty slots) is
    returned unchanged.

    Args:
        text: Chord text, e.g. 'F#m7/C#'
        semitones: Semitones to move (negative moves down)

    Returns:
        The transposed chord text
    """
    chord = parse_chord(text)
    if not chord.is_valid:
        return text

    root = transpose_note(chord.root, semitones)
    result = f"{root}{chord.quality_token}{chord.extension}"
    if chord.bass:
        result += f"/{transpose_note(chord.bass, semitones)}"
    return result


def transpose_chords(chords: list[str], semitones: int) -> list[str]:
    """Transpose a list of chord slots, keeping blank slots blank."""
    return [transpose_chord(chord, semitones) if chord.strip() else chord for chord in chords]


def transpose_key(key: str, semitones: int) -> str:
    """
    Transpose a key name such as 'G', 'F#m' or 'B♭'.

    Keys share the chord grammar (root plus optional minor quality).
    """
    if not key:
        return key
    return transpose_chord(key, semitones)


def describe_transposition(semitones: int) -> str:
    """Human-readable description such as 'Up 1 Whole Step' or 'Down Perfect 4th'."""
    if semitones == 0:
        return "Original Key"
    direction = "Up" if semitones > 0 else "Down"
    distance = abs(semitones)
    name = _INTERVAL_NAMES.get(distance, f"{distance} Semitones")
    return f"{direction} {name}"


def validate_transposition(semitones: int) -> list[str]:
    """
    Check a transposition amount.

    Returns:
        Human-readable problems; empty if the amount is fine
    """
    errors = []
    if abs(semitones) > MAX_TRANSPOSITION:
        errors.append(
            f"Transposition range must be between -{MAX_TRANSPOSITION} "
            f"and +{MAX_TRANSPOSITION} semitones"
        )
    if abs(semitones) > EXTREME_TRANSPOSITION:
        errors.append("Extreme transposition may result in difficult-to-play chords")
    return errors
