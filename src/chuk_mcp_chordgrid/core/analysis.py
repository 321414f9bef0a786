"""
Chord analyzer - validation, enharmonic comparison, complexity and substitutions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from chuk_mcp_chordgrid.constants import MAX_REASONABLE_COMPLEXITY

from .chord import parse_chord
from .pitch import NOTE_PATTERN

_ROOT_PREFIX = re.compile(rf"^{NOTE_PATTERN}")


def is_valid_chord(text: str) -> bool:
    """
    Fast-path check used while typing.

    The empty string is valid ("no chord"); anything else only needs to
    start with a note letter and optional accidental.
    """
    if text == "":
        return True
    return _ROOT_PREFIX.match(text) is not None


def are_enharmonic(first: str, second: str) -> bool:
    """
    Check whether two chords are the same chord spelled differently.

    Roots are compared by pitch class; quality, extension and bass must
    match exactly. Both chords must parse.
    """
    a = parse_chord(first)
    b = parse_chord(second)
    if not (a.is_valid and b.is_valid):
        return False
    return (
        a.quality == b.quality
        and a.extension == b.extension
        and a.bass == b.bass
        and a.root_index == b.root_index
    )


def get_complexity(text: str) -> int:
    """
    Score how much harmonic information a chord carries.

    +1 for any valid chord, +1 for a quality (+1 more for dim/aug),
    +1 for an extension (+1 more above 7, +1 more above 9),
    +1 for a slash bass. Invalid chords score 0.
    """
    chord = parse_chord(text)
    if not chord.is_valid:
        return 0

    score = 1

    if chord.quality:
        score += 1
        if chord.quality in ("dim", "aug"):
            score += 1

    if chord.extension:
        score += 1
        value = chord.extension_value
        if value is not None:
            if value > 7:
                score += 1
            if value > 9:
                score += 1

    if chord.has_bass:
        score += 1

    return score


@dataclass(frozen=True)
class SubstitutionRule:
    """
    A row of the substitution table.

    Applies to chords with the given canonical quality; extension is
    matched exactly unless it is None (any extension).
    """

    quality: str
    extension: str | None
    suffixes: tuple[str, ...]

    def applies_to(self, quality: str, extension: str) -> bool:
        if quality != self.quality:
            return False
        return self.extension is None or self.extension == extension


SUBSTITUTION_RULES: tuple[SubstitutionRule, ...] = (
    # Major
    SubstitutionRule("", None, ("maj7", "6", "sus4")),
    SubstitutionRule("", "", ("9",)),
    # Minor
    SubstitutionRule("m", None, ("m7", "m6", "m9")),
    # Dominant 7th. 7sus4 puts the quality after the extension, which the
    # chord grammar rejects; it passes only the fast-path is_valid_chord.
    SubstitutionRule("", "7", ("9", "13", "7sus4")),
)


def get_substitutions(
    text: str, rules: tuple[SubstitutionRule, ...] = SUBSTITUTION_RULES
) -> list[str]:
    """
    Suggest substitute chords from the substitution table.

    Returns:
        Candidate chord symbols on the same root, in table order;
        empty for invalid input or combinations the table does not cover
    """
    chord = parse_chord(text)
    if not chord.is_valid:
        return []

    result: list[str] = []
    for rule in rules:
        if not rule.applies_to(chord.quality, chord.extension):
            continue
        for suffix in rule.suffixes:
            candidate = f"{chord.root}{suffix}"
            if candidate not in result:
                result.append(candidate)
    return result


def validate_progression(chords: list[str]) -> list[str]:
    """
    Check a chord progression.

    Returns:
        One message for an empty progression, one per unparseable chord,
        and one per chord complex enough to possibly be a typo
    """
    if not chords:
        return ["Chord progression cannot be empty"]

    errors = []
    for position, chord in enumerate(chords, start=1):
        if not parse_chord(chord).is_valid:
            errors.append(f"Invalid chord at position {position}: {chord}")
            continue
        if get_complexity(chord) > MAX_REASONABLE_COMPLEXITY:
            errors.append(
                f"Very complex chord at position {position}: {chord} (possibly erroneous)"
            )
    return errors
