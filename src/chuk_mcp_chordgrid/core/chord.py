"""
Chord grammar - turns chord text into root/quality/extension/bass parts.

The grammar is strict about the root and permissive about the quality:
a chord is only rejected when its root (or slash bass) is not a note
letter A-G with at most one accidental. Quality tokens outside the
canonical set are kept verbatim instead of being rejected.

Parse failures are never raised. They come back as a ParsedChord with
is_valid=False so callers can decide how to show them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .pitch import NOTE_PATTERN, note_index, with_unicode_accidentals

# Groups: root, quality (anything up to the first digit or slash),
# extension (digits), bass note
CHORD_PATTERN = re.compile(
    rf"^(?P<root>{NOTE_PATTERN})"
    r"(?P<quality>[^\d/]*)"
    r"(?P<extension>\d*)"
    rf"(?:/(?P<bass>{NOTE_PATTERN}))?$"
)

_WHITESPACE = re.compile(r"\s+")

# Recognized quality tokens (matched case-insensitively) and their canonical form.
# '' is the canonical major quality.
CANONICAL_QUALITIES: dict[str, str] = {
    "": "",
    "maj": "",
    "min": "m",
    "dim": "dim",
    "aug": "aug",
    "sus": "sus",
    "add": "add",
}


def normalize_quality(token: str) -> str:
    """
    Map a written quality token to its canonical form.

    'maj', 'M' and '' mean major (''); 'min' and 'm' mean minor ('m').
    Case only matters for the single-letter tokens: 'M' is major, 'm' is minor.
    Unrecognized tokens pass through unchanged.
    """
    if token == "M":
        return ""
    if token == "m":
        return "m"
    return CANONICAL_QUALITIES.get(token.lower(), token)


@dataclass(frozen=True)
class ParsedChord:
    """
    A chord symbol split into its components.

    When is_valid is False the other fields are best-effort only
    (root holds the raw text) and must not be used for transposition
    or comparison.
    """

    root: str = ""
    quality: str = ""
    extension: str = ""
    bass: str = ""
    is_valid: bool = False
    quality_token: str = ""  # The quality exactly as written

    @property
    def root_index(self) -> int | None:
        """Pitch-class index of the root, or None if invalid."""
        return note_index(self.root) if self.is_valid else None

    @property
    def bass_index(self) -> int | None:
        """Pitch-class index of the slash bass, or None if absent."""
        return note_index(self.bass) if self.is_valid and self.bass else None

    @property
    def has_bass(self) -> bool:
        return bool(self.bass)

    @property
    def extension_value(self) -> int | None:
        """Numeric value of the extension, if there is one."""
        return int(self.extension) if self.extension.isdigit() else None

    def render(self, canonical: bool = False) -> str:
        """
        Re-assemble the chord text.

        Args:
            canonical: Use the normalized quality instead of the written token
        """
        if not self.is_valid:
            return self.root
        quality = self.quality if canonical else self.quality_token
        text = f"{self.root}{quality}{self.extension}"
        return f"{text}/{self.bass}" if self.bass else text

    def __str__(self) -> str:
        return self.render()


INVALID_EMPTY = ParsedChord()


def parse_chord(text: str) -> ParsedChord:
    """
    Parse a chord string into its components.

    Whitespace is removed before matching. Text that does not match the
    grammar yields is_valid=False with the raw text preserved in root.

    Args:
        text: Chord text such as 'C', 'F#m7', 'Bbmaj9', 'D/F#'

    Returns:
        The parsed chord
    """
    if not text:
        return INVALID_EMPTY

    cleaned = _WHITESPACE.sub("", text)
    match = CHORD_PATTERN.match(cleaned)
    if match is None:
        return ParsedChord(root=text, is_valid=False)

    token = match.group("quality")
    return ParsedChord(
        root=match.group("root"),
        quality=normalize_quality(token),
        extension=match.group("extension"),
        bass=match.group("bass") or "",
        is_valid=True,
        quality_token=token,
    )


def get_display_name(text: str) -> str:
    """
    Render a chord with musical sharp/flat glyphs on root and bass.

    Invalid input is returned unchanged.
    """
    chord = parse_chord(text)
    if not chord.is_valid:
        return text
    result = f"{with_unicode_accidentals(chord.root)}{chord.quality_token}{chord.extension}"
    if chord.bass:
        result += f"/{with_unicode_accidentals(chord.bass)}"
    return result


def parse_chord_input(text: str) -> list[str]:
    """
    Split a free-text chord field into chord slots.

    One slot per whitespace-separated token; an empty field gives a
    single empty slot (a measure with no chord yet).
    """
    tokens = text.split() if text else []
    return tokens or [""]
