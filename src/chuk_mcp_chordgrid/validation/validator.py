"""
Song Validator - validates song structure before it is persisted.

Validates:
- Title and artist are present and within length limits
- Key, time signature and tempo are usable
- Every song has sections, every section has measures,
  every measure has at least one chord
- Section labels, repeat counts and order indexes
- Measure special symbols and chord slot counts
- Chord text (warnings only: unknown roots, overly complex chords)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from chuk_mcp_chordgrid.constants import (
    MAX_ARTIST_NAME_LENGTH,
    MAX_CHORD_LENGTH,
    MAX_REASONABLE_COMPLEXITY,
    MAX_REPERTOIRE_NAME_LENGTH,
    MAX_SECTION_LABEL_LENGTH,
    MAX_SONG_TITLE_LENGTH,
    MAX_TEMPO,
    MIN_TEMPO,
    SPECIAL_SYMBOLS,
)
from chuk_mcp_chordgrid.core.analysis import get_complexity, is_valid_chord
from chuk_mcp_chordgrid.core.chord import parse_chord
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.models.song import Measure, Section, Song, max_chords_for_time_signature

_TIME_SIGNATURE = re.compile(r"^(\d+)/(\d+)$")
_BEAT_UNITS = (1, 2, 4, 8, 16)


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Blocks saving
    WARNING = "warning"  # Saving allowed, worth a look
    INFO = "info"  # Informational only


@dataclass
class ValidationIssue:
    """A single validation issue."""

    severity: ValidationSeverity
    code: str
    message: str
    location: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.severity.value.upper()}]"
        location = f" at {self.location}" if self.location else ""
        return f"{prefix} {self.code}: {self.message}{location}"


class ValidationResult:
    """Result of validating a song or repertoire."""

    def __init__(self) -> None:
        self.issues: list[ValidationIssue] = []

    def add_error(self, code: str, message: str, location: str | None = None) -> None:
        """Add an error issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.ERROR, code, message, location))

    def add_warning(self, code: str, message: str, location: str | None = None) -> None:
        """Add a warning issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.WARNING, code, message, location))

    def add_info(self, code: str, message: str, location: str | None = None) -> None:
        """Add an info issue."""
        self.issues.append(ValidationIssue(ValidationSeverity.INFO, code, message, location))

    @property
    def is_valid(self) -> bool:
        """Return True if no errors (warnings/info are OK)."""
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        """Get all error issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        """Get all warning issues."""
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def messages(self) -> list[str]:
        """Error messages only, in the order found."""
        return [i.message for i in self.errors]

    def __bool__(self) -> bool:
        """Boolean conversion returns is_valid."""
        return self.is_valid

    def __str__(self) -> str:
        if not self.issues:
            return "Validation passed: no issues found"
        return "\n".join(str(issue) for issue in self.issues)


def time_signature_error(value: str) -> str | None:
    """Reason a time signature is unusable, or None if it is fine."""
    match = _TIME_SIGNATURE.match(value or "")
    if match is None:
        return f"Invalid time signature format: '{value}' (e.g., 4/4)"
    top, bottom = int(match.group(1)), int(match.group(2))
    if top <= 0:
        return f"Time signature '{value}' must have a positive beat count"
    if bottom not in _BEAT_UNITS:
        return f"Time signature '{value}' must have a beat unit of 1, 2, 4, 8 or 16"
    return None


class SongValidator:
    """Validates song structure and content."""

    def validate(self, song: Song) -> ValidationResult:
        """
        Validate a song.

        Args:
            song: The song to validate

        Returns:
            ValidationResult with any issues found
        """
        result = ValidationResult()

        self._validate_metadata(song, result)
        self._validate_sections(song, result)

        return result

    def _validate_metadata(self, song: Song, result: ValidationResult) -> None:
        """Validate title, artist, key, time signature and tempo."""
        self._validate_text(
            song.title, "Song title", MAX_SONG_TITLE_LENGTH, "TITLE", "title", result
        )
        self._validate_text(
            song.artist, "Artist name", MAX_ARTIST_NAME_LENGTH, "ARTIST", "artist", result
        )

        key = parse_chord(song.key)
        if not key.is_valid or key.quality not in ("", "m") or key.extension or key.bass:
            result.add_error("INVALID_KEY", f"Invalid key: '{song.key}'", "key")

        ts_error = time_signature_error(song.time_signature)
        if ts_error:
            result.add_error("INVALID_TIME_SIGNATURE", ts_error, "time_signature")

        if not MIN_TEMPO <= song.tempo <= MAX_TEMPO:
            result.add_error(
                "INVALID_TEMPO",
                f"Tempo must be between {MIN_TEMPO} and {MAX_TEMPO} BPM, got {song.tempo}",
                "tempo",
            )

    def _validate_text(
        self,
        value: str,
        label: str,
        max_length: int,
        code: str,
        location: str,
        result: ValidationResult,
    ) -> None:
        if not value or not value.strip():
            result.add_error(f"MISSING_{code}", f"{label} is required", location)
        elif len(value) > max_length:
            result.add_error(
                f"{code}_TOO_LONG",
                f"{label} must be less than {max_length} characters",
                location,
            )

    def _validate_sections(self, song: Song, result: ValidationResult) -> None:
        """Validate section list, then each section."""
        if not song.sections:
            result.add_error("NO_SECTIONS", "Song must have at least one section", "sections")
            return

        seen: set[int] = set()
        for section in song.sections:
            if section.order in seen:
                result.add_error(
                    "DUPLICATE_SECTION_ORDER",
                    f"Duplicate section order index: {section.order}",
                    f"sections/{section.order}",
                )
            seen.add(section.order)

        for section in song.ordered_sections:
            self._validate_section(song, section, result)

    def _validate_section(self, song: Song, section: Section, result: ValidationResult) -> None:
        location = f"sections/{section.order}"
        name = section.label or section.display_name

        if not section.label or not section.label.strip():
            result.add_error("MISSING_SECTION_LABEL", "Section label is required", location)
        elif len(section.label) > MAX_SECTION_LABEL_LENGTH:
            result.add_error(
                "SECTION_LABEL_TOO_LONG",
                f"Section label must be less than {MAX_SECTION_LABEL_LENGTH} characters",
                location,
            )

        if section.repeat_count < 1:
            result.add_error(
                "INVALID_REPEAT_COUNT",
                f"Section '{name}' repeat count must be at least 1, got {section.repeat_count}",
                location,
            )

        if not section.measures:
            result.add_error(
                "EMPTY_SECTION", f"Section '{name}' must have at least one measure", location
            )
            return

        seen: set[int] = set()
        for measure in section.ordered_measures:
            if measure.order in seen:
                result.add_error(
                    "DUPLICATE_MEASURE_ORDER",
                    f"Section '{name}' has duplicate measure order index: {measure.order}",
                    location,
                )
            seen.add(measure.order)
            measure_location = f"{location}/measures/{measure.order}"
            self._validate_measure(song, name, measure, measure_location, result)

    def _validate_measure(
        self,
        song: Song,
        section_name: str,
        measure: Measure,
        location: str,
        result: ValidationResult,
    ) -> None:
        where = f"Section '{section_name}', measure {measure.measure_number}"

        if measure.is_empty:
            result.add_error("EMPTY_MEASURE", f"{where} has no chord", location)

        if measure.special_symbol is not None and measure.special_symbol not in SPECIAL_SYMBOLS:
            result.add_error(
                "INVALID_SPECIAL_SYMBOL",
                f"{where} has an unknown symbol: '{measure.special_symbol}'",
                location,
            )

        time_signature = measure.time_signature or song.time_signature
        if measure.time_signature is not None:
            ts_error = time_signature_error(measure.time_signature)
            if ts_error:
                result.add_error("INVALID_TIME_SIGNATURE", f"{where}: {ts_error}", location)

        max_chords = max_chords_for_time_signature(time_signature)
        if len(measure.chords) > max_chords:
            result.add_warning(
                "TOO_MANY_CHORDS",
                f"{where} has {len(measure.chords)} chords; {time_signature} fits {max_chords}",
                location,
            )

        for chord in measure.chords:
            self._validate_chord(song, where, chord, location, result)

    def _validate_chord(
        self, song: Song, where: str, chord: str, location: str, result: ValidationResult
    ) -> None:
        if not chord:
            return
        if len(chord) > MAX_CHORD_LENGTH:
            result.add_warning(
                "LONG_CHORD",
                f"{where}: chord symbol must be less than {MAX_CHORD_LENGTH} characters",
                location,
            )
        # Roman numerals are not letter chords
        if song.notation_type.value != "chords":
            return
        if not is_valid_chord(chord):
            result.add_warning(
                "UNKNOWN_CHORD", f"{where}: invalid chord symbol '{chord}'", location
            )
        elif get_complexity(chord) > MAX_REASONABLE_COMPLEXITY:
            result.add_warning(
                "COMPLEX_CHORD",
                f"{where}: very complex chord '{chord}' (possibly erroneous)",
                location,
            )


class RepertoireValidator:
    """Validates repertoire metadata."""

    def validate(self, repertoire: Repertoire) -> ValidationResult:
        result = ValidationResult()

        if not repertoire.name or not repertoire.name.strip():
            result.add_error("MISSING_NAME", "Repertoire name is required", "name")
        elif len(repertoire.name) > MAX_REPERTOIRE_NAME_LENGTH:
            result.add_error(
                "NAME_TOO_LONG",
                f"Repertoire name must be less than {MAX_REPERTOIRE_NAME_LENGTH} characters",
                "name",
            )

        if any(song_id <= 0 for song_id in repertoire.song_ids):
            result.add_error(
                "UNSAVED_SONG", "Repertoire can only reference saved songs", "song_ids"
            )

        return result


def validate_song(song: Song) -> ValidationResult:
    """
    Convenience function to validate a song.

    Args:
        song: The song to validate

    Returns:
        ValidationResult with any issues found
    """
    validator = SongValidator()
    return validator.validate(song)


def validate_repertoire(repertoire: Repertoire) -> ValidationResult:
    """Convenience function to validate a repertoire."""
    return RepertoireValidator().validate(repertoire)
