"""
Song model - the chord grid aggregate.

A Song contains:
- Metadata (title, artist, key, time signature, tempo, notation)
- Sections (verse, chorus, ...) in explicit order
- Measures inside each section, each holding chord-text slots

Songs, sections and measures live and die together: editing a song
replaces its whole section/measure tree. Order is carried by explicit
order indexes, not by list position.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from chuk_mcp_chordgrid.constants import (
    DEFAULT_KEY,
    DEFAULT_TEMPO,
    DEFAULT_TIME_SIGNATURE,
    MAX_CHORDS_PER_MEASURE,
    NotationType,
    SectionType,
    SongOrigin,
)
from chuk_mcp_chordgrid.core.analysis import get_complexity
from chuk_mcp_chordgrid.core.chord import parse_chord_input
from chuk_mcp_chordgrid.core.transpose import transpose_chords, transpose_key
from chuk_mcp_chordgrid.models.base import Entity
from chuk_mcp_chordgrid.models.structure import SongStructure


def max_chords_for_time_signature(time_signature: str) -> int:
    """Number of chord slots a measure holds in a time signature (default 4)."""
    return MAX_CHORDS_PER_MEASURE.get(time_signature, 4)


def beats_per_measure(time_signature: str) -> int:
    """Top number of a time signature, 4 if it can't be read."""
    top, _, _ = time_signature.partition("/")
    return int(top) if top.isdigit() else 4


class Measure(BaseModel):
    """
    One bar of the grid.

    Holds one or more chord slots; an empty string is a placeholder
    for "no chord". Slot text is stored whitespace-trimmed.
    """

    order: int = Field(0, ge=0, description="Position within the section (0-based)")
    chords: list[str] = Field(
        default_factory=lambda: [""], min_length=1, description="Chord text slots"
    )
    time_signature: str | None = Field(None, description="Override of the song's time signature")
    special_symbol: str | None = Field(None, description="Repeat/navigation marker, e.g. '%'")
    has_first_ending: bool = Field(False, description="Bar is under a first-ending bracket")
    has_second_ending: bool = Field(False, description="Bar is under a second-ending bracket")

    model_config = {"frozen": True}

    @field_validator("chords")
    @classmethod
    def normalize_chords(cls, v: list[str]) -> list[str]:
        """Trim surrounding whitespace from every slot."""
        return [chord.strip() for chord in v]

    @classmethod
    def from_text(cls, text: str, order: int = 0, **kwargs: object) -> Measure:
        """Build a measure from a free-text chord field like 'C G Am F'."""
        return cls(order=order, chords=parse_chord_input(text), **kwargs)  # type: ignore[arg-type]

    @property
    def chord_count(self) -> int:
        """Number of non-blank slots."""
        return sum(1 for chord in self.chords if chord)

    @property
    def is_empty(self) -> bool:
        return self.chord_count == 0

    @property
    def measure_number(self) -> int:
        """1-based bar number within the section."""
        return self.order + 1

    @property
    def has_special_features(self) -> bool:
        return self.special_symbol is not None or self.has_first_ending or self.has_second_ending

    @property
    def display_text(self) -> str:
        """The special symbol, the chords, or a bare bar line."""
        if self.special_symbol is not None:
            return self.special_symbol
        text = " ".join(chord for chord in self.chords if chord)
        return text or "|"

    def get_chord(self, position: int) -> str:
        if 0 <= position < len(self.chords):
            return self.chords[position]
        return ""

    def set_chord(self, position: int, chord: str) -> Measure:
        """Copy with one slot replaced; out-of-range positions are ignored."""
        if not 0 <= position < len(self.chords):
            return self
        chords = list(self.chords)
        chords[position] = chord.strip()
        return self.model_copy(update={"chords": chords})

    def clear_chords(self) -> Measure:
        return self.model_copy(update={"chords": [""] * len(self.chords)})

    def transpose(self, semitones: int) -> Measure:
        return self.model_copy(update={"chords": transpose_chords(self.chords, semitones)})


class Section(BaseModel):
    """
    A labelled group of measures within a song.

    Sections define the song structure (intro, verse, chorus, etc.)
    and may be repeated.
    """

    label: str = Field(..., description="Free-text label, e.g. 'A' or 'Verse 1'")
    section_type: SectionType = Field(SectionType.VERSE, description="Structural role")
    name: str | None = Field(None, description="Optional display name")
    order: int = Field(0, ge=0, description="Position within the song (0-based)")
    measures: list[Measure] = Field(default_factory=list, description="Measures in this section")
    repeat_count: int = Field(1, description="Times the section is played")
    has_repeat_sign: bool = Field(False, description="Drawn with repeat bar lines")

    model_config = {"frozen": True}

    @classmethod
    def from_rows(
        cls,
        label: str,
        rows: list[str],
        section_type: SectionType | str = SectionType.VERSE,
        order: int = 0,
        repeat_count: int = 1,
        has_repeat_sign: bool = False,
    ) -> Section:
        """
        Build a section from one chord-text field per measure.

        Example:
            Section.from_rows("A", ["C G", "Am F"], SectionType.VERSE)
        """
        if isinstance(section_type, str) and not isinstance(section_type, SectionType):
            section_type = SectionType.parse(section_type)
        return cls(
            label=label,
            section_type=section_type,
            order=order,
            measures=[Measure.from_text(row, order=i) for i, row in enumerate(rows)],
            repeat_count=repeat_count,
            has_repeat_sign=has_repeat_sign,
        )

    @property
    def display_name(self) -> str:
        return self.name or self.section_type.value

    @property
    def ordered_measures(self) -> list[Measure]:
        return sorted(self.measures, key=lambda m: m.order)

    @property
    def total_measures(self) -> int:
        """Measures played, counting repeats."""
        return len(self.measures) * self.repeat_count

    @property
    def all_chords(self) -> set[str]:
        return {chord for measure in self.measures for chord in measure.chords if chord}

    def get_measure(self, order: int) -> Measure | None:
        for measure in self.measures:
            if measure.order == order:
                return measure
        return None

    def add_measure(self, measure: Measure | None = None) -> Section:
        """Copy with a measure appended after the current last one."""
        next_order = max((m.order for m in self.measures), default=-1) + 1
        new = (measure or Measure()).model_copy(update={"order": next_order})
        return self.model_copy(update={"measures": [*self.measures, new]})

    def remove_measure(self, order: int) -> Section:
        """Copy without the measure at an order index; remaining ones are re-indexed."""
        kept = [m for m in self.ordered_measures if m.order != order]
        measures = [m.model_copy(update={"order": i}) for i, m in enumerate(kept)]
        return self.model_copy(update={"measures": measures})

    def update_measure(self, order: int, measure: Measure) -> Section:
        """Copy with the measure at an order index replaced."""
        measures = [
            measure.model_copy(update={"order": order}) if m.order == order else m
            for m in self.measures
        ]
        return self.model_copy(update={"measures": measures})

    def transpose(self, semitones: int) -> Section:
        measures = [measure.transpose(semitones) for measure in self.measures]
        return self.model_copy(update={"measures": measures})


class Song(Entity):
    """
    A complete song: metadata plus its section/measure tree.

    Exposed as-is to rendering and export consumers; tempo and
    time_signature are what an audio/metronome consumer reads.
    """

    title: str = Field("", description="Song title")
    artist: str = Field("", description="Artist name")
    key: str = Field(DEFAULT_KEY, description="Musical key, e.g. 'G' or 'F#m'")
    time_signature: str = Field(DEFAULT_TIME_SIGNATURE, description="Time signature")
    tempo: int = Field(DEFAULT_TEMPO, description="Tempo in BPM")
    style: str | None = Field(None, description="Musical style, e.g. 'bossa nova'")
    notation_type: NotationType = Field(NotationType.CHORDS, description="Chord notation")
    is_favorite: bool = Field(False, description="Marked as favorite")
    origin: SongOrigin = Field(SongOrigin.MANUAL, description="Where the song came from")
    sections: list[Section] = Field(default_factory=list, description="Sections of the song")
    structure: SongStructure | None = Field(None, description="Optional form summary")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modified"
    )

    @classmethod
    def create(
        cls,
        title: str,
        artist: str,
        key: str = DEFAULT_KEY,
        time_signature: str = DEFAULT_TIME_SIGNATURE,
        tempo: int = DEFAULT_TEMPO,
        sections: list[Section] | None = None,
        **kwargs: object,
    ) -> Song:
        """Create a new, unsaved song with default values."""
        return cls(
            title=title,
            artist=artist,
            key=key,
            time_signature=time_signature,
            tempo=tempo,
            sections=sections or [],
            **kwargs,  # type: ignore[arg-type]
        )

    def validate(self) -> list[str]:  # type: ignore[override]
        """
        Check the structural invariants that must hold before saving.

        Returns:
            Error messages; empty when the song may be persisted
        """
        from chuk_mcp_chordgrid.validation import validate_song

        return [issue.message for issue in validate_song(self).errors]

    def touch(self) -> Song:
        """Copy with updated_at set to now."""
        return self.model_copy(update={"updated_at": datetime.now(UTC)})

    def transpose(self, semitones: int) -> Song:
        """Copy with the key and every chord moved by a number of semitones."""
        return self.model_copy(
            update={
                "key": transpose_key(self.key, semitones),
                "sections": [section.transpose(semitones) for section in self.sections],
                "updated_at": datetime.now(UTC),
            }
        )

    @property
    def ordered_sections(self) -> list[Section]:
        return sorted(self.sections, key=lambda s: s.order)

    @property
    def total_measures(self) -> int:
        return sum(len(section.measures) for section in self.sections)

    @property
    def estimated_duration_minutes(self) -> float:
        """Rough playing time, ignoring repeats."""
        if self.tempo <= 0:
            return 0.0
        return self.total_measures * beats_per_measure(self.time_signature) / self.tempo

    @property
    def all_chords(self) -> set[str]:
        return {chord for section in self.sections for chord in section.all_chords}

    @property
    def structure_pattern(self) -> str:
        """The explicit structure pattern, or the section labels joined in order."""
        if self.structure is not None:
            return self.structure.pattern
        return "".join(section.label for section in self.ordered_sections)

    def complexity(self) -> int:
        """Sum of the complexity of every chord slot."""
        return sum(
            get_complexity(chord)
            for section in self.sections
            for measure in section.measures
            for chord in measure.chords
            if chord
        )

    def __str__(self) -> str:
        return f"{self.title} - {self.artist} ({self.key}, {self.time_signature}, {self.tempo}bpm)"
