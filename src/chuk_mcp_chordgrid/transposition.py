"""
Song-level transposition helpers.

Builds on core.transpose for whole measures, sections and songs, and
offers a menu of transposition choices with their effect on how hard
the song is to play.
"""

from __future__ import annotations

from dataclasses import dataclass

from chuk_mcp_chordgrid.core.transpose import describe_transposition, transpose_key
from chuk_mcp_chordgrid.models.song import Measure, Section, Song


@dataclass(frozen=True)
class TranspositionOption:
    """One entry in a transposition menu."""

    semitones: int
    key: str
    description: str

    @property
    def is_original(self) -> bool:
        return self.semitones == 0


@dataclass(frozen=True)
class ComplexityAnalysis:
    """Complexity of a song before and after a transposition."""

    original: int
    transposed: int
    description: str

    @property
    def difference(self) -> int:
        return self.transposed - self.original

    @property
    def is_easier(self) -> bool:
        return self.transposed < self.original


def transpose_measure(measure: Measure, semitones: int) -> Measure:
    return measure.transpose(semitones)


def transpose_section(section: Section, semitones: int) -> Section:
    return section.transpose(semitones)


def transpose_song(song: Song, semitones: int) -> Song:
    """Copy of a song with its key and every chord moved together."""
    return song.transpose(semitones)


def transposition_options(song: Song, low: int = -5, high: int = 6) -> list[TranspositionOption]:
    """
    Candidate transpositions of a song, lowest first.

    Args:
        song: The song to transpose
        low: Lowest semitone offset offered
        high: Highest semitone offset offered

    Returns:
        One option per offset in low..high, the original key included
    """
    return [
        TranspositionOption(
            semitones=semitones,
            key=transpose_key(song.key, semitones),
            description=describe_transposition(semitones),
        )
        for semitones in range(low, high + 1)
    ]


def song_complexity(song: Song) -> int:
    """Sum of chord complexity over every slot of the song."""
    return song.complexity()


def complexity_analysis(song: Song, semitones: int) -> ComplexityAnalysis:
    """Compare a song's complexity with its transposed version."""
    original = song_complexity(song)
    transposed = song_complexity(song.transpose(semitones))
    if transposed < original:
        description = "Simpler"
    elif transposed > original:
        description = "More complex"
    else:
        description = "Same complexity"
    return ComplexityAnalysis(original=original, transposed=transposed, description=description)
