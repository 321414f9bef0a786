"""
Song structure summary - a letter pattern such as AABA plus a description.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from chuk_mcp_chordgrid.constants import COMMON_STRUCTURE_PATTERNS, PATTERN_LETTER_NAMES


class SongStructure(BaseModel):
    """
    Summary of a song's form.

    Each letter of the pattern stands for one section label in order.
    """

    pattern: str = Field(..., min_length=1, description="Letter pattern, e.g. 'AABA'")
    description: str | None = Field(None, description="Free-text description")

    model_config = {"frozen": True}

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Patterns are upper-case letters only."""
        v = v.strip().upper()
        if not v.isalpha() or not v.isascii():
            raise ValueError(f"Invalid structure pattern: {v}")
        return v

    @property
    def pattern_description(self) -> str:
        """The explicit description, or one generated from the letters."""
        if self.description:
            return self.description
        return " - ".join(PATTERN_LETTER_NAMES.get(letter, letter) for letter in self.pattern)

    @property
    def section_count(self) -> int:
        return len(self.pattern)

    @property
    def is_common_pattern(self) -> bool:
        return self.pattern in COMMON_STRUCTURE_PATTERNS

    @property
    def repetition_counts(self) -> dict[str, int]:
        """How many times each letter occurs."""
        counts: dict[str, int] = {}
        for letter in self.pattern:
            counts[letter] = counts.get(letter, 0) + 1
        return counts

    def matches(self, labels: list[str]) -> bool:
        """Check whether a list of section labels follows this pattern."""
        return list(self.pattern) == labels
