"""
Repertoire model - an ordered set list of songs.

Membership is a relation kept apart from the Song aggregate: adding,
removing or reordering songs never touches the songs themselves.
"""

from __future__ import annotations

from datetime import UTC, date, datetime

from pydantic import Field, field_validator

from chuk_mcp_chordgrid.models.base import Entity


class Repertoire(Entity):
    """
    A named, ordered list of song references (e.g. a gig set list).

    song_ids order is significant and persisted per repertoire.
    """

    name: str = Field("", description="Repertoire name")
    description: str | None = Field(None, description="Optional description")
    event_date: date | None = Field(None, description="Date of the event, if any")
    song_ids: list[int] = Field(default_factory=list, description="Songs in play order")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last modified"
    )

    @field_validator("song_ids")
    @classmethod
    def validate_song_ids(cls, v: list[int]) -> list[int]:
        """A song appears at most once; first occurrence wins."""
        result: list[int] = []
        for song_id in v:
            if song_id not in result:
                result.append(song_id)
        return result

    def validate(self) -> list[str]:  # type: ignore[override]
        """Error messages that block saving; empty when valid."""
        from chuk_mcp_chordgrid.validation import validate_repertoire

        return [issue.message for issue in validate_repertoire(self).errors]

    @property
    def song_count(self) -> int:
        return len(self.song_ids)

    def is_upcoming(self, today: date | None = None) -> bool:
        """True when the event date is today or later."""
        if self.event_date is None:
            return False
        return self.event_date >= (today or date.today())

    def position_of(self, song_id: int) -> int | None:
        """0-based play position of a song, or None if not in the list."""
        try:
            return self.song_ids.index(song_id)
        except ValueError:
            return None

    def with_songs_added(self, song_ids: list[int]) -> Repertoire:
        """Copy with new songs appended (existing members are skipped)."""
        added = [song_id for song_id in song_ids if song_id not in self.song_ids]
        return self.model_copy(update={"song_ids": [*self.song_ids, *added]})

    def with_song_removed(self, song_id: int) -> Repertoire:
        return self.model_copy(update={"song_ids": [s for s in self.song_ids if s != song_id]})

    def with_song_moved(self, old_index: int, new_index: int) -> Repertoire:
        """Copy with one song moved to another play position."""
        song_ids = list(self.song_ids)
        if not (0 <= old_index < len(song_ids) and 0 <= new_index < len(song_ids)):
            raise IndexError(f"Cannot move song from {old_index} to {new_index}")
        song_ids.insert(new_index, song_ids.pop(old_index))
        return self.model_copy(update={"song_ids": song_ids})

    def with_song_order(self, song_ids: list[int]) -> Repertoire:
        """Copy with the play order replaced; must be a permutation of the members."""
        if sorted(song_ids) != sorted(self.song_ids):
            raise ValueError("New order must contain exactly the current songs")
        return self.model_copy(update={"song_ids": list(song_ids)})
