"""
Filter/Query view - read-only projections over a store's collection.

Filter criteria are explicit values passed in by the caller. Results are
recomputed on every read from the store's current snapshot; nothing
here mutates the store.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from chuk_mcp_chordgrid.constants import SongOrigin
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.models.song import Song

from .entity_store import EntityStore


def _contains(needle: str, *fields: str | None) -> bool:
    return any(needle in field.lower() for field in fields if field)


class SongFilter(BaseModel):
    """
    Criteria for listing songs. All set criteria must match.

    search is a case-insensitive substring match over title, artist
    and style; key is an exact match; favorites_only keeps favorites.
    """

    search: str = Field("", description="Free-text search")
    key: str | None = Field(None, description="Only songs in this key")
    favorites_only: bool = Field(False, description="Only favorite songs")
    include_extracted: bool = Field(True, description="Include songs from chord extraction")

    model_config = {"frozen": True}

    @property
    def is_active(self) -> bool:
        return bool(
            self.search.strip() or self.key or self.favorites_only or not self.include_extracted
        )

    def matches(self, song: Song) -> bool:
        needle = self.search.strip().lower()
        if needle and not _contains(needle, song.title, song.artist, song.style):
            return False
        if self.key and song.key != self.key:
            return False
        if self.favorites_only and not song.is_favorite:
            return False
        if not self.include_extracted and song.origin == SongOrigin.EXTRACTED:
            return False
        return True


class RepertoireFilter(BaseModel):
    """Criteria for listing repertoires."""

    search: str = Field("", description="Match in name or description")
    upcoming_only: bool = Field(False, description="Only events today or later")

    model_config = {"frozen": True}

    def matches(self, repertoire: Repertoire, today: date | None = None) -> bool:
        needle = self.search.strip().lower()
        if needle and not _contains(needle, repertoire.name, repertoire.description):
            return False
        if self.upcoming_only and not repertoire.is_upcoming(today):
            return False
        return True


def filter_songs(songs: list[Song], criteria: SongFilter) -> list[Song]:
    """Songs matching every set criterion, in collection order."""
    return [song for song in songs if criteria.matches(song)]


def filter_repertoires(
    repertoires: list[Repertoire], criteria: RepertoireFilter, today: date | None = None
) -> list[Repertoire]:
    return [r for r in repertoires if criteria.matches(r, today)]


class SongQueryView:
    """
    Live filtered view of a song store.

    Example:
        view = SongQueryView(store, SongFilter(search="bossa"))
        view.results  # recomputed from store.items on each read
    """

    def __init__(self, store: EntityStore[Song], criteria: SongFilter | None = None):
        self.store = store
        self.criteria = criteria or SongFilter()

    @property
    def results(self) -> list[Song]:
        return filter_songs(self.store.items, self.criteria)

    @property
    def count(self) -> int:
        return len(self.results)

    @property
    def keys(self) -> list[str]:
        """Distinct keys in the store, for a key picker."""
        return sorted({song.key for song in self.store.items})

    def refine(self, **changes: object) -> SongQueryView:
        """New view over the same store with some criteria changed."""
        return SongQueryView(self.store, self.criteria.model_copy(update=changes))
