"""
Pytest configuration and shared fixtures.
"""

import asyncio
import tempfile
from pathlib import Path

import pytest

from chuk_mcp_chordgrid.exceptions import PersistenceError
from chuk_mcp_chordgrid.models import Repertoire, Section, Song
from chuk_mcp_chordgrid.store import InMemoryGateway, InMemoryRepertoireGateway


class FlakyGateway(InMemoryGateway[Song]):
    """In-memory gateway that fails the operations named in fail_on."""

    def __init__(self, entities=None, fail_on=()):
        super().__init__(entities)
        self.fail_on = set(fail_on)

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(operation, "disk unavailable")

    async def create(self, entity):
        self._maybe_fail("create")
        return await super().create(entity)

    async def update(self, entity):
        self._maybe_fail("update")
        return await super().update(entity)

    async def delete_by_id(self, entity_id):
        self._maybe_fail("delete")
        return await super().delete_by_id(entity_id)

    async def get_all(self):
        self._maybe_fail("get_all")
        return await super().get_all()


class FlakyRepertoireGateway(InMemoryRepertoireGateway):
    """Repertoire gateway that fails the relation operations named in fail_on."""

    def __init__(self, entities=None, fail_on=()):
        super().__init__(entities)
        self.fail_on = set(fail_on)

    async def add_songs_to_repertoire(self, repertoire_id, song_ids):
        if "add_songs" in self.fail_on:
            raise PersistenceError("add_songs", "constraint failed")
        await super().add_songs_to_repertoire(repertoire_id, song_ids)

    async def remove_song_from_repertoire(self, repertoire_id, song_id):
        if "remove_song" in self.fail_on:
            raise PersistenceError("remove_song", "constraint failed")
        await super().remove_song_from_repertoire(repertoire_id, song_id)

    async def reorder_songs_in_repertoire(self, repertoire_id, ordered_song_ids):
        if "reorder" in self.fail_on:
            raise PersistenceError("reorder", "constraint failed")
        await super().reorder_songs_in_repertoire(repertoire_id, ordered_song_ids)


class BlockingGateway(InMemoryGateway[Song]):
    """
    In-memory gateway whose create/update/delete wait for release.

    started is set once a call is in flight, so a test can look at the
    store's optimistic state before letting the call finish.
    """

    def __init__(self, entities=None, fail=False, fail_once=False):
        super().__init__(entities)
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.fail = fail or fail_once
        self.fail_once = fail_once

    async def _block(self, operation: str) -> None:
        self.started.set()
        await self.release.wait()
        if self.fail:
            self.fail = not self.fail_once
            raise PersistenceError(operation, "timed out")

    async def create(self, entity):
        await self._block("create")
        return await super().create(entity)

    async def update(self, entity):
        await self._block("update")
        return await super().update(entity)

    async def delete_by_id(self, entity_id):
        await self._block("delete")
        return await super().delete_by_id(entity_id)


def make_song(title: str = "Blue Bossa", artist: str = "Kenny Dorham", **kwargs) -> Song:
    """A small valid song with one section of four measures."""
    sections = kwargs.pop("sections", None) or [
        Section.from_rows("A", ["Cm7", "Fm7", "Dm7 G7", "Cm7"], "Verse"),
    ]
    key = kwargs.pop("key", "Cm")
    return Song.create(title=title, artist=artist, key=key, sections=sections, **kwargs)


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_song() -> Song:
    """A valid unsaved song."""
    return make_song()


@pytest.fixture
def stored_songs() -> list[Song]:
    """Three saved songs with ids 1..3."""
    return [
        make_song("Blue Bossa", "Kenny Dorham", id=1, style="bossa nova"),
        make_song("Autumn Leaves", "Joseph Kosma", id=2, key="Gm", is_favorite=True),
        make_song("So What", "Miles Davis", id=3, key="Dm", style="modal jazz"),
    ]


@pytest.fixture
def stored_repertoires() -> list[Repertoire]:
    """Two saved repertoires referencing the stored songs."""
    return [
        Repertoire(id=1, name="Friday gig", song_ids=[1, 2, 3]),
        Repertoire(id=2, name="Rehearsal", description="Standards to learn", song_ids=[3]),
    ]
