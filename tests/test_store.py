"""
Tests for the optimistic entity stores and persistence gateways.

Tests cover:
- Add/update/delete/toggle commit and exact rollback
- Pending ids while a gateway call is in flight
- Validation rejection before the gateway is called
- Repertoire relation mutations
- YAML file gateways
"""

import asyncio
import logging

import pytest
import yaml
from conftest import BlockingGateway, FlakyGateway, FlakyRepertoireGateway, make_song

from chuk_mcp_chordgrid.exceptions import EntityNotFoundError, PersistenceError
from chuk_mcp_chordgrid.models import Measure, Repertoire, Section, Song
from chuk_mcp_chordgrid.store import (
    InMemoryGateway,
    InMemoryRepertoireGateway,
    MutationState,
    RepertoireStore,
    SongStore,
    YamlRepertoireGateway,
    YamlSongGateway,
)


async def loaded_store(songs: list[Song], **gateway_kwargs) -> SongStore:
    store = SongStore(FlakyGateway(songs, **gateway_kwargs))
    assert await store.load()
    return store


class TestLoad:
    """Tests for reading through the store."""

    @pytest.mark.asyncio
    async def test_load(self, stored_songs: list[Song]) -> None:
        """Load mirrors the gateway in order."""
        store = await loaded_store(stored_songs)
        assert [s.id for s in store.items] == [1, 2, 3]
        assert store.is_loaded
        assert not store.is_loading
        assert store.error is None

    @pytest.mark.asyncio
    async def test_load_failure(self, stored_songs: list[Song]) -> None:
        """A failed load leaves the collection alone and sets the error."""
        store = SongStore(FlakyGateway(stored_songs, fail_on={"get_all"}))
        assert not await store.load()
        assert store.items == []
        assert store.error == "Failed to load Songs: get_all failed: disk unavailable"
        assert not await store.ensure_loaded()

    @pytest.mark.asyncio
    async def test_get_by_id(self, stored_songs: list[Song]) -> None:
        """Lookups hit the collection, then the gateway; misses are None."""
        store = SongStore(InMemoryGateway(stored_songs))
        song = await store.get_by_id(2)
        assert song is not None
        assert song.title == "Autumn Leaves"
        assert await store.get_by_id(99) is None
        assert store.find(2) is None  # not loaded, not cached

    @pytest.mark.asyncio
    async def test_items_is_a_snapshot(self, stored_songs: list[Song]) -> None:
        """Mutating the returned list does not touch the store."""
        store = await loaded_store(stored_songs)
        store.items.clear()
        assert store.count == 3


class TestAdd:
    """Tests for the add protocol."""

    @pytest.mark.asyncio
    async def test_add_commits_with_real_id(self, stored_songs: list[Song]) -> None:
        """A committed add carries the gateway's id."""
        store = await loaded_store(stored_songs)
        result = await store.add(make_song("New", "Someone"))
        assert result
        assert result.state == MutationState.COMMITTED
        assert result.entity.id == 4
        assert store.find(4).title == "New"
        assert all(s.id > 0 for s in store.items)

    @pytest.mark.asyncio
    async def test_failed_add_is_exact_rollback(self, stored_songs: list[Song]) -> None:
        """A failed add leaves the collection exactly as before."""
        store = await loaded_store(stored_songs, fail_on={"create"})
        before = store.items
        result = await store.add(make_song("New", "Someone"))
        assert not result
        assert result.state == MutationState.ROLLED_BACK
        assert store.items == before
        assert store.error == "Failed to add Song: create failed: disk unavailable"

    @pytest.mark.asyncio
    async def test_rollback_is_logged(self, stored_songs: list[Song], caplog) -> None:
        """Rollbacks are logged at WARNING."""
        store = await loaded_store(stored_songs, fail_on={"create"})
        with caplog.at_level(logging.WARNING):
            await store.add(make_song("New", "Someone"))
        assert "Rolled back add of Song -1" in caplog.text

    @pytest.mark.asyncio
    async def test_pending_entry_while_in_flight(self) -> None:
        """The new song is visible under a negative id until committed."""
        gateway = BlockingGateway()
        store = SongStore(gateway)
        task = asyncio.create_task(store.add(make_song()))
        await gateway.started.wait()

        assert len(store.items) == 1
        assert store.items[0].id == -1
        assert store.items[0].is_pending

        gateway.release.set()
        result = await task
        assert result
        assert [s.id for s in store.items] == [1]

    @pytest.mark.asyncio
    async def test_concurrent_adds_get_unique_pending_ids(self) -> None:
        """Two adds in flight never share a pending id."""
        gateway = BlockingGateway()
        store = SongStore(gateway)
        first = asyncio.create_task(store.add(make_song("One", "A")))
        second = asyncio.create_task(store.add(make_song("Two", "B")))
        await asyncio.sleep(0)
        await gateway.started.wait()
        await asyncio.sleep(0)

        assert sorted(s.id for s in store.items) == [-2, -1]

        gateway.release.set()
        await asyncio.gather(first, second)
        assert sorted(s.id for s in store.items) == [1, 2]
        assert {s.title for s in store.items} == {"One", "Two"}

    @pytest.mark.asyncio
    async def test_failed_add_while_in_flight(self, stored_songs: list[Song]) -> None:
        """Failing after a pause still removes only the pending entry."""
        gateway = BlockingGateway(stored_songs, fail=True)
        store = SongStore(gateway)
        await store.load()
        task = asyncio.create_task(store.add(make_song("New", "Someone")))
        await gateway.started.wait()
        assert store.count == 4

        gateway.release.set()
        assert not await task
        assert [s.id for s in store.items] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_invalid_song_rejected(self) -> None:
        """Invalid songs never reach the gateway."""
        gateway = FlakyGateway()
        store = SongStore(gateway)
        song = make_song(sections=[Section(label="A", measures=[Measure(chords=["", " "])])])
        result = await store.add(song)
        assert result.state == MutationState.REJECTED
        assert len(result.errors) == 1
        assert store.items == []
        assert await gateway.get_all() == []
        assert store.error.startswith("Invalid Song data:")

    @pytest.mark.asyncio
    async def test_next_mutation_clears_error(self, stored_songs: list[Song]) -> None:
        """The current error is cleared by the next attempt."""
        store = await loaded_store(stored_songs, fail_on={"create"})
        await store.add(make_song("New", "Someone"))
        assert store.error is not None
        await store.toggle_favorite(1)
        assert store.error is None

    @pytest.mark.asyncio
    async def test_clear_error(self, stored_songs: list[Song]) -> None:
        """Errors can be cleared explicitly."""
        store = await loaded_store(stored_songs, fail_on={"create"})
        await store.add(make_song("New", "Someone"))
        store.clear_error()
        assert store.error is None


class TestUpdate:
    """Tests for the update protocol."""

    @pytest.mark.asyncio
    async def test_update_commits(self, stored_songs: list[Song]) -> None:
        """The entry is replaced in place."""
        store = await loaded_store(stored_songs)
        song = store.find(2).model_copy(update={"tempo": 90})
        result = await store.update(song)
        assert result
        assert store.find(2).tempo == 90
        assert [s.id for s in store.items] == [1, 2, 3]
        assert (await store.gateway.get_by_id(2)).tempo == 90

    @pytest.mark.asyncio
    async def test_failed_update_restores_prior_value(self, stored_songs: list[Song]) -> None:
        """The previous value is written back verbatim."""
        store = await loaded_store(stored_songs, fail_on={"update"})
        before = store.find(2)
        result = await store.update(before.model_copy(update={"title": "Changed"}))
        assert result.state == MutationState.ROLLED_BACK
        assert store.find(2) == before
        assert store.error == "Failed to update Song: update failed: disk unavailable"

    @pytest.mark.asyncio
    async def test_update_is_idempotent(self, stored_songs: list[Song]) -> None:
        """Sending the same update twice gives the same state."""
        store = await loaded_store(stored_songs)
        song = store.find(1).model_copy(update={"key": "Dm"})
        await store.update(song)
        once = [(s.id, s.key) for s in store.items]
        await store.update(song)
        assert [(s.id, s.key) for s in store.items] == once

    @pytest.mark.asyncio
    async def test_update_replaces_whole_tree(self, stored_songs: list[Song]) -> None:
        """Sections are never partially applied."""
        store = await loaded_store(stored_songs, fail_on={"update"})
        before = store.find(1)
        new_sections = [Section.from_rows("B", ["G", "D"])]
        await store.update(before.model_copy(update={"sections": new_sections}))
        assert store.find(1).sections == before.sections

    @pytest.mark.asyncio
    async def test_update_missing_or_pending(self, stored_songs: list[Song]) -> None:
        """Unknown, unsaved and pending ids are rejected."""
        store = await loaded_store(stored_songs)
        assert (await store.update(make_song(id=42))).state == MutationState.REJECTED
        assert store.error == "Song 42 not found"
        assert (await store.update(make_song())).state == MutationState.REJECTED
        assert (await store.update(make_song(id=-1))).state == MutationState.REJECTED

    @pytest.mark.asyncio
    async def test_zero_rows_is_failure(self, stored_songs: list[Song]) -> None:
        """An update that changes no rows is rolled back."""
        gateway = InMemoryGateway(stored_songs)
        store = SongStore(gateway)
        await store.load()
        await gateway.delete_by_id(3)
        before = store.find(3)
        result = await store.update(before.model_copy(update={"tempo": 99}))
        assert result.state == MutationState.ROLLED_BACK
        assert store.find(3) == before

    @pytest.mark.asyncio
    async def test_update_touches_timestamp(self, stored_songs: list[Song]) -> None:
        """Updated songs get a new updated_at."""
        store = await loaded_store(stored_songs)
        before = store.find(1)
        result = await store.update(before.model_copy(update={"tempo": 100}))
        assert result.entity.updated_at >= before.updated_at


class TestDelete:
    """Tests for the delete protocol."""

    @pytest.mark.asyncio
    async def test_delete_commits(self, stored_songs: list[Song]) -> None:
        """The entry is removed."""
        store = await loaded_store(stored_songs)
        result = await store.delete(2)
        assert result
        assert result.entity.id == 2
        assert [s.id for s in store.items] == [1, 3]

    @pytest.mark.asyncio
    async def test_failed_delete_reinserts_in_place(self, stored_songs: list[Song]) -> None:
        """A failed delete puts the entry back where it was."""
        store = await loaded_store(stored_songs, fail_on={"delete"})
        before = store.items
        result = await store.delete(2)
        assert result.state == MutationState.ROLLED_BACK
        assert store.items == before

    @pytest.mark.asyncio
    async def test_failed_delete_of_first(self, stored_songs: list[Song]) -> None:
        """The first entry goes back to the front."""
        store = await loaded_store(stored_songs, fail_on={"delete"})
        await store.delete(1)
        assert [s.id for s in store.items] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_reinsert_follows_predecessor(self, stored_songs: list[Song]) -> None:
        """Reinsertion is after the predecessor even if the list changed."""
        gateway = BlockingGateway(stored_songs, fail=True)
        store = SongStore(gateway)
        await store.load()
        task = asyncio.create_task(store.delete(3))
        await gateway.started.wait()
        assert [s.id for s in store.items] == [1, 2]

        # Another mutation lands while the delete is in flight
        store._items.insert(0, make_song("Other", "X", id=9))

        gateway.release.set()
        await task
        assert [s.id for s in store.items] == [9, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_delete_missing(self, stored_songs: list[Song]) -> None:
        """Deleting an unknown id is rejected without a gateway call."""
        store = await loaded_store(stored_songs)
        result = await store.delete(42)
        assert result.state == MutationState.REJECTED
        assert store.count == 3

    @pytest.mark.asyncio
    async def test_delete_pending_rejected(self, stored_songs: list[Song]) -> None:
        """Pending entries cannot be deleted."""
        store = await loaded_store(stored_songs)
        result = await store.delete(-1)
        assert result.state == MutationState.REJECTED
        assert store.error == "Song -1 has not been saved yet"


class TestToggleAndTranspose:
    """Tests for toggle-field and transpose mutations."""

    @pytest.mark.asyncio
    async def test_double_toggle_restores(self, stored_songs: list[Song]) -> None:
        """Toggling favorite twice returns the original value."""
        store = await loaded_store(stored_songs)
        original = store.find(1).is_favorite
        assert (await store.toggle_favorite(1)).entity.is_favorite is not original
        await store.toggle_favorite(1)
        assert store.find(1).is_favorite is original

    @pytest.mark.asyncio
    async def test_failed_toggle_rolls_back(self, stored_songs: list[Song]) -> None:
        """A failed toggle restores the flag."""
        store = await loaded_store(stored_songs, fail_on={"update"})
        assert not await store.toggle_favorite(2)
        assert store.find(2).is_favorite

    @pytest.mark.asyncio
    async def test_favorites(self, stored_songs: list[Song]) -> None:
        """Favorites are read from the collection."""
        store = await loaded_store(stored_songs)
        assert [s.id for s in store.favorites] == [2]

    @pytest.mark.asyncio
    async def test_concurrent_toggles_serialize(self, stored_songs: list[Song]) -> None:
        """Mutations on one id run one after another."""
        gateway = BlockingGateway(stored_songs)
        store = SongStore(gateway)
        await store.load()
        first = asyncio.create_task(store.toggle_favorite(1))
        second = asyncio.create_task(store.toggle_favorite(1))
        await gateway.started.wait()
        gateway.release.set()
        await asyncio.gather(first, second)
        assert store.find(1).is_favorite is False

    @pytest.mark.asyncio
    async def test_toggle_unknown_field(self, stored_songs: list[Song]) -> None:
        """Only boolean fields can be toggled."""
        store = await loaded_store(stored_songs)
        assert (await store.toggle_field(1, "title")).state == MutationState.REJECTED
        assert (await store.toggle_field(1, "missing")).state == MutationState.REJECTED
        assert store.find(1).title == "Blue Bossa"

    @pytest.mark.asyncio
    async def test_edit(self, stored_songs: list[Song]) -> None:
        """Editing changes only the given fields."""
        store = await loaded_store(stored_songs)
        result = await store.edit(1, {"tempo": 140})
        assert result
        assert store.find(1).tempo == 140
        assert store.find(1).title == "Blue Bossa"
        assert (await store.gateway.get_by_id(1)).tempo == 140

    @pytest.mark.asyncio
    async def test_edit_rejects_invalid(self, stored_songs: list[Song]) -> None:
        """An edit that breaks validation never reaches the gateway."""
        store = await loaded_store(stored_songs)
        result = await store.edit(1, {"title": " "})
        assert result.state == MutationState.REJECTED
        assert result.errors == ["Song title is required"]
        assert store.find(1).title == "Blue Bossa"
        assert (await store.edit(1, {"id": 7})).state == MutationState.REJECTED
        assert (await store.edit(1, {"rating": 5})).state == MutationState.REJECTED

    @pytest.mark.asyncio
    async def test_edit_after_failed_toggle(self, stored_songs: list[Song]) -> None:
        """An edit queued behind a failing toggle does not save the toggled flag."""
        gateway = BlockingGateway(stored_songs, fail_once=True)
        store = SongStore(gateway)
        await store.load()
        toggle = asyncio.create_task(store.toggle_favorite(1))
        await gateway.started.wait()
        edit = asyncio.create_task(store.edit(1, {"tempo": 140}))
        await asyncio.sleep(0)
        gateway.release.set()
        toggled, edited = await asyncio.gather(toggle, edit)

        assert toggled.state == MutationState.ROLLED_BACK
        assert edited
        saved = await gateway.get_by_id(1)
        assert saved.is_favorite is False
        assert saved.tempo == 140
        assert store.find(1).is_favorite is False

    @pytest.mark.asyncio
    async def test_transpose(self, stored_songs: list[Song]) -> None:
        """Transposing a stored song moves its key and chords."""
        store = await loaded_store(stored_songs)
        result = await store.transpose(1, 2)
        assert result
        assert store.find(1).key == "Dm"
        assert (await store.gateway.get_by_id(1)).key == "Dm"

    @pytest.mark.asyncio
    async def test_transpose_out_of_range(self, stored_songs: list[Song]) -> None:
        """Moves beyond an octave are rejected."""
        store = await loaded_store(stored_songs)
        result = await store.transpose(1, 13)
        assert result.state == MutationState.REJECTED
        assert store.find(1).key == "Cm"


class TestRepertoireStore:
    """Tests for repertoire relation mutations."""

    async def make_store(self, repertoires, **kwargs) -> RepertoireStore:
        store = RepertoireStore(FlakyRepertoireGateway(repertoires, **kwargs))
        await store.load()
        return store

    @pytest.mark.asyncio
    async def test_add_songs(self, stored_repertoires: list[Repertoire]) -> None:
        """New songs are appended; members are skipped."""
        store = await self.make_store(stored_repertoires)
        result = await store.add_songs(2, [1, 3, 2])
        assert result
        assert store.find(2).song_ids == [3, 1, 2]
        assert (await store.gateway.get_by_id(2)).song_ids == [3, 1, 2]

    @pytest.mark.asyncio
    async def test_add_no_songs(self, stored_repertoires: list[Repertoire]) -> None:
        """An empty selection is rejected."""
        store = await self.make_store(stored_repertoires)
        result = await store.add_songs(2, [])
        assert result.state == MutationState.REJECTED
        assert store.error == "No songs selected"

    @pytest.mark.asyncio
    async def test_failed_add_songs(self, stored_repertoires: list[Repertoire]) -> None:
        """A failed relation change restores the membership."""
        store = await self.make_store(stored_repertoires, fail_on={"add_songs"})
        assert not await store.add_songs(2, [1])
        assert store.find(2).song_ids == [3]

    @pytest.mark.asyncio
    async def test_remove_song(self, stored_repertoires: list[Repertoire]) -> None:
        """Removing keeps the rest in order."""
        store = await self.make_store(stored_repertoires)
        assert await store.remove_song(1, 2)
        assert store.find(1).song_ids == [1, 3]

    @pytest.mark.asyncio
    async def test_reorder(self, stored_repertoires: list[Repertoire]) -> None:
        """One song moves to a new position."""
        store = await self.make_store(stored_repertoires)
        assert await store.reorder_songs(1, 0, 2)
        assert store.find(1).song_ids == [2, 3, 1]
        assert (await store.gateway.get_by_id(1)).song_ids == [2, 3, 1]

    @pytest.mark.asyncio
    async def test_reorder_out_of_range(self, stored_repertoires: list[Repertoire]) -> None:
        """Bad positions are rejected and change nothing."""
        store = await self.make_store(stored_repertoires)
        result = await store.reorder_songs(1, 0, 7)
        assert result.state == MutationState.REJECTED
        assert store.find(1).song_ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_failed_reorder(self, stored_repertoires: list[Repertoire]) -> None:
        """A failed reorder restores the previous order."""
        store = await self.make_store(stored_repertoires, fail_on={"reorder"})
        assert not await store.set_song_order(1, [3, 2, 1])
        assert store.find(1).song_ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_update_keeps_membership(self, stored_repertoires: list[Repertoire]) -> None:
        """Plain updates never change which songs are in a repertoire."""
        store = await self.make_store(stored_repertoires)
        edited = store.find(1).model_copy(update={"name": "Saturday gig", "song_ids": []})
        result = await store.update(edited)
        assert result
        assert store.find(1).name == "Saturday gig"
        assert store.find(1).song_ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_membership_queries(
        self, stored_songs: list[Song], stored_repertoires: list[Repertoire]
    ) -> None:
        """Repertoires containing a song and songs of a repertoire."""
        store = await self.make_store(stored_repertoires)
        songs = await loaded_store(stored_songs)
        assert [r.id for r in store.repertoires_containing(3)] == [1, 2]
        assert [s.title for s in store.songs_in(1, songs)] == [
            "Blue Bossa",
            "Autumn Leaves",
            "So What",
        ]
        await songs.delete(2)
        assert [s.id for s in store.songs_in(1, songs)] == [1, 3]
        assert store.songs_in(99, songs) == []


class TestInMemoryGateway:
    """Tests for the in-memory gateways."""

    @pytest.mark.asyncio
    async def test_ids_never_reused(self) -> None:
        """Ids keep increasing after deletes."""
        gateway = InMemoryGateway()
        first = await gateway.create(make_song())
        await gateway.delete_by_id(first)
        assert await gateway.create(make_song()) == first + 1

    @pytest.mark.asyncio
    async def test_relation_on_missing_repertoire(self) -> None:
        """Relation operations on an unknown repertoire raise."""
        gateway = InMemoryRepertoireGateway()
        with pytest.raises(EntityNotFoundError):
            await gateway.add_songs_to_repertoire(5, [1])


class TestYamlGateway:
    """Tests for the YAML file gateways."""

    @pytest.mark.asyncio
    async def test_round_trip(self, temp_dir, sample_song: Song) -> None:
        """Songs survive a write and a fresh read."""
        path = temp_dir / "songs.yaml"
        gateway = YamlSongGateway(path)
        song_id = await gateway.create(sample_song)
        assert song_id == 1

        reloaded = await YamlSongGateway(path).get_by_id(1)
        assert reloaded.model_dump() == sample_song.model_copy(update={"id": 1}).model_dump()

        data = yaml.safe_load(path.read_text())
        assert data["next_id"] == 2
        assert data["items"][0]["title"] == "Blue Bossa"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, temp_dir, sample_song: Song) -> None:
        """Rows affected are reported."""
        gateway = YamlSongGateway(temp_dir / "songs.yaml")
        song_id = await gateway.create(sample_song)
        stored = await gateway.get_by_id(song_id)
        assert await gateway.update(stored.model_copy(update={"tempo": 80})) == 1
        assert (await gateway.get_by_id(song_id)).tempo == 80
        assert await gateway.update(stored.model_copy(update={"id": 7})) == 0
        assert await gateway.delete_by_id(song_id) == 1
        assert await gateway.delete_by_id(song_id) == 0
        assert await gateway.get_all() == []

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, temp_dir) -> None:
        """A missing file is an empty collection."""
        assert await YamlSongGateway(temp_dir / "none.yaml").get_all() == []

    @pytest.mark.asyncio
    async def test_corrupt_file(self, temp_dir) -> None:
        """Unreadable files raise PersistenceError."""
        path = temp_dir / "songs.yaml"
        path.write_text("items: [: bad")
        with pytest.raises(PersistenceError):
            await YamlSongGateway(path).get_all()

    @pytest.mark.asyncio
    async def test_store_over_yaml(self, temp_dir, sample_song: Song) -> None:
        """A store backed by a corrupt file rolls back and reports."""
        path = temp_dir / "songs.yaml"
        store = SongStore(YamlSongGateway(path))
        assert await store.add(sample_song)
        path.write_text("items: [: bad")
        result = await store.add(make_song("Other", "Someone"))
        assert result.state == MutationState.ROLLED_BACK
        assert store.count == 1

    @pytest.mark.asyncio
    async def test_repertoire_relations(self, temp_dir) -> None:
        """Relation operations persist membership."""
        gateway = YamlRepertoireGateway(temp_dir / "repertoires.yaml")
        rep_id = await gateway.create(Repertoire(name="Gig", song_ids=[1]))
        await gateway.add_songs_to_repertoire(rep_id, [2, 3])
        await gateway.remove_song_from_repertoire(rep_id, 1)
        await gateway.reorder_songs_in_repertoire(rep_id, [3, 2])
        assert (await gateway.get_by_id(rep_id)).song_ids == [3, 2]

        # Plain updates keep the stored membership
        stored = await gateway.get_by_id(rep_id)
        await gateway.update(stored.model_copy(update={"name": "Big gig", "song_ids": []}))
        reloaded = await gateway.get_by_id(rep_id)
        assert reloaded.name == "Big gig"
        assert reloaded.song_ids == [3, 2]

        with pytest.raises(EntityNotFoundError):
            await gateway.remove_song_from_repertoire(99, 1)
