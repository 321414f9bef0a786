"""
Repertoire store - the entity store specialised for set lists.

Membership changes go through the gateway's relation operations and
follow the same optimistic update protocol as field edits. A plain
update() never changes membership: the locally held song_ids win.
"""

from __future__ import annotations

from chuk_mcp_chordgrid.constants import ErrorMessages
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.models.song import Song

from .entity_store import EntityStore, Validator
from .gateway import RepertoireGateway
from .result import MutationResult
from .song_store import SongStore


def _validate(repertoire: Repertoire) -> list[str]:
    return repertoire.validate()


class RepertoireStore(EntityStore[Repertoire]):
    """Optimistic collection of repertoires."""

    entity_name = "Repertoire"

    def __init__(self, gateway: RepertoireGateway, validator: Validator[Repertoire] | None = None):
        super().__init__(gateway, validator or _validate)
        self.gateway: RepertoireGateway = gateway

    async def update(self, entity: Repertoire) -> MutationResult[Repertoire]:
        """Update name, description and date; membership is kept as held locally."""
        self._error = None
        if entity.id is None:
            return self._reject(ErrorMessages.NEVER_SAVED.format(entity=self.entity_name))
        rejected = self._check(entity)
        if rejected is not None:
            return rejected
        return await self._mutate(
            entity.id,
            lambda current: entity.model_copy(update={"song_ids": current.song_ids}),
            "update",
        )

    async def add_songs(
        self, repertoire_id: int, song_ids: list[int]
    ) -> MutationResult[Repertoire]:
        """Append songs to the play order; songs already present are skipped."""
        self._error = None
        if not song_ids:
            return self._reject(ErrorMessages.NO_SONGS_SELECTED)
        if any(song_id <= 0 for song_id in song_ids):
            return self._reject(
                ErrorMessages.INVALID_ENTITY.format(
                    entity=self.entity_name, details="only saved songs can be added"
                )
            )
        return await self._mutate(
            repertoire_id,
            lambda repertoire: repertoire.with_songs_added(song_ids),
            "add_songs",
            lambda _: self.gateway.add_songs_to_repertoire(repertoire_id, song_ids),
        )

    async def remove_song(self, repertoire_id: int, song_id: int) -> MutationResult[Repertoire]:
        self._error = None
        return await self._mutate(
            repertoire_id,
            lambda repertoire: repertoire.with_song_removed(song_id),
            "remove_song",
            lambda _: self.gateway.remove_song_from_repertoire(repertoire_id, song_id),
        )

    async def reorder_songs(
        self, repertoire_id: int, old_index: int, new_index: int
    ) -> MutationResult[Repertoire]:
        """Move one song from one play position to another."""
        self._error = None
        return await self._mutate(
            repertoire_id,
            lambda repertoire: repertoire.with_song_moved(old_index, new_index),
            "reorder_songs",
            lambda updated: self.gateway.reorder_songs_in_repertoire(
                repertoire_id, updated.song_ids
            ),
        )

    async def set_song_order(
        self, repertoire_id: int, ordered_song_ids: list[int]
    ) -> MutationResult[Repertoire]:
        """Replace the whole play order; must contain exactly the current songs."""
        self._error = None
        return await self._mutate(
            repertoire_id,
            lambda repertoire: repertoire.with_song_order(ordered_song_ids),
            "set_song_order",
            lambda updated: self.gateway.reorder_songs_in_repertoire(
                repertoire_id, updated.song_ids
            ),
        )

    def repertoires_containing(self, song_id: int) -> list[Repertoire]:
        return [repertoire for repertoire in self._items if song_id in repertoire.song_ids]

    def songs_in(self, repertoire_id: int, songs: SongStore) -> list[Song]:
        """Songs of a repertoire in play order; ids missing from the song store are skipped."""
        repertoire = self.find(repertoire_id)
        if repertoire is None:
            return []
        result = []
        for song_id in repertoire.song_ids:
            song = songs.find(song_id)
            if song is not None:
                result.append(song)
        return result
