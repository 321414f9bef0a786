"""
Song store - the entity store specialised for songs.
"""

from __future__ import annotations

from typing import Any

from chuk_mcp_chordgrid.constants import MAX_TRANSPOSITION, ErrorMessages
from chuk_mcp_chordgrid.core.transpose import validate_transposition
from chuk_mcp_chordgrid.models.song import Song

from .entity_store import EntityStore, Validator
from .gateway import PersistenceGateway
from .result import MutationResult


def _validate(song: Song) -> list[str]:
    return song.validate()


class SongStore(EntityStore[Song]):
    """
    Optimistic collection of songs.

    Songs are validated before add and update; a song is saved whole,
    sections and measures included, or not at all.
    """

    entity_name = "Song"

    def __init__(self, gateway: PersistenceGateway[Song], validator: Validator[Song] | None = None):
        super().__init__(gateway, validator or _validate)

    @property
    def favorites(self) -> list[Song]:
        return [song for song in self._items if song.is_favorite]

    async def update(self, entity: Song) -> MutationResult[Song]:
        return await super().update(entity.touch())

    async def edit(self, song_id: int, changes: dict[str, Any]) -> MutationResult[Song]:
        """
        Change some fields of a stored song.

        Changes apply to the song as held once its lock is acquired,
        never to an earlier snapshot. The result is validated first.
        """
        self._error = None
        unknown = sorted((set(changes) - set(Song.model_fields)) | (set(changes) & {"id"}))
        if unknown:
            return self._reject(
                ErrorMessages.INVALID_ENTITY.format(
                    entity=self.entity_name, details=f"cannot edit {', '.join(unknown)}"
                )
            )
        return await self._mutate(
            song_id,
            lambda song: song.model_copy(update=changes).touch(),
            "update",
            validate=True,
        )

    async def toggle_favorite(self, song_id: int) -> MutationResult[Song]:
        return await self.toggle_field(song_id, "is_favorite")

    async def transpose(self, song_id: int, semitones: int) -> MutationResult[Song]:
        """Move a stored song's key and chords, following the update protocol."""
        self._error = None
        if abs(semitones) > MAX_TRANSPOSITION:
            return self._reject(validate_transposition(semitones)[0])
        return await self._mutate(song_id, lambda song: song.transpose(semitones), "transpose")
