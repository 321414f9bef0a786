"""
Persistence gateways - the boundary between entity stores and storage.

A gateway knows nothing about optimistic state. It assigns ids on
create, reports rows affected on update/delete, and raises
PersistenceError when the storage call fails.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from chuk_mcp_chordgrid.exceptions import EntityNotFoundError
from chuk_mcp_chordgrid.models.base import Entity
from chuk_mcp_chordgrid.models.repertoire import Repertoire

T = TypeVar("T", bound=Entity)


class PersistenceGateway(ABC, Generic[T]):
    """Abstract storage for one aggregate type."""

    @abstractmethod
    async def create(self, entity: T) -> int:
        """Store a new entity and return its assigned id."""

    @abstractmethod
    async def update(self, entity: T) -> int:
        """Overwrite a stored entity; returns rows affected (0 when missing)."""

    @abstractmethod
    async def delete_by_id(self, entity_id: int) -> int:
        """Delete by id; returns rows affected (0 when missing)."""

    @abstractmethod
    async def get_by_id(self, entity_id: int) -> T | None:
        """Fetch one entity, or None when it does not exist."""

    @abstractmethod
    async def get_all(self) -> list[T]:
        """Fetch every entity in storage order."""


class RepertoireGateway(PersistenceGateway[Repertoire]):
    """Repertoire storage plus the song membership relation."""

    @abstractmethod
    async def add_songs_to_repertoire(self, repertoire_id: int, song_ids: list[int]) -> None:
        """Append songs to a repertoire, skipping songs already in it."""

    @abstractmethod
    async def remove_song_from_repertoire(self, repertoire_id: int, song_id: int) -> None:
        """Remove one song from a repertoire."""

    @abstractmethod
    async def reorder_songs_in_repertoire(
        self, repertoire_id: int, ordered_song_ids: list[int]
    ) -> None:
        """Replace a repertoire's play order."""


class InMemoryGateway(PersistenceGateway[T]):
    """
    Dictionary-backed gateway.

    Used by tests and as the default storage of an unconfigured server.
    Ids start at 1 and are never reused.
    """

    def __init__(self, entities: list[T] | None = None):
        self._items: dict[int, T] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()
        for entity in entities or []:
            entity_id = entity.id if entity.id is not None and entity.id > 0 else self._next_id
            self._items[entity_id] = entity.model_copy(update={"id": entity_id})
            self._next_id = max(self._next_id, entity_id + 1)

    async def create(self, entity: T) -> int:
        async with self._lock:
            entity_id = self._next_id
            self._next_id += 1
            self._items[entity_id] = entity.model_copy(update={"id": entity_id})
            return entity_id

    async def update(self, entity: T) -> int:
        async with self._lock:
            if entity.id is None or entity.id not in self._items:
                return 0
            self._items[entity.id] = entity
            return 1

    async def delete_by_id(self, entity_id: int) -> int:
        async with self._lock:
            return 1 if self._items.pop(entity_id, None) is not None else 0

    async def get_by_id(self, entity_id: int) -> T | None:
        return self._items.get(entity_id)

    async def get_all(self) -> list[T]:
        return list(self._items.values())


class InMemoryRepertoireGateway(InMemoryGateway[Repertoire], RepertoireGateway):
    """In-memory repertoire storage with the membership relation."""

    async def update(self, entity: Repertoire) -> int:
        # Membership is owned by the relation operations
        async with self._lock:
            if entity.id is None or entity.id not in self._items:
                return 0
            stored = self._items[entity.id]
            self._items[entity.id] = entity.model_copy(update={"song_ids": stored.song_ids})
            return 1

    async def add_songs_to_repertoire(self, repertoire_id: int, song_ids: list[int]) -> None:
        async with self._lock:
            repertoire = self._require(repertoire_id, "add_songs_to_repertoire")
            self._items[repertoire_id] = repertoire.with_songs_added(song_ids)

    async def remove_song_from_repertoire(self, repertoire_id: int, song_id: int) -> None:
        async with self._lock:
            repertoire = self._require(repertoire_id, "remove_song_from_repertoire")
            self._items[repertoire_id] = repertoire.with_song_removed(song_id)

    async def reorder_songs_in_repertoire(
        self, repertoire_id: int, ordered_song_ids: list[int]
    ) -> None:
        async with self._lock:
            repertoire = self._require(repertoire_id, "reorder_songs_in_repertoire")
            self._items[repertoire_id] = repertoire.with_song_order(ordered_song_ids)

    def _require(self, repertoire_id: int, operation: str) -> Repertoire:
        repertoire = self._items.get(repertoire_id)
        if repertoire is None:
            raise EntityNotFoundError(operation, "Repertoire", repertoire_id)
        return repertoire
