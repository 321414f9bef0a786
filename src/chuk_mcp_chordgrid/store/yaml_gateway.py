"""
YAML file gateways - durable storage for songs and repertoires.

Each collection lives in one YAML document:

    next_id: 4
    items:
      - id: 1
        title: ...

Every write rewrites the whole document. I/O and parse failures are
raised as PersistenceError.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, TypeVar

import yaml

from chuk_mcp_chordgrid.exceptions import EntityNotFoundError, PersistenceError
from chuk_mcp_chordgrid.models.base import Entity
from chuk_mcp_chordgrid.models.repertoire import Repertoire
from chuk_mcp_chordgrid.models.song import Song

from .gateway import PersistenceGateway, RepertoireGateway

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


class YamlFileGateway(PersistenceGateway[T]):
    """
    Gateway persisting one entity type to a YAML file.

    Args:
        path: File holding the collection (created on first write)
        model: Pydantic model class of the stored entities
    """

    def __init__(self, path: Path, model: type[T]):
        self.path = path
        self.model = model
        self._lock = asyncio.Lock()

    async def create(self, entity: T) -> int:
        async with self._lock:
            next_id, items = self._read("create")
            stored = entity.model_copy(update={"id": next_id})
            items[next_id] = stored
            self._write("create", next_id + 1, items)
            logger.debug("Created %s %d in %s", self.model.__name__, next_id, self.path)
            return next_id

    async def update(self, entity: T) -> int:
        async with self._lock:
            next_id, items = self._read("update")
            if entity.id is None or entity.id not in items:
                return 0
            items[entity.id] = self._merge(items[entity.id], entity)
            self._write("update", next_id, items)
            return 1

    async def delete_by_id(self, entity_id: int) -> int:
        async with self._lock:
            next_id, items = self._read("delete")
            if items.pop(entity_id, None) is None:
                return 0
            self._write("delete", next_id, items)
            return 1

    async def get_by_id(self, entity_id: int) -> T | None:
        _, items = self._read("get")
        return items.get(entity_id)

    async def get_all(self) -> list[T]:
        _, items = self._read("load")
        return list(items.values())

    def _merge(self, stored: T, entity: T) -> T:
        """Value written by update(); subclasses keep fields owned elsewhere."""
        return entity

    def _read(self, operation: str) -> tuple[int, dict[int, T]]:
        if not self.path.exists():
            return 1, {}
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
            items: dict[int, T] = {}
            for raw in data.get("items", []):
                entity = self.model.model_validate(raw)
                if entity.id is not None:
                    items[entity.id] = entity
            next_id = int(data.get("next_id", max(items, default=0) + 1))
            return next_id, items
        except (OSError, yaml.YAMLError, ValueError) as e:
            raise PersistenceError(operation, f"cannot read {self.path}: {e}") from e

    def _write(self, operation: str, next_id: int, items: dict[int, T]) -> None:
        document: dict[str, Any] = {
            "next_id": next_id,
            "items": [item.model_dump(mode="json") for item in items.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(operation, f"cannot write {self.path}: {e}") from e


class YamlSongGateway(YamlFileGateway[Song]):
    """Songs stored in a YAML file."""

    def __init__(self, path: Path):
        super().__init__(path, Song)


class YamlRepertoireGateway(YamlFileGateway[Repertoire], RepertoireGateway):
    """Repertoires stored in a YAML file, membership included."""

    def __init__(self, path: Path):
        super().__init__(path, Repertoire)

    def _merge(self, stored: Repertoire, entity: Repertoire) -> Repertoire:
        return entity.model_copy(update={"song_ids": stored.song_ids})

    async def add_songs_to_repertoire(self, repertoire_id: int, song_ids: list[int]) -> None:
        await self._change(
            "add_songs_to_repertoire", repertoire_id, lambda r: r.with_songs_added(song_ids)
        )

    async def remove_song_from_repertoire(self, repertoire_id: int, song_id: int) -> None:
        await self._change(
            "remove_song_from_repertoire", repertoire_id, lambda r: r.with_song_removed(song_id)
        )

    async def reorder_songs_in_repertoire(
        self, repertoire_id: int, ordered_song_ids: list[int]
    ) -> None:
        await self._change(
            "reorder_songs_in_repertoire",
            repertoire_id,
            lambda r: r.with_song_order(ordered_song_ids),
        )

    async def _change(self, operation: str, repertoire_id: int, change: Any) -> None:
        async with self._lock:
            next_id, items = self._read(operation)
            repertoire = items.get(repertoire_id)
            if repertoire is None:
                raise EntityNotFoundError(operation, "Repertoire", repertoire_id)
            items[repertoire_id] = change(repertoire)
            self._write(operation, next_id, items)
