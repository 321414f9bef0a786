"""
Entity Store - optimistic in-memory mirror of a persistence gateway.

Every mutation is applied to the local collection first, then sent to
the gateway. When the gateway call fails the local change is reverted
exactly, so the collection always equals the gateway's last confirmed
state plus whatever mutations are still in flight.

Mutations on the same id are serialized with a per-id asyncio.Lock held
across apply, gateway call and reconcile. Adds get unique negative
pending ids (-1, -2, ...) until the gateway assigns the real one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from chuk_mcp_chordgrid.constants import ErrorMessages
from chuk_mcp_chordgrid.exceptions import PersistenceError
from chuk_mcp_chordgrid.models.base import Entity

from .gateway import PersistenceGateway
from .result import MutationResult

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)

Validator = Callable[[T], list[str]]
Commit = Callable[[T], Awaitable[None]]


class EntityStore(Generic[T]):
    """
    Optimistic cache over one collection of aggregates.

    Args:
        gateway: Storage the collection mirrors
        validator: Returns blocking error messages for an entity;
            add and update are rejected when it returns any
    """

    entity_name = "Entity"

    def __init__(
        self,
        gateway: PersistenceGateway[T],
        validator: Validator[T] | None = None,
    ):
        self.gateway = gateway
        self._validator = validator
        self._items: list[T] = []
        self._error: str | None = None
        self._is_loading = False
        self._loaded = False
        self._next_pending_id = -1
        self._locks: dict[int, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[T]:
        """Snapshot of the collection in insertion order."""
        return list(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def error(self) -> str | None:
        """Message of the last failed operation, if any."""
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def clear_error(self) -> None:
        self._error = None

    def find(self, entity_id: int) -> T | None:
        """Local lookup; never touches the gateway."""
        index = self._index_of(entity_id)
        return self._items[index] if index is not None else None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Replace the collection with the gateway's current contents.

        Returns:
            True on success; on failure the collection is left unchanged
        """
        self._is_loading = True
        try:
            entities = await self.gateway.get_all()
        except Exception as e:
            self._error = ErrorMessages.LOAD_FAILED.format(entity=self.entity_name, reason=e)
            logger.warning("Failed to load %ss: %s", self.entity_name, e)
            return False
        finally:
            self._is_loading = False

        self._items = list(entities)
        self._loaded = True
        self._error = None
        logger.debug("Loaded %d %ss", len(self._items), self.entity_name)
        return True

    async def ensure_loaded(self) -> bool:
        """Load once; later calls are no-ops."""
        if self._loaded:
            return True
        return await self.load()

    async def get_by_id(self, entity_id: int) -> T | None:
        """
        Look an entity up locally, then in the gateway.

        Not-found is None, never an exception.
        """
        local = self.find(entity_id)
        if local is not None or entity_id <= 0:
            return local
        try:
            return await self.gateway.get_by_id(entity_id)
        except Exception as e:
            self._error = ErrorMessages.GET_FAILED.format(entity=self.entity_name, reason=e)
            logger.warning("Failed to get %s %s: %s", self.entity_name, entity_id, e)
            return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, entity: T) -> MutationResult[T]:
        """
        Insert under a pending id, then commit with the gateway's id.

        On failure the pending entry is removed and the collection is
        exactly as it was before the call.
        """
        self._error = None
        rejected = self._check(entity)
        if rejected is not None:
            return rejected

        pending_id = self._allocate_pending_id()
        pending = entity.model_copy(update={"id": pending_id})
        self._items.append(pending)

        try:
            new_id = await self.gateway.create(entity.model_copy(update={"id": None}))
            if not new_id or new_id <= 0:
                raise PersistenceError("create", ErrorMessages.NO_ID)
        except Exception as e:
            index = self._index_of(pending_id)
            if index is not None:
                del self._items[index]
            return self._rolled_back("add", ErrorMessages.ADD_FAILED, pending_id, e)

        committed = pending.model_copy(update={"id": new_id})
        index = self._index_of(pending_id)
        if index is not None:
            self._items[index] = committed
        else:
            self._items.append(committed)
        logger.debug("Committed add of %s %d", self.entity_name, new_id)
        return MutationResult.committed(committed)

    async def update(self, entity: T) -> MutationResult[T]:
        """Overwrite in place; the prior value is restored if the gateway fails."""
        self._error = None
        if entity.id is None:
            return self._reject(ErrorMessages.NEVER_SAVED.format(entity=self.entity_name))
        rejected = self._check(entity)
        if rejected is not None:
            return rejected
        return await self._mutate(entity.id, lambda _: entity, "update")

    async def delete(self, entity_id: int) -> MutationResult[T]:
        """
        Remove immediately; on failure reinsert at the same logical position.

        The logical position is "right after the entity that preceded it",
        which survives concurrent inserts and deletes elsewhere in the list.
        """
        self._error = None
        if entity_id <= 0:
            return self._reject(
                ErrorMessages.NOT_PERSISTED.format(entity=self.entity_name, entity_id=entity_id)
            )

        async with self._lock_for(entity_id):
            index = self._index_of(entity_id)
            if index is None:
                return self._reject(
                    ErrorMessages.NOT_FOUND.format(entity=self.entity_name, entity_id=entity_id)
                )
            removed = self._items.pop(index)
            predecessor = self._items[index - 1].id if index > 0 else None

            try:
                rows = await self.gateway.delete_by_id(entity_id)
                if rows == 0:
                    raise PersistenceError("delete", ErrorMessages.NO_ROWS)
            except Exception as e:
                self._reinsert(removed, predecessor, index)
                return self._rolled_back("delete", ErrorMessages.DELETE_FAILED, entity_id, e)

        self._locks.pop(entity_id, None)
        logger.debug("Committed delete of %s %d", self.entity_name, entity_id)
        return MutationResult.committed(removed)

    async def toggle_field(self, entity_id: int, field: str) -> MutationResult[T]:
        """Flip a boolean field, following the update protocol."""
        self._error = None

        def flip(current: T) -> T:
            value = getattr(current, field, None) if field in type(current).model_fields else None
            if not isinstance(value, bool):
                raise ValueError(f"{field!r} is not a boolean field")
            return current.model_copy(update={field: not value})

        return await self._mutate(entity_id, flip, "update")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        entity_id: int,
        change: Callable[[T], T],
        operation: str,
        commit: Commit[T] | None = None,
        validate: bool = False,
    ) -> MutationResult[T]:
        """
        Apply change() to the current value, commit it, reconcile.

        Args:
            entity_id: Id of the entity to change
            change: Builds the new value from the current one
            operation: Name used in logs and error messages
            commit: Gateway call for the new value (default: update)
            validate: Check the new value before applying it
        """
        if entity_id <= 0:
            return self._reject(
                ErrorMessages.NOT_PERSISTED.format(entity=self.entity_name, entity_id=entity_id)
            )

        async with self._lock_for(entity_id):
            index = self._index_of(entity_id)
            if index is None:
                return self._reject(
                    ErrorMessages.NOT_FOUND.format(entity=self.entity_name, entity_id=entity_id)
                )
            previous = self._items[index]
            try:
                updated = change(previous)
            except (ValueError, IndexError) as e:
                return self._reject(
                    ErrorMessages.INVALID_ENTITY.format(entity=self.entity_name, details=e)
                )
            if validate:
                rejected = self._check(updated)
                if rejected is not None:
                    return rejected
            self._items[index] = updated

            try:
                await (commit or self._commit_update)(updated)
            except Exception as e:
                restore = self._index_of(entity_id)
                if restore is not None:
                    self._items[restore] = previous
                return self._rolled_back(operation, ErrorMessages.UPDATE_FAILED, entity_id, e)

        logger.debug("Committed %s of %s %d", operation, self.entity_name, entity_id)
        return MutationResult.committed(updated)

    async def _commit_update(self, entity: T) -> None:
        rows = await self.gateway.update(entity)
        if rows == 0:
            raise PersistenceError("update", ErrorMessages.NO_ROWS)

    def _check(self, entity: T) -> MutationResult[T] | None:
        if self._validator is None:
            return None
        errors = self._validator(entity)
        if not errors:
            return None
        return self._reject(
            ErrorMessages.INVALID_ENTITY.format(entity=self.entity_name, details="; ".join(errors)),
            errors,
        )

    def _reject(self, message: str, errors: list[str] | None = None) -> MutationResult[T]:
        self._error = message
        return MutationResult.rejected(message, errors)

    def _rolled_back(
        self, operation: str, template: str, entity_id: int, error: Exception
    ) -> MutationResult[T]:
        logger.warning(
            "Rolled back %s of %s %s: %s", operation, self.entity_name, entity_id, error
        )
        self._error = template.format(entity=self.entity_name, reason=error)
        return MutationResult.rolled_back(self._error)

    def _reinsert(self, entity: T, predecessor: int | None, original_index: int) -> None:
        if predecessor is None:
            self._items.insert(0, entity)
            return
        index = self._index_of(predecessor)
        if index is None:
            self._items.insert(min(original_index, len(self._items)), entity)
        else:
            self._items.insert(index + 1, entity)

    def _index_of(self, entity_id: int) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == entity_id:
                return index
        return None

    def _allocate_pending_id(self) -> int:
        pending_id = self._next_pending_id
        self._next_pending_id -= 1
        return pending_id

    def _lock_for(self, entity_id: int) -> asyncio.Lock:
        lock = self._locks.get(entity_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[entity_id] = lock
        return lock
