"""
Mutation results returned by entity stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class MutationState(str, Enum):
    """Lifecycle state of an optimistic mutation."""

    PENDING = "pending"  # Applied locally, gateway call in flight
    COMMITTED = "committed"  # Gateway confirmed
    ROLLED_BACK = "rolled_back"  # Gateway failed, local change reverted
    REJECTED = "rejected"  # Never reached the gateway


@dataclass
class MutationResult(Generic[T]):
    """
    Outcome of a store mutation.

    Truthy when the mutation committed. On failure, error holds the
    single message also stored as the store's current error, and
    errors holds itemized validation messages when there are any.
    """

    state: MutationState
    entity: T | None = None
    error: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == MutationState.COMMITTED

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def committed(cls, entity: T) -> MutationResult[T]:
        return cls(MutationState.COMMITTED, entity=entity)

    @classmethod
    def rolled_back(cls, error: str, entity: T | None = None) -> MutationResult[T]:
        return cls(MutationState.ROLLED_BACK, entity=entity, error=error)

    @classmethod
    def rejected(cls, error: str, errors: list[str] | None = None) -> MutationResult[T]:
        return cls(MutationState.REJECTED, error=error, errors=list(errors or []))
