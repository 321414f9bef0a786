"""
Entity base model - identity shared by songs and repertoires.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Entity(BaseModel):
    """
    An aggregate with a numeric identity.

    id is None before the entity is first saved. Negative ids mark an
    optimistic copy waiting for the store to assign a real id.

    Immutable: changes are made with model_copy(update=...).
    """

    id: int | None = Field(None, description="Store-assigned id (None = not saved)")

    model_config = {"frozen": True}

    @property
    def is_persisted(self) -> bool:
        """True once the store has assigned a real id."""
        return self.id is not None and self.id > 0

    @property
    def is_pending(self) -> bool:
        """True while an optimistic add is waiting for its real id."""
        return self.id is not None and self.id < 0

    def with_id(self, entity_id: int | None) -> Entity:
        """Copy of this entity carrying another id."""
        return self.model_copy(update={"id": entity_id})
