class ChordGridError(Exception):
    """Base exception for chuk-mcp-chordgrid."""


class PersistenceError(ChordGridError):
    """Raised by a persistence gateway when a storage operation fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class EntityNotFoundError(PersistenceError):
    """Raised by a gateway when a relation operation targets a missing entity."""

    def __init__(self, operation: str, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(operation, f"{entity} {entity_id} not found")
