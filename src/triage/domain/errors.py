"""Domain-specific exception classes for the triage engine."""


class TriageError(Exception):
    """Base class for all domain errors in the triage engine."""


class InvalidInputError(TriageError):
    """Raised when a caller violates an operation's input contract.

    Ambiguous resolutions are never reported through this error; they are
    ordinary return values.
    """


class StorageError(TriageError):
    """Raised by a storage writer when a mutation could not be applied.

    Attributes:
        entity_id: The identifier of the entity the write targeted.
    """

    def __init__(self, entity_id: str, message: str) -> None:
        self.entity_id = entity_id
        super().__init__(message)


class EntityNotFoundError(StorageError):
    """Raised when a storage collaborator has no row for the requested id.

    Attributes:
        entity_type: Human-readable entity kind (e.g. ``"message"``).
    """

    def __init__(self, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        super().__init__(entity_id, f"{entity_type} not found: {entity_id}")
