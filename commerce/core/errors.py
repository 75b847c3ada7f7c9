"""Error kinds surfaced by the order and payment lifecycles."""


class CommerceError(Exception):
    """Base exception for all lifecycle errors."""

    pass


class ValidationError(CommerceError, ValueError):
    """Raised when input is malformed or out of range."""

    pass


class StateError(CommerceError):
    """Raised when an operation is not permitted in the aggregate's current status."""

    pass


class NotFoundError(CommerceError, LookupError):
    """Raised when the repository has no aggregate for an identifier."""

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"not found: {entity_id}")
