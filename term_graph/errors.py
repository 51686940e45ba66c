"""Error types raised by the relationship engine."""


class TermGraphError(ValueError):
    """Base class for engine errors."""

    error_type = "error"


class NotFoundError(TermGraphError):
    """A referenced term or relationship does not exist."""

    error_type = "not_found"

    def __init__(self, resource: str, identifier: str | None = None):
        self.resource = resource
        self.identifier = identifier
        if identifier:
            message = f'{resource} with ID "{identifier}" not found'
        else:
            message = f"{resource} not found"
        super().__init__(message)


class ConflictError(TermGraphError):
    """A relationship with the same (source, target, type) already exists."""

    error_type = "conflict"


class InvalidArgumentError(TermGraphError):
    """Request violates a structural invariant (self-loop, cycle, bad type)."""

    error_type = "invalid_argument"
