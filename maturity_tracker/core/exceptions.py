"""
Service-layer exception hierarchy.

Every service raises one of these types; blueprints register a handler per
type once and get consistent HTTP status codes everywhere.

All validation happens before any mutation starts, so every error except
InternalError leaves the database untouched.

Usage:
    from maturity_tracker.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Campaign", resource_id=42)
    raise ValidationError("Invalid status", details={"status": "..."})
"""


class NotFoundError(Exception):
    """Raised when a referenced entity does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Campaign", "Service").
        resource_id: The PK that was looked up.
        message: Optional override for the default "<resource> not found" text.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource} not found"
        super().__init__(message)


class ValidationError(Exception):
    """Raised when a value fails enum or range validation.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness rule.

    Maps to HTTP 409.

    Args:
        resource: Entity name.
        field: The unique field (or field pair) that would be duplicated.
        value: The conflicting value.
        message: Optional override for the generated message.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | int | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        if message is None:
            message = f"{resource} with {field}={value!r} already exists"
        super().__init__(message)


class InvalidStateError(Exception):
    """Raised when the current lifecycle state forbids the operation.

    Example: adding a participant to a completed campaign.
    Maps to HTTP 409.
    """

    def __init__(self, message: str, state: str | None = None) -> None:
        self.state = state
        super().__init__(message)


class InvalidTransitionError(Exception):
    """Raised when a status change is disallowed by the lifecycle rules.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, current: str, requested: str) -> None:
        self.resource = resource
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status of a {current} {resource.lower()}")


class InternalError(Exception):
    """Raised when the storage layer fails mid-transaction.

    The transaction has already been rolled back when this is raised.
    Maps to HTTP 500.
    """


class AuthenticationError(Exception):
    """Raised when credentials are missing or invalid. Maps to HTTP 401."""
