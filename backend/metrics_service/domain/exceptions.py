"""Domain-specific exceptions: framework-independent.

Every error the service surfaces derives from ``MetricsServiceError`` and
carries the HTTP status the presentation layer maps it to.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    """A single invalid input field."""

    field: str
    message: str


class MetricsServiceError(Exception):
    """Base class for all errors raised by the metrics service."""

    status_code = 500
    error = "Server Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MetricsServiceError):
    """Raised when input is malformed, missing, or out of range.

    Always lists every violation, not just the first one found.
    """

    status_code = 400
    error = "Validation Error"

    def __init__(self, violations: list[FieldViolation] | FieldViolation):
        if isinstance(violations, FieldViolation):
            violations = [violations]
        self.violations = list(violations)
        fields = ", ".join(v.field for v in self.violations)
        super().__init__(f"Invalid input: {fields}")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(FieldViolation(field=field, message=message))


class ConflictError(MetricsServiceError):
    """Raised when a record with the same natural key already exists."""

    status_code = 409
    error = "Conflict"

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}='{value}' already exists")


class NotFoundError(MetricsServiceError):
    """Raised when no record matches within the caller's scope.

    Covers both a missing record and one owned by another actor.
    """

    status_code = 404
    error = "Not Found"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} '{entity_id}' not found or access denied")


class AuthenticationError(MetricsServiceError):
    """Raised when the bearer token is missing, malformed, or rejected."""

    status_code = 401
    error = "Authentication Failed"


class AuthorizationError(MetricsServiceError):
    """Raised when an authenticated caller lacks the role for an operation."""

    status_code = 403
    error = "Access Denied"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Admin privileges required for {operation}")


class UpstreamError(MetricsServiceError):
    """Raised when the durable store or another dependency is failing."""

    status_code = 503
    error = "Service Unavailable"

    def __init__(self, dependency: str, message: str = "Dependency unavailable"):
        self.dependency = dependency
        super().__init__(f"[{dependency}] {message}")


class UnknownError(MetricsServiceError):
    """Catch-all for internal faults."""

    status_code = 500
    error = "Internal Server Error"
