"""Service error hierarchy.

All errors that a handler may raise on purpose extend ServiceError. Each
class carries the HTTP status and the stable machine-readable ``code`` that
the exception handlers put into the error envelope; ``message`` is
human-readable and may change without notice.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base error for all service-specific errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Payload or parameter validation failures, with field-level details."""

    status_code = 422
    code = "VALIDATION_ERROR"
    message = "Validation error"


class InvalidPaginationError(ValidationError):
    """Pagination parameters that cannot produce a page count (limit <= 0)."""

    status_code = 400
    code = "INVALID_PAGINATION"
    message = "Pagination limit must be greater than zero"


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found"


class NotReadyError(ServiceError):
    """A configured dependency failed its readiness probe."""

    status_code = 503
    code = "NOT_READY"
    message = "Service not ready"


class ProbeFailedError(ServiceError):
    """A dependency probe errored or exceeded its deadline.

    Never crosses the HTTP boundary as-is: the health subsystem turns it into
    an ``unhealthy`` service state or a ``NotReadyError``.
    """

    status_code = 503
    code = "PROBE_FAILED"
    message = "Dependency probe failed"
