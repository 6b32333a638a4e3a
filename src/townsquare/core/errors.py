"""Typed failures raised by the service layer.

Every error carries a short public ``message`` that is safe to show to end
users and an HTTP ``status_code`` used by the API exception handler. Internal
causes are chained with ``raise ... from`` and logged, never rendered.
"""

from __future__ import annotations


class TownsquareError(Exception):
    """Base class for all domain failures."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed"
    retryable: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(TownsquareError):
    """Referenced entity is missing or inactive."""

    status_code = 404
    code = "not_found"
    default_message = "Not found"


class DuplicateSlug(TownsquareError):
    """Generated slug already exists within its scope."""

    status_code = 409
    code = "duplicate_slug"
    default_message = "An entry with this name already exists"


class InvalidName(TownsquareError):
    """Name does not produce a usable slug."""

    status_code = 422
    code = "invalid_name"
    default_message = "Name must contain at least one letter or digit"


class Forbidden(TownsquareError):
    """Actor is not allowed to perform the action."""

    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class CycleDetected(TownsquareError):
    """A comment parent chain revisits one of its ancestors."""

    status_code = 500
    code = "cycle_detected"
    default_message = "Comment thread is corrupted"


class InvalidPostShape(TownsquareError):
    """Post fields do not match its declared type."""

    status_code = 422
    code = "invalid_post_shape"
    default_message = "Post content does not match its type"


class ValidationFailure(TownsquareError):
    """Missing or inconsistent input."""

    status_code = 422
    code = "validation_failure"
    default_message = "Invalid input"


class TransientStoreFailure(TownsquareError):
    """Store timed out or was unreachable; the caller may retry."""

    status_code = 503
    code = "transient_store_failure"
    default_message = "Service temporarily unavailable, please retry"
    retryable = True


__all__ = [
    "TownsquareError",
    "NotFound",
    "DuplicateSlug",
    "InvalidName",
    "Forbidden",
    "CycleDetected",
    "InvalidPostShape",
    "ValidationFailure",
    "TransientStoreFailure",
]
