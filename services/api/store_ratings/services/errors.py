"""Domain errors raised by services.

Routes do not translate these by hand: create_app() registers a handler that
renders any StoreRatingError as the standard error envelope.
"""

from typing import Any


class StoreRatingError(Exception):
    """Base class for expected, client-facing failures."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(StoreRatingError):
    """Referenced user, store or rating does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationFailedError(StoreRatingError):
    code = "VALIDATION_FAILED"
    status_code = 400


class ConflictError(StoreRatingError):
    """Uniqueness violation (duplicate email, second rating for a store)."""

    code = "CONFLICT"
    status_code = 409


class AuthenticationError(StoreRatingError):
    code = "UNAUTHORIZED"
    status_code = 401


class PermissionDeniedError(StoreRatingError):
    code = "FORBIDDEN"
    status_code = 403
