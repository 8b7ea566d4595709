"""Error taxonomy shared by the entry store, its HTTP routes and the client."""

from __future__ import annotations


class DiaryError(Exception):
    """Base class for expected diary failures.

    ``status`` is the HTTP status the server answers with and ``error`` the
    short title rendered next to the message.
    """

    status = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(DiaryError, ValueError):
    """Malformed date, device id or missing field, rejected before the store."""

    status = 400
    error = "Invalid request"

    def __init__(self, message: str | None = None, *, error: str | None = None) -> None:
        if error:
            self.error = error
        super().__init__(message)


class NotFoundError(DiaryError, LookupError):
    status = 404
    error = "Entry not found"


class ConflictError(DiaryError):
    status = 409
    error = "Entry already exists"


class TransientError(DiaryError):
    """The store could not be reached; the caller may retry later."""

    status = 503
    error = "Store unreachable"


class StoreUnavailableError(DiaryError):
    status = 503
    error = "Service unavailable"


class InternalError(DiaryError):
    status = 500
    error = "Internal server error"


__all__ = [
    "DiaryError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TransientError",
    "StoreUnavailableError",
    "InternalError",
]
