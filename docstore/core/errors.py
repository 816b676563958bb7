# docstore/core/errors.py
from typing import Any


class DocstoreError(Exception):
    """Base class for failures surfaced to HTTP clients."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None, detail: Any = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.detail is not None:
            body["error"] = self.detail
        return body


class NotFoundError(DocstoreError):
    status_code = 404
    message = "Not found"


class ConflictError(DocstoreError):
    # duplicate usernames are reported as a plain bad request
    status_code = 400
    message = "Conflict"


class UnauthorizedError(DocstoreError):
    status_code = 401
    message = "Unauthorized"


class ValidationFailure(DocstoreError):
    status_code = 400
    message = "Invalid request"


class StorageFailure(DocstoreError):
    status_code = 500
    message = "Storage error"

    @classmethod
    def from_exception(cls, message: str, exc: Exception) -> "StorageFailure":
        """Wrap an I/O or decode error without leaking filesystem paths."""
        reason = getattr(exc, "strerror", None) or getattr(exc, "msg", None)
        detail = type(exc).__name__ if not reason else f"{type(exc).__name__}: {reason}"
        return cls(message, detail=detail)
