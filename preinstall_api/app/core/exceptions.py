"""
Domain exceptions raised by the store and service layers.

Services never raise ``HTTPException`` themselves; the endpoint
modules translate these errors into HTTP responses.
"""

from typing import Iterable, Optional


class PreInstallError(Exception):
    """Base class for all application errors."""


class ValidationError(PreInstallError):
    """A submission payload is missing required data or is otherwise invalid."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = list(fields or [])


class UploadTooLargeError(ValidationError):
    """An uploaded file exceeded the configured size limit."""


class NotFoundError(PreInstallError):
    """The requested submission does not exist."""


class StorageError(PreInstallError):
    """The underlying SQLite database failed to complete an operation."""
