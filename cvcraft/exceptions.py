"""Custom exceptions for cvcraft.

Every failure is scoped to the operation that raised it: none of these should
end an editing session.
"""

from typing import Iterable, Optional


class CvcraftError(Exception):
    """Base class for all cvcraft errors."""


class ValidationError(CvcraftError):
    """
    Raised when a record is submitted without its required fields.

    Attributes:
        missing_fields: Names of the required fields that were blank
    """

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Missing required field(s): {', '.join(self.missing_fields)}"
        )


class UploadError(CvcraftError):
    """
    Raised when a profile image is rejected.

    Attributes:
        size: Size of the rejected payload in bytes
        limit: Maximum accepted size in bytes (None when the payload was
            rejected for not being an image)
    """

    def __init__(self, message: str, size: int = 0, limit: Optional[int] = None):
        self.size = size
        self.limit = limit
        super().__init__(message)


class PersistenceError(CvcraftError):
    """
    Raised when the record store fails to create, list, get or delete.

    Attributes:
        operation: The store operation that failed
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class ExportError(CvcraftError):
    """Raised when a rendered view cannot be turned into a document."""


class AuthenticationError(CvcraftError):
    """Raised when an operation needs a signed-in user and there is none."""


class FormBusyError(CvcraftError):
    """Raised when a form is submitted while a previous submit is in flight."""
