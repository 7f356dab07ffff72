"""Document store exceptions for error handling."""

from typing import Optional


class StoreError(Exception):
    """Base exception for document store operations."""

    pass


class BlobNotFoundError(StoreError):
    """Raised when a document is required but does not exist."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Document not found: {path}")


class VersionConflictError(StoreError):
    """Raised when a conditional write carries a stale version token."""

    def __init__(
        self, path: str, expected: Optional[str] = None, message: Optional[str] = None
    ):
        self.path = path
        self.expected = expected
        super().__init__(message or f"Version conflict writing {path}")


class RetriesExhaustedError(StoreError):
    """Raised when an optimistic update keeps conflicting."""

    def __init__(self, path: str, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"Gave up updating {path} after {attempts} conflicting attempts")
