"""Sync layer exceptions for error handling."""

from typing import Optional


class ApiError(Exception):
    """Base exception for BeatWave API calls."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NetworkUnavailableError(ApiError):
    """Raised when the API cannot be reached or does not answer in time."""

    pass


class RemoteWriteError(ApiError):
    """Raised when a mutation was rejected or could not be persisted."""

    pass


class UnauthenticatedError(Exception):
    """Raised when an operation needs a signed-in account and there is none."""

    def __init__(self, action: str = "this action"):
        self.action = action
        super().__init__(f"Sign in required for {action}")
