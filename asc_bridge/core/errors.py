"""Failure taxonomy for App Store Connect API access.

Every failure crossing the client boundary is one of the classes below, so
callers can decide per kind whether to retry, surface or abort.
"""
from typing import Optional

from pydantic import BaseModel


class ErrorEnvelope(BaseModel):
    """One entry of the ``{"errors": [...]}`` payload returned on failure."""

    status: str = ""
    code: str = ""
    title: str = ""
    detail: str = ""


class AppStoreConnectError(Exception):
    """Base exception for App Store Connect access failures."""
    pass


class CredentialError(AppStoreConnectError):
    """Raised when the private key cannot be loaded or the token cannot be signed."""
    pass


class AuthRejectedError(AppStoreConnectError):
    """Raised when the API answers 401 to a signed request."""

    def __init__(self, message: str = "Authentication failed. Please check your API credentials."):
        self.status_code = 401
        super().__init__(message)


class RateLimitedError(AppStoreConnectError):
    """Raised when the API answers 429."""

    def __init__(self, retry_after: Optional[float] = None):
        self.status_code = 429
        self.retry_after = retry_after
        message = "Rate limit exceeded. Please try again later."
        if retry_after is not None:
            message = f"Rate limit exceeded. Retry after {retry_after:.0f}s"
        super().__init__(message)


class RemoteApiError(AppStoreConnectError):
    """Raised for any other 4xx/5xx answer."""

    def __init__(self, status_code: int, errors: Optional[list[ErrorEnvelope]] = None):
        self.status_code = status_code
        self.errors = errors or []
        if self.errors:
            first = self.errors[0]
            message = f"{first.title}: {first.detail}"
        else:
            message = f"HTTP {status_code}"
        super().__init__(message)


class TransportError(AppStoreConnectError):
    """Raised when the request never produced a usable HTTP response."""
    pass
