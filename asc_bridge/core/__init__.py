"""Core modules for the App Store Connect bridge."""
from .config import Settings, settings
from .errors import (
    AppStoreConnectError,
    AuthRejectedError,
    CredentialError,
    RateLimitedError,
    RemoteApiError,
    TransportError,
)
from .logging_config import configure_logging
from .rate_limiter import PacingGate, get_pacing_gate

__all__ = [
    "Settings",
    "settings",
    "AppStoreConnectError",
    "AuthRejectedError",
    "CredentialError",
    "RateLimitedError",
    "RemoteApiError",
    "TransportError",
    "PacingGate",
    "get_pacing_gate",
    "configure_logging",
]
