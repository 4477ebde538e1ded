"""Authentication module for the App Store Connect API."""
from .jwt import (
    JWT_AUDIENCE,
    TOKEN_LIFETIME_SECONDS,
    TOKEN_REFRESH_BUFFER_SECONDS,
    Credentials,
    Token,
    TokenAuthenticator,
    create_authenticator_from_settings,
)

__all__ = [
    "JWT_AUDIENCE",
    "TOKEN_LIFETIME_SECONDS",
    "TOKEN_REFRESH_BUFFER_SECONDS",
    "Credentials",
    "Token",
    "TokenAuthenticator",
    "create_authenticator_from_settings",
]
