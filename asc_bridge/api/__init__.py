"""REST access to the App Store Connect API."""
from .client import (
    API_BASE_URL,
    PacedApiClient,
    build_auth_headers,
    parse_error_envelopes,
    raise_for_api_error,
)
from .resources import (
    App,
    Build,
    build_query,
    create_app,
    get_app,
    list_apps,
    list_builds,
)

__all__ = [
    "API_BASE_URL",
    "PacedApiClient",
    "build_auth_headers",
    "parse_error_envelopes",
    "raise_for_api_error",
    "App",
    "Build",
    "build_query",
    "create_app",
    "get_app",
    "list_apps",
    "list_builds",
]
