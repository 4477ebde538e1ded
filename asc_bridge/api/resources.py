"""
Apps and builds.

Thin typed helpers over PacedApiClient for the resources the bridge exposes.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..core.errors import TransportError
from .client import PacedApiClient

logger = logging.getLogger(__name__)

DEFAULT_APP_FIELDS = ("bundleId", "name", "sku", "primaryLocale")
DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200


@dataclass
class App:
    """Represents an App Store Connect app."""
    id: str
    name: str = ""
    bundle_id: str = ""
    sku: str = ""
    primary_locale: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> "App":
        """Create App from an API resource object."""
        attributes = data.get("attributes") or {}
        return cls(
            id=data.get("id", ""),
            name=attributes.get("name", ""),
            bundle_id=attributes.get("bundleId", ""),
            sku=attributes.get("sku", ""),
            primary_locale=attributes.get("primaryLocale", ""),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "bundle_id": self.bundle_id,
            "sku": self.sku,
            "primary_locale": self.primary_locale,
        }


@dataclass
class Build:
    """Represents an uploaded build."""
    id: str
    version: str = ""
    uploaded_date: str = ""
    processing_state: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> "Build":
        """Create Build from an API resource object."""
        attributes = data.get("attributes") or {}
        return cls(
            id=data.get("id", ""),
            version=attributes.get("version", ""),
            uploaded_date=attributes.get("uploadedDate", ""),
            processing_state=attributes.get("processingState", ""),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "version": self.version,
            "uploaded_date": self.uploaded_date,
            "processing_state": self.processing_state,
        }


def build_query(
    resource: str,
    fields: Optional[Sequence[str]] = None,
    filters: Optional[dict[str, str]] = None,
    limit: Optional[int] = None,
) -> dict[str, Any]:
    """
    Build query parameters in the API's sparse-fieldset convention.

    Args:
        resource: Resource type the field selection applies to, e.g. "apps"
        fields: Attribute names to return
        filters: Filter values keyed by attribute
        limit: Page size

    Returns:
        Query parameters such as {"fields[apps]": "name,sku", "limit": 50}
    """
    params: dict[str, Any] = {}
    if limit:
        params["limit"] = limit
    if fields:
        params[f"fields[{resource}]"] = ",".join(fields)
    for key, value in (filters or {}).items():
        params[f"filter[{key}]"] = value
    return params


def _resource(document: Any, path: str) -> dict:
    """The single resource object of a response document."""
    resource = document.get("data") if isinstance(document, dict) else None
    if not isinstance(resource, dict):
        raise TransportError(f"Unexpected response shape from {path}: expected a data object")
    return resource


def _resource_list(document: Any, path: str) -> list[dict]:
    """The resource objects of a collection response document."""
    resources = document.get("data") if isinstance(document, dict) else None
    if not isinstance(resources, list) or not all(isinstance(r, dict) for r in resources):
        raise TransportError(f"Unexpected response shape from {path}: expected a data list")
    return resources


def _clamp_limit(limit: int) -> int:
    if limit > MAX_PAGE_LIMIT:
        logger.warning(f"Limit {limit} exceeds API maximum, using {MAX_PAGE_LIMIT}")
        return MAX_PAGE_LIMIT
    return limit


async def list_apps(
    client: PacedApiClient,
    limit: int = DEFAULT_PAGE_LIMIT,
    bundle_id: Optional[str] = None,
    fields: Sequence[str] = DEFAULT_APP_FIELDS,
) -> list[App]:
    """
    List apps for the team.

    Args:
        client: API client
        limit: Maximum apps to return (max 200)
        bundle_id: Only return the app with this bundle identifier
        fields: App attributes to request

    Returns:
        List of App objects
    """
    filters = {"bundleId": bundle_id} if bundle_id else None
    data = await client.get(
        "/apps",
        params=build_query("apps", fields=fields, filters=filters, limit=_clamp_limit(limit)),
    )
    return [App.from_api_response(item) for item in _resource_list(data, "/apps")]


async def get_app(
    client: PacedApiClient,
    app_id: str,
    fields: Sequence[str] = DEFAULT_APP_FIELDS,
) -> App:
    """Get an app by its App Store Connect ID."""
    data = await client.get(f"/apps/{app_id}", params=build_query("apps", fields=fields))
    return App.from_api_response(_resource(data, f"/apps/{app_id}"))


async def create_app(
    client: PacedApiClient,
    name: str,
    bundle_id: str,
    sku: str,
    primary_locale: str = "en-US",
) -> App:
    """
    Create a new app.

    The bundle ID must already be registered in the developer account.

    Args:
        client: API client
        name: App name
        bundle_id: Registered bundle identifier
        sku: Unique SKU
        primary_locale: Primary locale code

    Returns:
        Created App object
    """
    payload = {
        "data": {
            "type": "apps",
            "attributes": {
                "bundleId": bundle_id,
                "name": name,
                "sku": sku,
                "primaryLocale": primary_locale,
            },
        }
    }
    data = await client.post("/apps", json=payload)
    app = App.from_api_response(_resource(data, "/apps"))
    logger.info(f"Created app: {app.id} - {app.name}")
    return app


async def list_builds(
    client: PacedApiClient,
    app_id: str,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> list[Build]:
    """List builds uploaded for an app."""
    data = await client.get(
        "/builds",
        params=build_query("builds", filters={"app": app_id}, limit=_clamp_limit(limit)),
    )
    return [Build.from_api_response(item) for item in _resource_list(data, "/builds")]
