"""
App Store Connect REST client.

Every request goes through the same pipeline: sign (bearer token from the
shared TokenAuthenticator), pace (minimum spacing between departures),
dispatch (httpx), classify (vendor error envelope to a typed error).

Usage:
    auth = TokenAuthenticator(Credentials(key_id, issuer_id, private_key))
    async with PacedApiClient(auth) as client:
        apps = await client.get("/apps", params={"limit": 10})
"""
import logging
import time
from typing import Any, Optional

import httpx

from ..auth.jwt import TokenAuthenticator
from ..core.errors import (
    AuthRejectedError,
    ErrorEnvelope,
    RateLimitedError,
    RemoteApiError,
    TransportError,
)
from ..core.rate_limiter import PacingGate, get_pacing_gate

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.appstoreconnect.apple.com/v1"


def build_auth_headers(token: str) -> dict[str, str]:
    """Headers carrying the bearer token."""
    return {"Authorization": f"Bearer {token}"}


def parse_error_envelopes(payload: Any) -> list[ErrorEnvelope]:
    """
    Extract error entries from a failure body.

    Args:
        payload: Decoded JSON body (any shape)

    Returns:
        Entries in the order the API sent them, empty if none
    """
    if not isinstance(payload, dict):
        return []
    entries = payload.get("errors")
    if not isinstance(entries, list):
        return []

    envelopes = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        envelopes.append(
            ErrorEnvelope(
                **{
                    name: str(entry[name])
                    for name in ErrorEnvelope.model_fields
                    if entry.get(name) is not None
                }
            )
        )
    return envelopes


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def raise_for_api_error(response: httpx.Response) -> None:
    """
    Raise the typed error matching a non-2xx response.

    Args:
        response: Completed HTTP response

    Raises:
        AuthRejectedError: On 401
        RateLimitedError: On 429
        RemoteApiError: On any other 4xx/5xx
    """
    if response.is_success:
        return

    if response.status_code == 401:
        raise AuthRejectedError()

    if response.status_code == 429:
        raise RateLimitedError(retry_after=_parse_retry_after(response))

    try:
        payload = response.json()
    except ValueError:
        payload = None
    raise RemoteApiError(response.status_code, parse_error_envelopes(payload))


def parse_response_body(response: httpx.Response) -> Any:
    """Decode a successful response; empty bodies (204) decode to None."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(
            f"Invalid JSON in {response.status_code} response: {e}"
        ) from e


class PacedApiClient:
    """
    Authenticated, paced client for the App Store Connect API.

    Failures are classified and raised, never retried here; retry policy
    belongs to the caller.
    """

    def __init__(
        self,
        auth: TokenAuthenticator,
        base_url: str = API_BASE_URL,
        min_request_interval_ms: int = 100,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        pacing: Optional[PacingGate] = None,
    ):
        """
        Initialize the client.

        Args:
            auth: Shared token authenticator
            base_url: API root, requests paths are relative to it
            min_request_interval_ms: Minimum spacing between request starts
            timeout: Per-request timeout handed to httpx
            transport: Optional httpx transport (tests use httpx.MockTransport)
            pacing: Gate to pace through; defaults to the process-wide gate
                for min_request_interval_ms
        """
        self.auth = auth
        self.base_url = base_url
        self.timeout = timeout
        self.pacing = pacing or get_pacing_gate(min_request_interval_ms)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._request_count = 0
        self._last_request_at = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    def _record_request(self) -> None:
        self._request_count += 1
        self._last_request_at = int(time.time() * 1000)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send a signed, paced request.

        Args:
            method: HTTP method
            path: Resource path relative to the API root, e.g. "/apps"
            params: Query parameters (fields[...], filter[...], limit)
            json: JSON body, omitted when None

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            CredentialError: If no token could be signed
            AuthRejectedError: On 401; the token cache is cleared first
            RateLimitedError: On 429
            RemoteApiError: On any other 4xx/5xx
            TransportError: On network failure or an unparsable body
        """
        headers = build_auth_headers(self.auth.get_token())
        await self.pacing.wait()

        client = await self._get_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise TransportError(f"{type(e).__name__}: {e}") from e
        finally:
            self._record_request()

        try:
            raise_for_api_error(response)
        except AuthRejectedError:
            logger.warning(f"{method} {path} rejected with 401, clearing token cache")
            self.auth.clear_cache()
            raise
        except (RateLimitedError, RemoteApiError) as e:
            logger.warning(f"{method} {path} failed with {response.status_code}: {e}")
            raise

        return parse_response_body(response)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None, json: Any = None) -> Any:
        return await self.request("GET", path, params=params, json=json)

    async def post(self, path: str, params: Optional[dict[str, Any]] = None, json: Any = None) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def patch(self, path: str, params: Optional[dict[str, Any]] = None, json: Any = None) -> Any:
        return await self.request("PATCH", path, params=params, json=json)

    async def delete(self, path: str, params: Optional[dict[str, Any]] = None, json: Any = None) -> Any:
        return await self.request("DELETE", path, params=params, json=json)

    def get_stats(self) -> dict[str, int]:
        """Request count and last request time (epoch millis) for diagnostics."""
        return {
            "request_count": self._request_count,
            "last_request_at": self._last_request_at,
        }

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PacedApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
