"""MCP Server exposing App Store Connect app management tools."""
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from .. import __version__
from ..api.client import PacedApiClient
from ..api.resources import (
    App,
    DEFAULT_PAGE_LIMIT,
    create_app,
    get_app,
    list_apps,
    list_builds,
)
from ..auth.jwt import create_authenticator_from_settings
from ..core.config import Settings, settings as default_settings
from ..core.errors import AppStoreConnectError

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "mcp-appstore-connect"


class UnknownToolError(Exception):
    """Raised when a tool call names a tool the server does not expose."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


def _format_app(app: App) -> str:
    return (
        f"• {app.name}\n"
        f"  Bundle ID: {app.bundle_id}\n"
        f"  SKU: {app.sku}\n"
        f"  ID: {app.id}"
    )


def _text_result(text: str, is_error: bool = False) -> dict:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


class AppStoreConnectMCP:
    """
    MCP Server exposing App Store Connect operations.

    Tools:
    - list_apps: List the team's apps
    - get_app: Get one app by ID
    - create_app: Create a new app
    - list_builds: List builds for an app
    """

    def __init__(
        self,
        client: Optional[PacedApiClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.client = client

    def initialize(self) -> PacedApiClient:
        """Create the API client from settings on first use."""
        if self.client is None:
            auth = create_authenticator_from_settings(self.settings)
            self.client = PacedApiClient(
                auth,
                base_url=self.settings.api_base_url,
                min_request_interval_ms=self.settings.min_request_interval_ms,
                timeout=self.settings.request_timeout,
            )
        return self.client

    def get_tools(self) -> list[dict]:
        """Return MCP tool definitions."""
        return [
            {
                "name": "list_apps",
                "description": "List all apps for your team from App Store Connect. Returns app name, bundle ID, SKU, and primary locale.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "limit": {
                            "type": "number",
                            "description": "Maximum number of apps to return (default: 50, max: 200)",
                            "default": DEFAULT_PAGE_LIMIT,
                        },
                        "bundleId": {
                            "type": "string",
                            "description": "Filter apps by bundle ID (optional)",
                        },
                    },
                },
            },
            {
                "name": "get_app",
                "description": "Get detailed information about a specific app by its App Store Connect ID",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "appId": {
                            "type": "string",
                            "description": "The App Store Connect app ID",
                        },
                    },
                    "required": ["appId"],
                },
            },
            {
                "name": "create_app",
                "description": "Create a new app in App Store Connect. Requires bundle ID to be registered in your developer account.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "The name of the app"},
                        "bundleId": {
                            "type": "string",
                            "description": "The bundle identifier (must be pre-registered)",
                        },
                        "sku": {
                            "type": "string",
                            "description": "A unique SKU for the app (alphanumeric)",
                        },
                        "primaryLocale": {
                            "type": "string",
                            "description": "Primary locale code (e.g., 'en-US', 'ja', 'fr-FR')",
                            "default": "en-US",
                        },
                    },
                    "required": ["name", "bundleId", "sku"],
                },
            },
            {
                "name": "list_builds",
                "description": "List builds for a specific app",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "appId": {
                            "type": "string",
                            "description": "The App Store Connect app ID",
                        },
                        "limit": {
                            "type": "number",
                            "description": "Maximum number of builds to return (default: 50)",
                            "default": DEFAULT_PAGE_LIMIT,
                        },
                    },
                    "required": ["appId"],
                },
            },
        ]

    async def handle_tool_call(self, name: str, arguments: dict) -> dict:
        """Handle an MCP tool call."""
        handlers = {
            "list_apps": self._handle_list_apps,
            "get_app": self._handle_get_app,
            "create_app": self._handle_create_app,
            "list_builds": self._handle_list_builds,
        }

        arguments = arguments or {}
        try:
            handler = handlers.get(name)
            if not handler:
                raise UnknownToolError(name)
            if not isinstance(arguments, dict):
                raise ValueError("Tool arguments must be an object")
            self._check_required_arguments(name, arguments)
            return _text_result(await handler(arguments))
        except (AppStoreConnectError, UnknownToolError, ValueError) as e:
            message = str(e)
            logger.warning(f"Tool {name} failed: {message}")
            return _text_result(f"Error: {message}", is_error=True)

    def _check_required_arguments(self, name: str, arguments: dict) -> None:
        """Raise ValueError naming any required argument the call left out."""
        schema = next(tool["inputSchema"] for tool in self.get_tools() if tool["name"] == name)
        missing = [arg for arg in schema.get("required", []) if arguments.get(arg) in (None, "")]
        if missing:
            raise ValueError(f"Missing required argument: {', '.join(missing)}")

    async def _handle_list_apps(self, args: dict) -> str:
        """List apps."""
        bundle_id = args.get("bundleId")
        apps = await list_apps(
            self.initialize(),
            limit=int(args.get("limit") or DEFAULT_PAGE_LIMIT),
            bundle_id=bundle_id,
        )

        if not apps:
            if bundle_id:
                return f"No apps found with bundle ID: {bundle_id}"
            return "No apps found for your team."

        apps_list = "\n\n".join(_format_app(app) for app in apps)
        return f"Found {len(apps)} app(s):\n\n{apps_list}"

    async def _handle_get_app(self, args: dict) -> str:
        """Get app details."""
        app = await get_app(self.initialize(), args["appId"])
        return (
            "App Details:\n\n"
            f"Name: {app.name}\n"
            f"Bundle ID: {app.bundle_id}\n"
            f"SKU: {app.sku}\n"
            f"Primary Locale: {app.primary_locale}\n"
            f"ID: {app.id}"
        )

    async def _handle_create_app(self, args: dict) -> str:
        """Create an app."""
        app = await create_app(
            self.initialize(),
            name=args["name"],
            bundle_id=args["bundleId"],
            sku=args["sku"],
            primary_locale=args.get("primaryLocale") or "en-US",
        )
        return (
            "✅ Successfully created app!\n\n"
            f"Name: {app.name}\n"
            f"Bundle ID: {app.bundle_id}\n"
            f"SKU: {app.sku}\n"
            f"ID: {app.id}\n\n"
            "You can now upload builds and configure app metadata in App Store Connect."
        )

    async def _handle_list_builds(self, args: dict) -> str:
        """List builds."""
        builds = await list_builds(
            self.initialize(),
            args["appId"],
            limit=int(args.get("limit") or DEFAULT_PAGE_LIMIT),
        )

        if not builds:
            return "No builds found for this app."

        builds_list = "\n\n".join(
            f"• Version {build.version}\n"
            f"  Status: {build.processing_state}\n"
            f"  Uploaded: {build.uploaded_date}\n"
            f"  ID: {build.id}"
            for build in builds
        )
        return f"Found {len(builds)} build(s):\n\n{builds_list}"

    async def handle_message(self, request: dict) -> Optional[dict]:
        """
        Answer one JSON-RPC message.

        Returns:
            The response to write, or None for notifications
        """
        method = request.get("method", "")
        req_id = request.get("id")

        if method == "initialize":
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "result": {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {"tools": {}},
                    "serverInfo": {"name": SERVER_NAME, "version": __version__},
                },
            }
        if method == "tools/list":
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "result": {"tools": self.get_tools()},
            }
        if method == "tools/call":
            params = request.get("params", {})
            result = await self.handle_tool_call(
                params.get("name", ""),
                params.get("arguments", {}),
            )
            return {"jsonrpc": "2.0", "id": req_id, "result": result}
        if method.startswith("notifications/"):
            # Notifications don't get responses
            return None
        return {
            "jsonrpc": "2.0",
            "id": req_id,
            "error": {"code": -32601, "message": f"Unknown method: {method}"},
        }

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()


async def run_mcp_server(server: Optional[AppStoreConnectMCP] = None) -> None:
    """Run as stdio MCP server."""
    server = server or AppStoreConnectMCP()
    loop = asyncio.get_running_loop()
    logger.info("App Store Connect MCP server running on stdio")

    try:
        # Read from stdin, write to stdout
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not line.strip():
                continue

            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                response = {
                    "jsonrpc": "2.0",
                    "id": None,
                    "error": {"code": -32700, "message": f"Parse error: {e}"},
                }
            else:
                if not isinstance(request, dict):
                    response = {
                        "jsonrpc": "2.0",
                        "id": None,
                        "error": {"code": -32600, "message": "Invalid request"},
                    }
                else:
                    try:
                        response = await server.handle_message(request)
                    except Exception as e:
                        logger.exception(f"Unhandled error answering {request.get('method')}")
                        response = {
                            "jsonrpc": "2.0",
                            "id": request.get("id"),
                            "error": {"code": -32000, "message": str(e)},
                        }

            if response is not None:
                print(json.dumps(response), flush=True)
    finally:
        await server.close()
