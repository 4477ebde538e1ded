"""MCP tool server for the App Store Connect bridge."""
from .server import AppStoreConnectMCP, UnknownToolError, run_mcp_server

__all__ = ["AppStoreConnectMCP", "UnknownToolError", "run_mcp_server"]
