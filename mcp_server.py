#!/usr/bin/env python3
"""Entry point for running the App Store Connect bridge as an MCP server."""
import asyncio
import logging
import sys

from dotenv import load_dotenv
load_dotenv()

from asc_bridge.core.config import settings
from asc_bridge.core.errors import CredentialError
from asc_bridge.core.logging_config import configure_logging
from asc_bridge.mcp.server import AppStoreConnectMCP, run_mcp_server


def main() -> None:
    configure_logging(settings.log_level)

    server = AppStoreConnectMCP(settings=settings)
    try:
        server.initialize()
    except CredentialError as e:
        logging.getLogger(__name__).error(f"Failed to initialize App Store Connect client: {e}")
        sys.exit(1)

    asyncio.run(run_mcp_server(server))


if __name__ == "__main__":
    main()
