"""
Canvas -> Google Calendar bridge, served over MCP (stdio).

Environment (or a .env at the repo root):
  CANVAS_BASE_URL, CANVAS_API_TOKEN
  GOOGLE_OAUTH_CLIENT_ID, GOOGLE_OAUTH_CLIENT_SECRET
  GOOGLE_REFRESH_TOKEN (optional until set_google_auth_code has been run)
"""

import asyncio
import logging
import sys
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .canvas import CanvasClient
from .config import Settings, load_settings
from .google_calendar import GoogleCalendarClient
from .log import configure_logging
from .tools import TOOLS, BridgeTools

logger = logging.getLogger(__name__)

SERVER_NAME = "canvas-calendar-bridge"


class ToolFailure(Exception):
    """Raised out of call_tool so the SDK marks the result with isError."""


def build_tools(settings: Settings) -> BridgeTools:
    canvas = CanvasClient(
        settings.canvas.base_url,
        settings.canvas.api_token,
        timeout=settings.canvas.timeout,
    )
    calendar = GoogleCalendarClient(
        settings.google.client_id,
        settings.google.client_secret,
        refresh_token=settings.google.refresh_token,
        redirect_uri=settings.google.redirect_uri,
        timeout=settings.canvas.timeout,
    )
    return BridgeTools(canvas, calendar)


def create_server(tools: BridgeTools) -> Server:
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        result = tools.call(name, arguments)
        if result.is_error:
            raise ToolFailure(result.text)
        return [TextContent(type="text", text=result.text)]

    return server


# ============================================================================
# Run Server
# ============================================================================

async def main(settings: Settings | None = None) -> None:
    settings = settings or load_settings()
    for name in settings.missing():
        logger.warning("%s not set", name)

    server = create_server(build_tools(settings))
    logger.info("Starting %s on stdio", SERVER_NAME)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("%s failed to start", SERVER_NAME)
        sys.exit(1)


if __name__ == "__main__":
    run()
