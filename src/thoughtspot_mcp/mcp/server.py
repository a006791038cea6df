"""MCP server exposing ThoughtSpot Spotter tools and data source resources.

Tools:
  - ping: Check connectivity and authentication
  - getRelevantQuestions: Decompose a query into analytic sub-questions
  - getRelevantData: Two-round question answering with optional liveboard
  - getAnswer: Answer one question against one data source
  - createLiveboard: Build a liveboard from getAnswer results

Resources:
  - datasource:///{id}: One per worksheet visible to the user

Run:
    python -m thoughtspot_mcp.mcp
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from dotenv import load_dotenv
from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from rich.console import Console
from rich.logging import RichHandler

# Load .env from the project root (handles MCP subprocess CWD issues)
_project_root = Path(__file__).resolve().parents[3]
load_dotenv(_project_root / ".env", override=False)

from thoughtspot_mcp import __version__
from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    ResourceNotFoundError,
    UnknownToolError,
)
from thoughtspot_mcp.mcp.dispatcher import ProtocolDispatcher
from thoughtspot_mcp.metrics import LoggingTracker
from thoughtspot_mcp.spotter.progress import ProgressChannel, ProgressUpdate

logger = logging.getLogger(__name__)

SERVER_NAME = "ThoughtSpot"

# JSON-RPC code MCP uses for unknown resources.
RESOURCE_NOT_FOUND = -32002


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@contextmanager
def _protocol_errors() -> Iterator[None]:
    """Turn protocol faults into JSON-RPC errors."""
    try:
        yield
    except UnknownToolError as e:
        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(e))) from e
    except ResourceNotFoundError as e:
        raise McpError(
            types.ErrorData(code=RESOURCE_NOT_FOUND, message=str(e), data={"uri": e.uri})
        ) from e
    except (InvalidArgumentError, NotFoundError) as e:
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e


def _progress_channel(server: Server) -> ProgressChannel:
    """Progress channel bound to the current request, if the client asked for progress."""
    try:
        ctx = server.request_context
    except LookupError:
        return ProgressChannel()

    token = ctx.meta.progressToken if ctx.meta else None
    if token is None:
        return ProgressChannel()

    async def send(update: ProgressUpdate) -> None:
        await ctx.session.send_progress_notification(
            progress_token=token,
            progress=update.progress,
            total=update.total,
            message=update.message,
        )

    return ProgressChannel(send)


def create_dispatcher(settings: ThoughtSpotSettings | None = None) -> ProtocolDispatcher:
    """Build a dispatcher; without credentials only ping is usable."""
    settings = settings or get_settings()
    client = ThoughtSpotClient(settings=settings) if settings.api_configured else None
    return ProtocolDispatcher(
        client,
        settings,
        trackers=[LoggingTracker(settings.ts_client_name)],
    )


def create_server(
    settings: ThoughtSpotSettings | None = None,
    dispatcher: ProtocolDispatcher | None = None,
) -> tuple[Server, ProtocolDispatcher]:
    """Create the MCP server with every handler bound to a dispatcher."""
    dispatcher = dispatcher or create_dispatcher(settings)
    server: Server = Server(
        SERVER_NAME,
        version=__version__,
        instructions=(
            "ThoughtSpot Spotter tools. Read the datasource resources to pick "
            "datasources, use getRelevantQuestions then getAnswer for targeted "
            "questions, or getRelevantData to research a broad query. "
            "createLiveboard turns getAnswer results into a liveboard."
        ),
    )

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return await dispatcher.list_tools()

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        with _protocol_errors():
            return await dispatcher.list_resources()

    @server.read_resource()
    async def read_resource(uri: Any) -> list[ReadResourceContents]:
        with _protocol_errors():
            text = await dispatcher.read_resource(str(uri))
        return [ReadResourceContents(content=text, mime_type="text/plain")]

    # Registered directly: the call_tool decorator turns every exception,
    # McpError included, into an isError result.
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        progress = _progress_channel(server)
        with _protocol_errors():
            response = await dispatcher.call_tool(req.params.name, req.params.arguments, progress)
        await progress.drain()
        return types.ServerResult(response.to_call_tool_result())

    server.request_handlers[types.CallToolRequest] = call_tool

    return server, dispatcher


async def serve_stdio(settings: ThoughtSpotSettings | None = None) -> None:
    """Run the server over stdio until the client disconnects."""
    server, dispatcher = create_server(settings)
    await dispatcher.initialize()
    logger.info("Starting %s MCP server %s over stdio", SERVER_NAME, __version__)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    settings = get_settings()
    configure_logging(settings.ts_log_level)
    try:
        asyncio.run(serve_stdio(settings))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("MCP server stopped")
        sys.exit(1)
