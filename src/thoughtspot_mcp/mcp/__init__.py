"""MCP protocol surface: tool catalog, dispatcher and stdio server."""

from thoughtspot_mcp.mcp.dispatcher import ProtocolDispatcher
from thoughtspot_mcp.mcp.responses import ToolResponse
from thoughtspot_mcp.mcp.tools import ToolName, get_tool_definitions

__all__ = ["ProtocolDispatcher", "ToolResponse", "ToolName", "get_tool_definitions"]
