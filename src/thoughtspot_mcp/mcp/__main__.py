"""Run the ThoughtSpot MCP server.

Usage:
    python -m thoughtspot_mcp.mcp
"""

from thoughtspot_mcp.mcp.server import main

if __name__ == "__main__":
    main()
