"""Liveboard specification and assembly."""

from thoughtspot_mcp.liveboard.assembler import LiveboardAssembler
from thoughtspot_mcp.liveboard.definition import LiveboardSpec

__all__ = ["LiveboardAssembler", "LiveboardSpec"]
