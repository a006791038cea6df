"""thoughtspot-mcp sources: List the data sources Spotter can answer from."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import DataSource
from thoughtspot_mcp.config import get_settings
from thoughtspot_mcp.exceptions import ThoughtSpotMCPError
from thoughtspot_mcp.spotter.catalog import DataSourceCatalog

console = Console()


async def _load_sources() -> tuple[DataSource, ...]:
    settings = get_settings()
    settings.require_api()
    async with ThoughtSpotClient(settings=settings) as client:
        snapshot = await DataSourceCatalog(client, settings).get()
    return snapshot.sources


def sources(
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format: table or json")] = "table",
) -> None:
    """List worksheets visible to the configured user."""
    valid_formats = ("table", "json")
    if fmt not in valid_formats:
        console.print(f"[red]Invalid format '{fmt}'. Choose from: {', '.join(valid_formats)}[/red]")
        raise typer.Exit(1)

    try:
        found = asyncio.run(_load_sources())
    except ThoughtSpotMCPError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if fmt == "json":
        console.print_json(json.dumps([s.model_dump() for s in found], indent=2))
        return

    table = Table(title="ThoughtSpot Data Sources")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")

    for s in found:
        table.add_row(
            s.id,
            s.name,
            (s.description[:60] + "..." if len(s.description) > 60 else s.description),
        )

    console.print(table)
    console.print(f"\n  Total: {len(found)} data sources")
