"""thoughtspot-mcp ask: Run the two-round question pipeline from a shell."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from thoughtspot_mcp.api.client import ThoughtSpotClient
from thoughtspot_mcp.api.models import Answer
from thoughtspot_mcp.config import get_settings
from thoughtspot_mcp.exceptions import ThoughtSpotMCPError
from thoughtspot_mcp.liveboard.assembler import LiveboardAssembler
from thoughtspot_mcp.mcp.dispatcher import DEFAULT_DATASOURCE_SCOPE
from thoughtspot_mcp.spotter.answers import AnswerFetcher
from thoughtspot_mcp.spotter.catalog import DataSourceCatalog
from thoughtspot_mcp.spotter.decomposer import QuestionDecomposer
from thoughtspot_mcp.spotter.pipeline import RefinementPipeline
from thoughtspot_mcp.spotter.progress import ProgressChannel

console = Console()


async def _run(
    query: str, datasource_ids: list[str], liveboard: bool
) -> tuple[list[Answer], str | None]:
    settings = get_settings()
    settings.require_api()

    async with ThoughtSpotClient(settings=settings) as client:
        if not datasource_ids:
            snapshot = await DataSourceCatalog(client, settings).get()
            datasource_ids = snapshot.ids[:DEFAULT_DATASOURCE_SCOPE]

        fetcher = AnswerFetcher(client, settings)
        pipeline = RefinementPipeline(QuestionDecomposer(client, settings), fetcher)
        progress = ProgressChannel(
            lambda u: console.print(f"[dim]{u.progress:>3.0f}%[/dim] {u.message}")
        )
        answers = await pipeline.run(query, datasource_ids, want_template=liveboard, progress=progress)

        url = None
        answered = [a for a in answers if a.ok]
        if liveboard and answered:
            try:
                url = await LiveboardAssembler(client, fetcher, settings).assemble(query, answered)
            except Exception as e:
                console.print(f"[yellow]Liveboard could not be created:[/yellow] {e}")
    return answers, url


def ask(
    query: Annotated[str, typer.Argument(help="Question or task to research")],
    datasource: Annotated[
        list[str] | None,
        typer.Option("--datasource", "-d", help="Datasource ID (repeatable). Defaults to recent ones."),
    ] = None,
    liveboard: Annotated[bool, typer.Option("--liveboard", help="Also create a liveboard")] = False,
) -> None:
    """Answer a query with Spotter and print the data."""
    try:
        answers, url = asyncio.run(_run(query, list(datasource or []), liveboard))
    except ThoughtSpotMCPError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    answered = [a for a in answers if a.ok]
    if not answered:
        console.print("[yellow]No relevant data found.[/yellow]")
        raise typer.Exit(1)

    for a in answered:
        console.print(Panel(a.data or "[dim]No data[/dim]", title=a.question.text, title_align="left"))

    if url:
        console.print(f"\n[green]Liveboard:[/green] {url}")
