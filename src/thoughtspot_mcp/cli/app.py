"""Main CLI application for thoughtspot-mcp."""

from __future__ import annotations

import typer

from thoughtspot_mcp import __version__

app = typer.Typer(
    name="thoughtspot-mcp",
    help="ThoughtSpot Spotter as an MCP server, plus a few commands to try it from a shell.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"thoughtspot-mcp {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=version_callback, is_eager=True
    ),
) -> None:
    """thoughtspot-mcp: Ask ThoughtSpot questions from MCP clients."""


def serve() -> None:
    """Run the MCP server over stdio."""
    from thoughtspot_mcp.mcp.server import main as serve_main

    serve_main()


# Import and register commands
from thoughtspot_mcp.cli.ask_cmd import ask  # noqa: E402
from thoughtspot_mcp.cli.sources_cmd import sources  # noqa: E402

app.command("serve")(serve)
app.command("sources")(sources)
app.command("ask")(ask)


def main() -> None:
    """Entry point for the CLI."""
    app()
