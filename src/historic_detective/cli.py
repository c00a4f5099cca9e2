"""CLI for Historic Detective.

Commands:
    text <query>             - Resolve a building from free text
    image <path>             - Resolve a building from a photo
    location <lat> <lon>     - Resolve the parcel at a map point
    search <query>           - Nearest neighbours in the text embedding index
    index-info               - Show embedding snapshot sizes
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from historic_detective.config import settings
from historic_detective.errors import InvalidInput
from historic_detective.models.enums import ResolutionStatus
from historic_detective.models.schemas import Query, Resolution
from historic_detective.service import build_service

app = typer.Typer(
    name="historic-detective",
    help="Historic Detective: identify a building from text, a photo, or a map point",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
):
    """Configure logging for all commands."""
    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def print_resolution(resolution: Resolution, *, as_json: bool = False) -> None:
    """Render a Resolution to the console."""
    if as_json:
        console.print_json(json.dumps(resolution.to_wire(), default=str))
        return

    if resolution.status == ResolutionStatus.SUCCESS and resolution.candidate is not None:
        candidate = resolution.candidate
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for key, value in candidate.to_wire().items():
            table.add_row(key, str(value))
        console.print(
            Panel(table, title=f"[green]Match[/green] via {resolution.meta.get('winner')}")
        )
        if resolution.report:
            console.print(Markdown(resolution.report))
        return

    color = "yellow" if resolution.status == ResolutionStatus.NO_MATCH else "red"
    console.print(f"[{color}]{resolution.status.value}[/{color}]")

    sources = resolution.meta.get("sources", {})
    if sources:
        table = Table(title="Sources")
        table.add_column("Source")
        table.add_column("Status")
        table.add_column("Candidates", justify="right")
        table.add_column("Detail", style="dim")
        for name, diag in sources.items():
            detail = diag["meta"].get("msg") or diag["meta"].get("error") or ""
            table.add_row(name, diag["status"], str(diag["n"]), str(detail))
        console.print(table)
    elif resolution.meta.get("msg"):
        console.print(resolution.meta["msg"])

    if resolution.meta.get("ocr_text"):
        console.print(Panel(resolution.meta["ocr_text"], title="OCR text"))


def _resolve(query: Query, as_json: bool) -> None:
    service = build_service()
    resolution = run_async(service.resolve(query))
    print_resolution(resolution, as_json=as_json)
    if resolution.status == ResolutionStatus.ERROR:
        raise typer.Exit(1)


def _parse(build) -> Query:
    try:
        return build()
    except InvalidInput as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from None


@app.command()
def text(
    query: Annotated[str, typer.Argument(help="Address, name or description")],
    as_json: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """Resolve a building from free text."""
    _resolve(_parse(lambda: Query.for_text(query)), as_json)


@app.command()
def image(
    path: Annotated[Path, typer.Argument(help="Photo of the building")],
    as_json: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """Resolve a building from a photo."""
    if not path.is_file():
        console.print(f"[red]Error:[/red] Path does not exist: {path}")
        raise typer.Exit(1)
    _resolve(_parse(lambda: Query.for_image(str(path))), as_json)


@app.command()
def location(
    lat: Annotated[float, typer.Argument(help="Latitude in degrees")],
    lon: Annotated[float, typer.Argument(help="Longitude in degrees")],
    as_json: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """Resolve the parcel nearest to a map point."""
    _resolve(_parse(lambda: Query.for_location(lat, lon)), as_json)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search text")],
):
    """Search the text embedding index."""
    service = build_service()
    result = run_async(service.search_text(query))

    if not result.candidates:
        console.print(f"[yellow]{result.status.value}[/yellow] {result.meta.get('msg', '')}")
        return

    table = Table(title=f"Text index matches for {query!r}")
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Score", justify="right")
    for i, candidate in enumerate(result.candidates, start=1):
        table.add_row(str(i), candidate.id or "", f"{candidate.score:.3f}")
    console.print(table)


@app.command("index-info")
def index_info():
    """Show embedding snapshot sizes."""
    service = build_service()

    table = Table(title="Embedding indexes")
    table.add_column("Index")
    table.add_column("Vectors", justify="right")
    table.add_column("Dim", justify="right")
    for handle in (service.image_index, service.text_index):
        snapshot = handle.current
        table.add_row(handle.name, str(len(snapshot)), str(snapshot.dim))
    console.print(table)


if __name__ == "__main__":
    app()
