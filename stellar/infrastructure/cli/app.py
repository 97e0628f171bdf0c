"""Stellar CLI - main application entry point and commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar

from rich.console import Console
import typer

from stellar import __version__ as VERSION
from stellar.application.services import MusicService
from stellar.config import (
    configure_httpx_logging,
    get_logger,
    log_startup_info,
    setup_loguru_logger,
)
from stellar.infrastructure.cli.ui import (
    artists_table,
    command_error_handler,
    tracks_table,
)

console = Console(width=100)
logger = get_logger(__name__)

R = TypeVar("R")

app = typer.Typer(
    help=f"✨ Stellar v{VERSION} - Artist discovery across Last.fm and Deezer",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)


def build_service() -> MusicService:
    """Create the music service from application settings."""
    return MusicService.from_settings()


def run_with_service(operation: Callable[[MusicService], Awaitable[R]]) -> R:
    """Run one async operation against a fresh service, closing it afterwards."""

    async def runner() -> R:
        service = build_service()
        try:
            return await operation(service)
        finally:
            await service.aclose()

    return asyncio.run(runner())


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold bright_blue]✨ Stellar[/bold bright_blue] [dim]v{VERSION}[/dim]")


@app.command(name="search", rich_help_panel="🔎 Catalog")
@command_error_handler
def search_command(
    query: Annotated[str, typer.Argument(help="Artist name to search for")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum results")] = 6,
) -> None:
    """Search the catalog for artists, with genre tags."""
    artists = run_with_service(lambda service: service.search_artists(query, limit))
    if not artists:
        console.print(f"[yellow]No artists found for '{query}'[/yellow]")
        return
    console.print(artists_table(f"Search: {query}", artists))


@app.command(name="similar", rich_help_panel="🌌 Discovery")
@command_error_handler
def similar_command(
    name: Annotated[str, typer.Argument(help="Seed artist name")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum results")] = 25,
) -> None:
    """Discover related artists for a seed, enriched with catalog data."""
    artists = run_with_service(
        lambda service: service.discover_related_artists(name, [name], limit)
    )
    if not artists:
        console.print(f"[yellow]No similar artists found for '{name}'[/yellow]")
        return
    console.print(artists_table(f"Similar to {name}", artists))


@app.command(name="tags", rich_help_panel="🌌 Discovery")
@command_error_handler
def tags_command(
    name: Annotated[str, typer.Argument(help="Artist name")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum tags")] = 10,
) -> None:
    """Show genre tags for an artist."""
    tags = run_with_service(lambda service: service.lastfm.get_artist_tags(name, limit))
    if not tags:
        console.print(f"[yellow]No tags found for '{name}'[/yellow]")
        return
    console.print(f"[cyan]{name}[/cyan]: " + ", ".join(f"[green]{tag}[/green]" for tag in tags))


@app.command(name="related", rich_help_panel="🔎 Catalog")
@command_error_handler
def related_command(
    name: Annotated[str, typer.Argument(help="Artist name")],
) -> None:
    """Show catalog-related artists for an artist name."""

    async def operation(service: MusicService):
        artist = await service.find_artist_by_name(name)
        if artist is None:
            return None, []
        return artist, await service.get_related_artists(artist.id)

    artist, related = run_with_service(operation)
    if artist is None:
        console.print(f"[yellow]No catalog match for '{name}'[/yellow]")
        raise typer.Exit(code=1)
    console.print(artists_table(f"Related to {artist.name}", related))


@app.command(name="top-tracks", rich_help_panel="🔎 Catalog")
@command_error_handler
def top_tracks_command(
    name: Annotated[str, typer.Argument(help="Artist name")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum tracks")] = 5,
) -> None:
    """Show an artist's top tracks."""

    async def operation(service: MusicService):
        artist = await service.find_artist_by_name(name)
        if artist is None:
            return None, []
        return artist, await service.get_artist_top_tracks(artist.id, limit)

    artist, tracks = run_with_service(operation)
    if artist is None:
        console.print(f"[yellow]No catalog match for '{name}'[/yellow]")
        raise typer.Exit(code=1)
    console.print(tracks_table(f"Top tracks: {artist.name}", tracks))


@app.command(name="enrich", rich_help_panel="🌌 Discovery")
@command_error_handler
def enrich_command(
    names: Annotated[list[str], typer.Argument(help="Artist names to match")],
) -> None:
    """Match artist names against the catalog."""
    matched = run_with_service(lambda service: service.enrich_artists_from_deezer(names))
    console.print(artists_table(f"Matched {len(matched)} of {len(names)}", list(matched.values())))


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize Stellar CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    configure_httpx_logging()
    log_startup_info()


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
