"""UI helpers for CLI interaction.

Reusable rendering and error handling, keeping presentation separate from
the services the commands call.
"""

from collections.abc import Callable
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from stellar.config import get_logger
from stellar.domain.entities import ArtistRecord, DiscoveredArtist, TrackRecord

console = Console()
logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs the failure with full traceback and converts it to a clean message
    and a non-zero exit code.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except (typer.Exit, typer.Abort):
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def _format_fans(count: int | None) -> str:
    return f"{count:,}" if count else "-"


def artists_table(
    title: str, artists: list[ArtistRecord] | list[DiscoveredArtist]
) -> Table:
    """Render catalog or discovered artists."""
    table = Table(title=title, title_style="bold bright_blue")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Fans", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Genres", style="green")

    for artist in artists:
        score = getattr(artist, "match_score", None)
        table.add_row(
            artist.id,
            artist.name,
            _format_fans(artist.fan_count),
            f"{score:.2f}" if score else "-",
            ", ".join(getattr(artist, "genres", None) or []),
        )
    return table


def tracks_table(title: str, tracks: list[TrackRecord]) -> Table:
    """Render catalog tracks."""
    table = Table(title=title, title_style="bold bright_blue")
    table.add_column("Track", style="cyan")
    table.add_column("Album")
    table.add_column("Length", justify="right")
    table.add_column("Preview", justify="center")

    for track in tracks:
        minutes, seconds = divmod(track.duration_ms // 1000, 60)
        table.add_row(
            track.name,
            track.album_name,
            f"{minutes}:{seconds:02d}",
            "✓" if track.preview_url else "",
        )
    return table
