"""Rich console and the table renderers shared by CLI commands."""

from rich.console import Console
from rich.table import Table

from beatwave.domain.library.models import Track

_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def format_count(value: int) -> str:
    """Compact counter display: 950, 1.2K, 3.4M."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def track_table(
    title: str,
    tracks: list[Track],
    placeholder: str = "No tracks",
    liked: set[str] | None = None,
) -> Table:
    """One catalog section as a table; an empty section shows ``placeholder``."""
    table = Table(title=title, title_justify="left", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Artist")
    table.add_column("Genre", style="cyan")
    table.add_column("Plays", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("ID", style="dim")

    if not tracks:
        table.add_row("", f"[dim]{placeholder}[/dim]", "", "", "", "", "")
        return table

    liked = liked or set()
    for position, track in enumerate(tracks, start=1):
        heart = " [red]♥[/red]" if track.id in liked else ""
        verified = " ✓" if track.verified else ""
        table.add_row(
            str(position),
            f"{track.title}{heart}",
            f"{track.artist}{verified}",
            track.genre,
            format_count(track.plays),
            format_count(track.likes),
            track.id,
        )
    return table
