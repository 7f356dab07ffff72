"""
BeatWave CLI - Entry point

Client commands run against the HTTP API by default, or straight against the
document store with ``--direct``. ``serve`` starts the API itself.
"""

import argparse
import asyncio
import sys
from typing import Optional

from loguru import logger

from beatwave.context import AppContext
from beatwave.core.config import Config, ensure_directories, load_config
from beatwave.core.console import format_count, get_console, track_table
from beatwave.core.logging import setup_logging_from_config
from beatwave.domain.library.exceptions import TrackNotFoundError
from beatwave.domain.library.search import filter_tracks
from beatwave.domain.playback.audio import (
    AudioBackend,
    AudioError,
    MpvAudioBackend,
    SilentAudioBackend,
    check_mpv_available,
)
from beatwave.domain.playback.session import PlaybackState
from beatwave.domain.stats.counters import PlayOutcome
from beatwave.domain.store import create_store
from beatwave.domain.sync.exceptions import UnauthenticatedError

SECTION_TITLES = {
    "featured": "Featured",
    "recent": "Recently Added",
    "recommended": "Recommended",
    "uploaded": "Your Uploads",
    "trending": "Trending",
}


def build_context(config: Config, direct: bool, audio: Optional[AudioBackend] = None) -> AppContext:
    store = create_store(config.store) if direct else None
    return AppContext.create(config, store=store, audio=audio, console=get_console())


async def cmd_views(ctx: AppContext, refresh: bool) -> int:
    catalog = await ctx.load_catalog(force_refresh=refresh)
    console = ctx.console
    console.print(f"[dim]{len(catalog)} tracks ({catalog.origin})[/dim]")
    liked = ctx.session.liked_ids()
    for view in ctx.views().sections():
        console.print(
            track_table(SECTION_TITLES[view.name], view.tracks, view.placeholder, liked)
        )
    return 0


async def cmd_search(ctx: AppContext, query: str, genre: Optional[str]) -> int:
    await ctx.load_catalog()
    results = filter_tracks(ctx.catalog.tracks, query, genre)[: ctx.config.catalog.search_limit]
    ctx.console.print(track_table(f"Results for '{query}'", results, "No matches"))
    return 0


async def cmd_play(ctx: AppContext, track_id: Optional[str], seconds: Optional[float]) -> int:
    await ctx.load_catalog()
    playback = ctx.playback
    console = ctx.console
    try:
        if track_id:
            track = await playback.play(track_id)
        else:
            track = await playback.toggle_play()
        if track is None:
            console.print("[yellow]Nothing to play[/yellow]")
            return 1
        console.print(f"▶ [bold]{track.title}[/bold] by {track.artist}")

        watcher = asyncio.create_task(playback.watch())
        waited = 0.0
        try:
            while playback.state not in (PlaybackState.IDLE, PlaybackState.ENDED):
                if seconds is not None and waited >= seconds:
                    break
                await asyncio.sleep(1.0)
                waited += 1.0
                progress = await playback.progress()
                current = playback.current_track
                if current is not None:
                    console.print(
                        f"[dim]{current.title}: {progress.position:.0f}s"
                        f" ({progress.fraction:.0%})[/dim]"
                    )
        finally:
            watcher.cancel()
        return 0
    except TrackNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    except AudioError as e:
        console.print(f"[red]Playback failed: {e}[/red]")
        return 1
    finally:
        await ctx.close()


async def cmd_like(ctx: AppContext, track_id: str) -> int:
    await ctx.load_catalog()
    try:
        report = await ctx.counters.toggle_like(track_id)
    except UnauthenticatedError:
        ctx.console.print("[yellow]Log in first: beatwave login <username>[/yellow]")
        return 1
    except TrackNotFoundError as e:
        ctx.console.print(f"[red]{e}[/red]")
        return 1
    state = "Liked" if report.liked else "Unliked"
    ctx.console.print(f"{state} {track_id} ({format_count(report.likes)} likes)")
    if not report.persisted:
        ctx.console.print(f"[yellow]Not synced: {report.error}[/yellow]")
    return 0


async def cmd_record_play(ctx: AppContext, track_id: str) -> int:
    await ctx.load_catalog()
    try:
        report = await ctx.counters.record_play(track_id)
    except TrackNotFoundError as e:
        ctx.console.print(f"[red]{e}[/red]")
        return 1
    if report.outcome is PlayOutcome.ALREADY_COUNTED:
        ctx.console.print(f"Already counted today ({format_count(report.plays)} plays)")
    else:
        ctx.console.print(f"Counted ({format_count(report.plays)} plays)")
    return 0


async def cmd_stats(ctx: AppContext, refresh: bool) -> int:
    await ctx.load_catalog()
    console = ctx.console
    listening = ctx.session.listening_stats()
    console.print(f"[bold]Plays:[/bold] {listening.total_plays}")
    console.print(f"[bold]Liked tracks:[/bold] {listening.liked_count}")
    for artist, count in listening.top_artists:
        console.print(f"  {artist}: {count}")

    if ctx.session.is_authenticated:
        snapshot = ctx.session.profile_stats(
            ctx.catalog.tracks,
            max_age_seconds=ctx.config.stats.profile_stats_max_age_seconds,
            refresh=refresh,
        )
        console.print(
            f"[bold]{snapshot.username}[/bold]: {snapshot.tracks} tracks, "
            f"{format_count(snapshot.plays)} plays, {format_count(snapshot.likes)} likes"
        )
    return 0


def cmd_serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("web.backend.main:app", host=host, port=port, reload=reload)
    return 0


def pick_audio_backend(config: Config, silent: bool) -> AudioBackend:
    if not silent and check_mpv_available():
        return MpvAudioBackend(config.player)
    logger.info("mpv not available, using silent playback")
    return SilentAudioBackend()


def main() -> None:
    """Main entry point for the beatwave command."""
    parser = argparse.ArgumentParser(
        description="BeatWave - share and play music",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--direct",
        action="store_true",
        help="Talk to the document store instead of the HTTP API",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    views_parser = subparsers.add_parser("views", help="Show the home page sections")
    views_parser.add_argument("--refresh", action="store_true", help="Bypass the cache")

    search_parser = subparsers.add_parser("search", help="Search the catalog")
    search_parser.add_argument("query")
    search_parser.add_argument("--genre")

    play_parser = subparsers.add_parser("play", help="Play a track")
    play_parser.add_argument("track_id", nargs="?")
    play_parser.add_argument("--seconds", type=float, help="Stop after this long")
    play_parser.add_argument("--silent", action="store_true", help="Do not use mpv")

    count_parser = subparsers.add_parser("count-play", help="Record a play without audio")
    count_parser.add_argument("track_id")

    like_parser = subparsers.add_parser("like", help="Like or unlike a track")
    like_parser.add_argument("track_id")

    login_parser = subparsers.add_parser("login", help="Sign in on this device")
    login_parser.add_argument("username")

    subparsers.add_parser("logout", help="Sign out on this device")

    stats_parser = subparsers.add_parser("stats", help="Listening and profile statistics")
    stats_parser.add_argument("--refresh", action="store_true", help="Recompute profile stats")

    args = parser.parse_args()
    if not args.subcommand:
        parser.print_help()
        sys.exit(0)

    ensure_directories()
    config = load_config()
    setup_logging_from_config(config.logging)

    if args.subcommand == "serve":
        sys.exit(cmd_serve(args.host, args.port, args.reload))

    audio = pick_audio_backend(config, args.silent) if args.subcommand == "play" else None
    ctx = build_context(config, args.direct, audio)

    if args.subcommand == "login":
        ctx.session.login(args.username)
        ctx.console.print(f"Signed in as [bold]{args.username}[/bold]")
        sys.exit(0)
    if args.subcommand == "logout":
        ctx.session.logout()
        ctx.console.print("Signed out")
        sys.exit(0)

    if args.subcommand == "views":
        coro = cmd_views(ctx, args.refresh)
    elif args.subcommand == "search":
        coro = cmd_search(ctx, args.query, args.genre)
    elif args.subcommand == "play":
        coro = cmd_play(ctx, args.track_id, args.seconds)
    elif args.subcommand == "count-play":
        coro = cmd_record_play(ctx, args.track_id)
    elif args.subcommand == "like":
        coro = cmd_like(ctx, args.track_id)
    else:
        coro = cmd_stats(ctx, args.refresh)

    try:
        sys.exit(asyncio.run(coro))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
