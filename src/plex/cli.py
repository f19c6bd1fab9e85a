"""
Plex Wrapped CLI - Command Line Interface

Signs in to plex.tv, lists servers and music libraries, and prints play
history or a listening summary.
"""

import argparse
import asyncio
import getpass
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from ..logger import setup_logging
from .auth import get_auth_url, is_claim_token
from .client import DEFAULT_HISTORY_LIMIT, PlexClient
from .discovery import find_music_libraries
from .exceptions import AuthenticationError, NoConnectionError, PlexError, UpstreamError
from .models import AccountUser, MusicLibrary, PlayRecord, PlexConfig
from .polling import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_TIMEOUT, wait_for_authorization
from .selection import select_best_url
from .stats import filter_plays_by_year, summarize_plays

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="python -m src.plex",
        description="Plex music listening history and year-in-review",
        epilog="Example: PLEX_TOKEN=... python -m src.plex wrapped --year 2025",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--token",
        default=os.getenv("PLEX_TOKEN"),
        help="Plex auth token (default: $PLEX_TOKEN)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Sign in and print an auth token")
    login.add_argument("--claim", metavar="TOKEN", help="Exchange a claim token from plex.tv/claim")
    login.add_argument("--username", help="Sign in with username/email and a prompted password")
    login.add_argument(
        "--interval", type=float, default=DEFAULT_POLL_INTERVAL, help="PIN poll interval in seconds"
    )
    login.add_argument(
        "--timeout", type=float, default=DEFAULT_POLL_TIMEOUT, help="PIN poll timeout in seconds"
    )

    subparsers.add_parser("servers", help="List media servers and their selected URL")
    subparsers.add_parser("libraries", help="List music libraries on all servers")

    history = subparsers.add_parser("history", help="Print play history for one library")
    history.add_argument("--server", required=True, help="Server name")
    history.add_argument("--library", required=True, help="Library section key")
    history.add_argument("--limit", type=int, default=DEFAULT_HISTORY_LIMIT)

    wrapped = subparsers.add_parser("wrapped", help="Summarize listening across music libraries")
    wrapped.add_argument("--year", type=int, help="Only count plays from this year (UTC)")
    wrapped.add_argument("--top", type=int, default=10, help="Entries per ranking")
    wrapped.add_argument("--limit", type=int, default=DEFAULT_HISTORY_LIMIT)

    return parser


def require_token(args: argparse.Namespace) -> str:
    if not args.token:
        raise ValueError("No Plex token. Run 'login' first and set PLEX_TOKEN or pass --token.")
    return args.token


def display_user(user: AccountUser, token: str) -> None:
    print()
    print(f"Signed in as {user.username} ({user.email})")
    print()
    print("Export the token to use the other commands:")
    print(f"  export PLEX_TOKEN={token}")
    print()


def format_timestamp(epoch: Optional[int]) -> str:
    if epoch is None:
        return "-"
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def display_history(records: List[PlayRecord]) -> None:
    for record in records:
        artist = record.grandparent_title or "Unknown Artist"
        print(f"{format_timestamp(record.viewed_at)}  {artist} - {record.title}")
    print(f"\n{len(records)} plays")


async def run_login(plex: PlexClient, args: argparse.Namespace) -> int:
    if args.claim:
        if not is_claim_token(args.claim):
            logger.warning("Value does not look like a claim token (expected 'claim-' prefix)")
        token = await plex.exchange_claim_token(args.claim)
        user = await plex.get_user(token)
    elif args.username:
        password = getpass.getpass("Plex password: ")
        token, user = await plex.sign_in_with_password(args.username, password)
    else:
        pin = await plex.create_pin()
        print()
        print(f"Open this URL and approve code {pin.code}:")
        print(f"  {get_auth_url(plex.config, pin.code)}")
        print()
        print("Waiting for authorization...")
        token = await wait_for_authorization(
            plex, pin.id, interval=args.interval, timeout=args.timeout
        )
        user = await plex.get_user(token)

    display_user(user, token)
    return 0


async def run_servers(plex: PlexClient, token: str) -> int:
    servers = await plex.get_servers(token)
    for server in servers:
        try:
            url = select_best_url(server)
        except NoConnectionError:
            url = "(no connections)"
        owner = "owned" if server.owned else "shared"
        print(f"{server.name:<30} {owner:<7} {url}")
    print(f"\n{len(servers)} servers")
    return 0


async def discover(plex: PlexClient, token: str) -> List[MusicLibrary]:
    servers = await plex.get_servers(token)
    return await find_music_libraries(plex, servers, token)


async def run_libraries(plex: PlexClient, token: str) -> int:
    found = await discover(plex, token)
    for item in found:
        print(f"{item.server.name:<30} [{item.library.key}] {item.library.title}")
    print(f"\n{len(found)} music libraries")
    return 0


async def run_history(plex: PlexClient, token: str, args: argparse.Namespace) -> int:
    servers = await plex.get_servers(token)
    server = next((s for s in servers if s.name == args.server), None)
    if server is None:
        raise ValueError(f"No server named {args.server!r}")

    records = await plex.get_play_history(select_best_url(server), token, args.library, args.limit)
    display_history(records)
    return 0


async def run_wrapped(plex: PlexClient, token: str, args: argparse.Namespace) -> int:
    found = await discover(plex, token)
    if not found:
        print("No music libraries found.")
        return 1

    records: List[PlayRecord] = []
    for item in found:
        try:
            records.extend(
                await plex.get_play_history(
                    select_best_url(item.server), token, item.library.key, args.limit
                )
            )
        except (PlexError, httpx.HTTPError) as e:
            logger.warning(
                f"Skipping history for {item.library.title!r} on {item.server.name!r}: {e}"
            )
    if args.year:
        records = filter_plays_by_year(records, args.year)

    summary = summarize_plays(records, top_n=args.top)

    print()
    print("=" * 70)
    print(f"PLEX WRAPPED{f' {args.year}' if args.year else ''}")
    print("=" * 70)
    print(f"Plays:           {summary.total_plays}")
    print(f"Minutes:         {summary.total_minutes}")
    print(f"Artists:         {summary.unique_artists}")
    print(f"Tracks:          {summary.unique_tracks}")
    print(f"First play:      {format_timestamp(summary.first_played_at)}")
    print(f"Last play:       {format_timestamp(summary.last_played_at)}")
    for heading, ranking in (
        ("Top artists", summary.top_artists),
        ("Top albums", summary.top_albums),
        ("Top tracks", summary.top_tracks),
    ):
        print()
        print(heading)
        for position, (name, count) in enumerate(ranking, start=1):
            print(f"  {position:>2}. {name} ({count})")
    print("=" * 70)
    return 0


def display_error(error: Exception) -> None:
    """
    Display error message with appropriate context.

    Args:
        error: Exception that occurred
    """
    if isinstance(error, AuthenticationError):
        print(f"Authentication failed: {error}")
        print("Please sign in again with 'login'.")
    elif isinstance(error, UpstreamError):
        print(f"Plex service error: {error}")
    elif isinstance(error, PlexError):
        print(f"Plex error: {error}")
    elif isinstance(error, httpx.HTTPError):
        print(f"Network error: {error}")
    else:
        print(f"Error: {error}")


async def async_main(args: argparse.Namespace) -> int:
    """
    Async main function.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        config = PlexConfig.from_environment()
        async with PlexClient(config) as plex:
            if args.command == "login":
                return await run_login(plex, args)

            token = require_token(args)
            if args.command == "servers":
                return await run_servers(plex, token)
            if args.command == "libraries":
                return await run_libraries(plex, token)
            if args.command == "history":
                return await run_history(plex, token, args)
            return await run_wrapped(plex, token, args)

    except (PlexError, httpx.HTTPError, ValueError, EnvironmentError) as e:
        display_error(e)
        if args.verbose:
            logger.exception("Detailed error traceback:")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print()
        print("Cancelled by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
