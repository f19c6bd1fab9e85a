"""Plex account authentication, music library discovery and play history."""

__version__ = "1.0.0"

from .auth import build_headers, get_auth_url, is_claim_token
from .client import PlexClient
from .discovery import find_music_libraries, probe_server, probe_servers
from .exceptions import (
    AuthenticationError,
    AuthorizationTimeoutError,
    NoConnectionError,
    PlexError,
    ProtocolError,
    UpstreamError,
)
from .models import (
    AccountUser,
    AuthPin,
    AuthToken,
    Connection,
    Library,
    MediaServer,
    MusicLibrary,
    PlayRecord,
    PlaySummary,
    PlexConfig,
    ServerProbe,
)
from .polling import wait_for_authorization
from .selection import select_best_url
from .stats import filter_plays_by_year, summarize_plays

__all__ = [
    # Client
    "PlexClient",
    # Models
    "PlexConfig",
    "AuthPin",
    "AuthToken",
    "AccountUser",
    "Connection",
    "MediaServer",
    "Library",
    "MusicLibrary",
    "ServerProbe",
    "PlayRecord",
    "PlaySummary",
    # Authentication
    "build_headers",
    "get_auth_url",
    "is_claim_token",
    "wait_for_authorization",
    # Discovery
    "select_best_url",
    "probe_server",
    "probe_servers",
    "find_music_libraries",
    # Statistics
    "filter_plays_by_year",
    "summarize_plays",
    # Exceptions
    "PlexError",
    "UpstreamError",
    "AuthenticationError",
    "ProtocolError",
    "NoConnectionError",
    "AuthorizationTimeoutError",
]
