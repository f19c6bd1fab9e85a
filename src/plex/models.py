"""Data models for Plex account and media server integration."""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

# Opaque bearer credential. Kept a plain string so hosts can store it as-is.
AuthToken = str

MUSIC_LIBRARY_TYPE = "artist"
MEDIA_SERVER_KIND = "server"


@dataclass(frozen=True)
class PlexConfig:
    """Configuration for talking to plex.tv and Plex Media Servers.

    Attributes:
        client_identifier: Stable identifier for this application install
        product: Product name shown to the user on plex.tv
        version: Product version sent with every request
        account_url: Base URL of the plex.tv account service
        auth_app_url: URL of the page where users approve a PIN
        timeout: Per-request timeout in seconds
    """

    client_identifier: str
    product: str = "Plex Wrapped"
    version: str = "1.0.0"
    account_url: str = "https://plex.tv"
    auth_app_url: str = "https://app.plex.tv/auth"
    timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration on initialization."""
        if not self.client_identifier:
            raise ValueError("client_identifier is required")
        if not self.account_url.startswith(("http://", "https://")):
            raise ValueError("account_url must be a valid HTTP/HTTPS URL")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def from_environment(cls) -> "PlexConfig":
        """Load configuration from environment variables.

        Returns:
            PlexConfig built from PLEX_* variables

        Raises:
            EnvironmentError: If PLEX_CLIENT_ID is not set
        """
        client_identifier = os.getenv("PLEX_CLIENT_ID")
        if not client_identifier:
            raise EnvironmentError(
                "Required environment variable missing: PLEX_CLIENT_ID\n"
                "Example: export PLEX_CLIENT_ID='3f1c7a52-plex-wrapped'"
            )

        return cls(
            client_identifier=client_identifier,
            product=os.getenv("PLEX_PRODUCT", "Plex Wrapped"),
            version=os.getenv("PLEX_VERSION", "1.0.0"),
            account_url=os.getenv("PLEX_ACCOUNT_URL", "https://plex.tv").rstrip("/"),
            timeout=float(os.getenv("PLEX_TIMEOUT", "30")),
        )


@dataclass(frozen=True)
class AuthPin:
    """Pending PIN authorization request.

    Attributes:
        id: Numeric PIN identifier used for polling
        code: Short code the user enters or approves on plex.tv
    """

    id: int
    code: str


@dataclass(frozen=True)
class AccountUser:
    """Authenticated plex.tv account.

    Attributes:
        id: Numeric account ID
        uuid: Account UUID
        username: Display username
        email: Account email address
        thumb: Avatar URL
    """

    id: int
    uuid: str
    username: str
    email: str
    thumb: str


@dataclass(frozen=True)
class Connection:
    """One network path to a Plex Media Server."""

    protocol: str
    address: str
    port: int
    uri: str
    local: bool

    @property
    def is_secure(self) -> bool:
        return self.protocol == "https"


@dataclass(frozen=True)
class MediaServer:
    """Server resource owned by or shared with the account.

    Attributes:
        client_identifier: Stable unique server ID
        name: Display name
        provides: Capability tag ("server" for media servers)
        owned: True if the account owns the server
        access_token: Per-server access token (excluded from repr)
        connections: Candidate endpoints in upstream order
    """

    client_identifier: str
    name: str
    provides: str
    owned: bool
    access_token: Optional[str] = field(default=None, repr=False)
    connections: Tuple[Connection, ...] = ()


@dataclass(frozen=True)
class Library:
    """Content section on a Plex Media Server.

    The key is unique within its server only.
    """

    key: str
    title: str
    type: str
    agent: Optional[str] = None
    scanner: Optional[str] = None
    language: Optional[str] = None
    uuid: Optional[str] = None

    @property
    def is_music(self) -> bool:
        return self.type == MUSIC_LIBRARY_TYPE


@dataclass(frozen=True)
class MusicLibrary:
    """A music library together with the server hosting it."""

    server: MediaServer
    library: Library


@dataclass(frozen=True)
class ServerProbe:
    """Outcome of probing one server for music libraries.

    Exactly one of ``libraries`` (on success) or ``error`` (on failure) is
    meaningful.
    """

    server: MediaServer
    libraries: Tuple[Library, ...] = ()
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PlayRecord:
    """One historical playback event.

    Attributes:
        key: Item key on the server
        title: Track title
        parent_title: Album title (optional)
        grandparent_title: Artist name (optional)
        viewed_at: Playback time (Unix epoch seconds)
        duration: Item duration in milliseconds
        type: Item type tag ("track" for music)
    """

    key: str
    title: str
    viewed_at: int
    type: str
    parent_title: Optional[str] = None
    grandparent_title: Optional[str] = None
    duration: int = 0


@dataclass(frozen=True)
class PlaySummary:
    """Aggregate listening statistics over a set of play records.

    Ranked lists hold (name, play count) pairs, most played first.
    """

    total_plays: int = 0
    total_duration_ms: int = 0
    unique_artists: int = 0
    unique_tracks: int = 0
    top_artists: Tuple[Tuple[str, int], ...] = ()
    top_albums: Tuple[Tuple[str, int], ...] = ()
    top_tracks: Tuple[Tuple[str, int], ...] = ()
    first_played_at: Optional[int] = None
    last_played_at: Optional[int] = None

    @property
    def total_minutes(self) -> int:
        return self.total_duration_ms // 60_000
