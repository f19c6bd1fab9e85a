"""Transform Plex API JSON payloads into immutable records.

Required fields raise ProtocolError when absent or of the wrong shape;
optional fields fall back to defaults. In a server listing a malformed
entry is skipped rather than failing the listing. Nothing here performs I/O.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ProtocolError
from .models import (
    MEDIA_SERVER_KIND,
    AccountUser,
    AuthPin,
    Connection,
    Library,
    MediaServer,
    PlayRecord,
)

logger = logging.getLogger(__name__)


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    """Fetch a required field or raise ProtocolError."""
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Expected {what} object, got {type(data).__name__}")
    value = data.get(key)
    if value is None:
        raise ProtocolError(f"{what} response missing {key!r}")
    return value


def parse_pin(data: Dict[str, Any]) -> AuthPin:
    """Parse a PIN creation response.

    Examples:
        >>> parse_pin({"id": 1234, "code": "ABCD"})
        AuthPin(id=1234, code='ABCD')
    """
    return AuthPin(id=int(_require(data, "id", "PIN")), code=str(_require(data, "code", "PIN")))


def parse_pin_token(data: Dict[str, Any]) -> Optional[str]:
    """Extract the auth token from a PIN status response.

    Returns:
        Token string, or None while the PIN is still pending
    """
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Expected PIN object, got {type(data).__name__}")
    return data.get("authToken") or None


def parse_user(data: Dict[str, Any]) -> AccountUser:
    """Parse a plex.tv user payload (profile or sign-in ``user`` object)."""
    return AccountUser(
        id=int(_require(data, "id", "User")),
        uuid=str(data.get("uuid", "")),
        username=str(_require(data, "username", "User")),
        email=str(data.get("email") or ""),
        thumb=str(data.get("thumb") or ""),
    )


def parse_connection(data: Dict[str, Any]) -> Optional[Connection]:
    """Parse one entry of a resource's ``connections`` array.

    Returns None for entries that carry no URI.
    """
    if not isinstance(data, Mapping) or not data.get("uri"):
        return None
    return Connection(
        protocol=str(data.get("protocol", "")),
        address=str(data.get("address", "")),
        port=int(data.get("port") or 0),
        uri=str(data["uri"]),
        local=bool(data.get("local", False)),
    )


def parse_server(data: Dict[str, Any]) -> MediaServer:
    """Parse a resource entry into a MediaServer.

    Connections without a URI are dropped. A server left with none raises
    NoConnectionError later, for that server only.

    Raises:
        ProtocolError: If the entry has no ``clientIdentifier``
    """
    connections = data.get("connections") or []
    parsed = tuple(conn for conn in map(parse_connection, connections) if conn is not None)
    if len(parsed) < len(connections):
        logger.warning(
            f"Dropped {len(connections) - len(parsed)} connections without a URI "
            f"for server {data.get('name', '')!r}"
        )
    return MediaServer(
        client_identifier=str(_require(data, "clientIdentifier", "Resource")),
        name=str(data.get("name", "")),
        provides=str(data.get("provides", "")),
        owned=bool(data.get("owned", False)),
        access_token=data.get("accessToken"),
        connections=parsed,
    )


def parse_servers(data: Any) -> List[MediaServer]:
    """Parse the resources listing, keeping media servers in upstream order.

    Client apps and players are dropped before parsing. A malformed server
    entry is skipped with a warning so the remaining servers stay visible.

    Raises:
        ProtocolError: If the payload is not an array
    """
    if not isinstance(data, list):
        raise ProtocolError(f"Expected resource array, got {type(data).__name__}")

    servers = []
    for item in data:
        if not isinstance(item, Mapping):
            logger.warning(f"Skipping resource entry of type {type(item).__name__}")
            continue
        if item.get("provides") != MEDIA_SERVER_KIND:
            continue
        try:
            servers.append(parse_server(item))
        except ProtocolError as e:
            logger.warning(f"Skipping server {item.get('name', '')!r}: {e}")

    logger.debug(f"Kept {len(servers)} of {len(data)} resources as media servers")
    return servers


def parse_library(data: Dict[str, Any]) -> Library:
    """Parse one ``Directory`` entry of a library sections listing."""
    return Library(
        key=str(_require(data, "key", "Library")),
        title=str(data.get("title", "")),
        type=str(data.get("type", "")),
        agent=data.get("agent"),
        scanner=data.get("scanner"),
        language=data.get("language"),
        uuid=data.get("uuid"),
    )


def parse_libraries(data: Dict[str, Any]) -> List[Library]:
    """Parse a ``/library/sections`` response.

    Raises:
        ProtocolError: If ``MediaContainer`` is missing
    """
    container = _require(data, "MediaContainer", "Library sections")
    if not isinstance(container, Mapping):
        raise ProtocolError(f"Expected MediaContainer object, got {type(container).__name__}")
    directories = container.get("Directory") or []
    if not isinstance(directories, list):
        raise ProtocolError(f"Expected Directory array, got {type(directories).__name__}")
    return [parse_library(item) for item in directories]


def parse_play_record(data: Dict[str, Any]) -> PlayRecord:
    """Parse one history ``Metadata`` entry."""
    return PlayRecord(
        key=str(data.get("key") or data.get("ratingKey") or ""),
        title=str(data.get("title", "")),
        viewed_at=int(_require(data, "viewedAt", "History item")),
        type=str(data.get("type", "")),
        parent_title=data.get("parentTitle"),
        grandparent_title=data.get("grandparentTitle"),
        duration=int(data.get("duration") or 0),
    )


def parse_play_history(data: Dict[str, Any]) -> List[PlayRecord]:
    """Parse a session history response.

    Plex Media Server wraps the payload in ``MediaContainer``; a bare
    ``{size, Metadata}`` body is accepted too.
    """
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Expected history object, got {type(data).__name__}")

    container = data.get("MediaContainer") or data
    if not isinstance(container, Mapping):
        raise ProtocolError(f"Expected MediaContainer object, got {type(container).__name__}")
    if container.get("size") == 0 or not container.get("Metadata"):
        return []
    metadata = container["Metadata"]
    if not isinstance(metadata, list):
        raise ProtocolError(f"Expected Metadata array, got {type(metadata).__name__}")
    return [parse_play_record(item) for item in metadata]
