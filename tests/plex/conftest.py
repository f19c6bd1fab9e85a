"""
Pytest fixtures for Plex client tests.

All HTTP calls are mocked: the PlexClient is given a MagicMock in place of
httpx.AsyncClient and each test installs AsyncMock get/post methods that
return real httpx.Response objects.
"""

from typing import Any, Dict, List

import httpx
import pytest
from pytest_mock import MockerFixture

from src.plex.client import PlexClient
from src.plex.models import Connection, MediaServer, PlexConfig

ACCOUNT_URL = "https://plex.tv"
TOKEN = "test-token-abc123"


def mock_response(status_code: int, json_data: Any = None, url: str = ACCOUNT_URL) -> httpx.Response:
    """Create an httpx.Response with a JSON body.

    Args:
        status_code: HTTP status code
        json_data: JSON response body (omitted when None)
        url: Request URL recorded on the response

    Returns:
        httpx.Response with specified data
    """
    request = httpx.Request("GET", url)
    if json_data is None:
        return httpx.Response(status_code=status_code, request=request)
    return httpx.Response(status_code=status_code, json=json_data, request=request)


@pytest.fixture
def plex_config() -> PlexConfig:
    """Create test Plex configuration."""
    return PlexConfig(
        client_identifier="plex-wrapped-test",
        product="Plex Wrapped",
        version="1.0.0",
        account_url=ACCOUNT_URL,
    )


@pytest.fixture
def plex_client(plex_config: PlexConfig, mocker: MockerFixture) -> PlexClient:
    """Create a PlexClient backed by a mocked httpx.AsyncClient."""
    http_client = mocker.MagicMock(spec=httpx.AsyncClient)
    http_client.get = mocker.AsyncMock()
    http_client.post = mocker.AsyncMock()
    return PlexClient(plex_config, http_client=http_client)


def make_connection(uri: str, local: bool) -> Connection:
    """Build a Connection from a URI."""
    protocol, rest = uri.split("://", 1)
    address, _, port = rest.partition(":")
    return Connection(protocol=protocol, address=address, port=int(port or 32400), uri=uri, local=local)


def make_server(name: str, *connections: Connection) -> MediaServer:
    """Build a MediaServer with the given connections."""
    return MediaServer(
        client_identifier=f"id-{name.lower()}",
        name=name,
        provides="server",
        owned=True,
        access_token="server-token",
        connections=tuple(connections),
    )


@pytest.fixture
def resources_payload() -> List[Dict[str, Any]]:
    """plex.tv resources listing with two servers and one player."""
    return [
        {
            "name": "Living Room",
            "clientIdentifier": "srv-1",
            "provides": "server",
            "owned": True,
            "accessToken": "srv-1-token",
            "connections": [
                {
                    "protocol": "http",
                    "address": "192.168.1.10",
                    "port": 32400,
                    "uri": "http://192.168.1.10:32400",
                    "local": True,
                },
                {
                    "protocol": "https",
                    "address": "203.0.113.7",
                    "port": 32400,
                    "uri": "https://203-0-113-7.abc.plex.direct:32400",
                    "local": False,
                },
            ],
        },
        {
            "name": "iPhone",
            "clientIdentifier": "phone-1",
            "provides": "client,player",
            "owned": True,
            "connections": [],
        },
        {
            "name": "Friend's Server",
            "clientIdentifier": "srv-2",
            "provides": "server",
            "owned": False,
            "accessToken": "srv-2-token",
            "connections": [
                {
                    "protocol": "https",
                    "address": "198.51.100.2",
                    "port": 443,
                    "uri": "https://198-51-100-2.def.plex.direct:443",
                    "local": False,
                }
            ],
        },
    ]


@pytest.fixture
def sections_payload() -> Dict[str, Any]:
    """Library sections listing with one music and one movie library."""
    return {
        "MediaContainer": {
            "size": 2,
            "Directory": [
                {
                    "key": "1",
                    "title": "Movies",
                    "type": "movie",
                    "agent": "tv.plex.agents.movie",
                    "scanner": "Plex Movie",
                    "language": "en-US",
                    "uuid": "movie-uuid",
                },
                {
                    "key": "4",
                    "title": "Music",
                    "type": "artist",
                    "agent": "tv.plex.agents.music",
                    "scanner": "Plex Music",
                    "language": "en",
                    "uuid": "music-uuid",
                },
            ],
        }
    }


@pytest.fixture
def history_payload() -> Dict[str, Any]:
    """Session history with two track plays, newest first."""
    return {
        "MediaContainer": {
            "size": 2,
            "Metadata": [
                {
                    "key": "/library/metadata/501",
                    "title": "Money",
                    "parentTitle": "The Dark Side of the Moon",
                    "grandparentTitle": "Pink Floyd",
                    "viewedAt": 1735689000,
                    "duration": 382000,
                    "type": "track",
                },
                {
                    "key": "/library/metadata/502",
                    "title": "Bohemian Rhapsody",
                    "parentTitle": "A Night at the Opera",
                    "grandparentTitle": "Queen",
                    "viewedAt": 1735600000,
                    "duration": 354000,
                    "type": "track",
                },
            ],
        }
    }
