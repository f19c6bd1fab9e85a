"""Tests for server listing and connection selection."""

import pytest

from src.plex.client import PlexClient
from src.plex.exceptions import NoConnectionError, ProtocolError, UpstreamError
from src.plex.selection import select_best_url

from .conftest import TOKEN, make_connection, make_server, mock_response


class TestGetServers:
    """Tests for get_servers."""

    @pytest.mark.asyncio
    async def test_keeps_only_media_servers_in_order(self, plex_client: PlexClient, resources_payload):
        plex_client.client.get.return_value = mock_response(200, resources_payload)

        servers = await plex_client.get_servers(TOKEN)

        assert [s.name for s in servers] == ["Living Room", "Friend's Server"]
        assert all(s.provides == "server" for s in servers)

    @pytest.mark.asyncio
    async def test_server_then_client_then_server(self, plex_client: PlexClient):
        payload = [
            {"clientIdentifier": "a", "name": "A", "provides": "server", "connections": []},
            {"clientIdentifier": "b", "name": "B", "provides": "client", "connections": []},
            {"clientIdentifier": "c", "name": "C", "provides": "server", "connections": []},
        ]
        plex_client.client.get.return_value = mock_response(200, payload)

        servers = await plex_client.get_servers(TOKEN)

        assert [s.client_identifier for s in servers] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_parses_connections_and_ownership(self, plex_client: PlexClient, resources_payload):
        plex_client.client.get.return_value = mock_response(200, resources_payload)

        living_room, friend = await plex_client.get_servers(TOKEN)

        assert living_room.owned is True
        assert friend.owned is False
        assert len(living_room.connections) == 2
        assert living_room.connections[0].local is True
        assert living_room.connections[1].protocol == "https"
        assert living_room.connections[1].port == 32400

    @pytest.mark.asyncio
    async def test_request_includes_https_flag_and_token(self, plex_client: PlexClient):
        plex_client.client.get.return_value = mock_response(200, [])

        await plex_client.get_servers(TOKEN)

        call = plex_client.client.get.call_args
        assert call.args[0] == "https://plex.tv/api/v2/resources"
        assert call.kwargs["params"] == {"includeHttps": "1"}
        assert call.kwargs["headers"]["X-Plex-Token"] == TOKEN

    @pytest.mark.asyncio
    async def test_access_token_not_in_repr(self, plex_client: PlexClient, resources_payload):
        plex_client.client.get.return_value = mock_response(200, resources_payload)

        servers = await plex_client.get_servers(TOKEN)

        assert servers[0].access_token == "srv-1-token"
        assert "srv-1-token" not in repr(servers[0])

    @pytest.mark.asyncio
    async def test_failure_raises_upstream_error(self, plex_client: PlexClient):
        plex_client.client.get.return_value = mock_response(502)

        with pytest.raises(UpstreamError) as exc_info:
            await plex_client.get_servers(TOKEN)

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_non_array_body_raises_protocol_error(self, plex_client: PlexClient):
        plex_client.client.get.return_value = mock_response(200, {"MediaContainer": {}})

        with pytest.raises(ProtocolError):
            await plex_client.get_servers(TOKEN)

    @pytest.mark.asyncio
    async def test_malformed_connection_keeps_every_server(self, plex_client: PlexClient):
        payload = [
            {
                "clientIdentifier": "good",
                "name": "Good",
                "provides": "server",
                "connections": [{"protocol": "https", "uri": "https://good.plex.direct:32400", "local": False}],
            },
            {
                "clientIdentifier": "bad",
                "name": "Bad",
                "provides": "server",
                "connections": [{"protocol": "https", "address": "10.0.0.9"}, None],
            },
        ]
        plex_client.client.get.return_value = mock_response(200, payload)

        good, bad = await plex_client.get_servers(TOKEN)

        assert good.name == "Good"
        assert good.connections[0].uri == "https://good.plex.direct:32400"
        assert bad.name == "Bad"
        assert bad.connections == ()
        with pytest.raises(NoConnectionError):
            select_best_url(bad)

    @pytest.mark.asyncio
    async def test_server_without_identifier_is_skipped(self, plex_client: PlexClient):
        payload = [
            {"clientIdentifier": "good", "name": "Good", "provides": "server", "connections": []},
            {"name": "Nameless", "provides": "server", "connections": []},
        ]
        plex_client.client.get.return_value = mock_response(200, payload)

        servers = await plex_client.get_servers(TOKEN)

        assert [s.name for s in servers] == ["Good"]


class TestSelectBestUrl:
    """Tests for select_best_url."""

    def test_remote_https_wins_regardless_of_position(self):
        remote = make_connection("https://1-2-3-4.plex.direct:32400", local=False)
        local_a = make_connection("http://192.168.1.10:32400", local=True)
        local_b = make_connection("http://10.0.0.5:32400", local=True)

        for connections in ((remote, local_a, local_b), (local_a, remote, local_b), (local_a, local_b, remote)):
            assert select_best_url(make_server("Home", *connections)) == remote.uri

    def test_falls_back_to_first_connection(self):
        first = make_connection("http://192.168.1.10:32400", local=True)
        second = make_connection("http://10.0.0.5:32400", local=True)

        assert select_best_url(make_server("Home", first, second)) == first.uri

    def test_local_https_is_not_preferred(self):
        plain = make_connection("http://203.0.113.7:32400", local=False)
        local_tls = make_connection("https://192-168-1-10.plex.direct:32400", local=True)

        assert select_best_url(make_server("Home", plain, local_tls)) == plain.uri

    def test_first_of_several_remote_https(self):
        a = make_connection("https://a.plex.direct:32400", local=False)
        b = make_connection("https://b.plex.direct:32400", local=False)

        assert select_best_url(make_server("Home", a, b)) == a.uri

    def test_no_connections_raises(self):
        with pytest.raises(NoConnectionError) as exc_info:
            select_best_url(make_server("Empty"))

        assert exc_info.value.server_name == "Empty"
