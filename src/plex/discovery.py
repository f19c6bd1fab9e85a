"""Music library discovery across an account's Plex Media Servers.

One broken or unreachable server must not hide the others, so each server
is probed independently and its outcome recorded as a ServerProbe. Failures
are logged as warnings and left out of the aggregated result.
"""

import asyncio
import logging
from typing import List, Sequence

from .client import PlexClient
from .models import AuthToken, MediaServer, MusicLibrary, ServerProbe
from .selection import select_best_url

logger = logging.getLogger(__name__)


async def probe_server(client: PlexClient, server: MediaServer, token: AuthToken) -> ServerProbe:
    """Probe one server for music libraries.

    Returns:
        ServerProbe holding the server's music libraries, or the error that
        stopped the probe
    """
    try:
        server_url = select_best_url(server)
        libraries = await client.get_libraries(server_url, token)
    except Exception as e:  # confined to this server
        logger.warning(f"Failed to get libraries for server {server.name}: {e}")
        return ServerProbe(server=server, error=e)

    music = tuple(library for library in libraries if library.is_music)
    logger.debug(f"Server {server.name}: {len(music)} of {len(libraries)} libraries are music")
    return ServerProbe(server=server, libraries=music)


async def probe_servers(
    client: PlexClient, servers: Sequence[MediaServer], token: AuthToken
) -> List[ServerProbe]:
    """Probe every server concurrently.

    Results are in the same order as ``servers``. A failed probe never
    cancels or affects the others.
    """
    probes = await asyncio.gather(*(probe_server(client, server, token) for server in servers))

    failed = sum(1 for probe in probes if not probe.ok)
    if failed:
        logger.warning(f"{failed} of {len(probes)} servers could not be probed")
    return list(probes)


async def find_music_libraries(
    client: PlexClient, servers: Sequence[MediaServer], token: AuthToken
) -> List[MusicLibrary]:
    """Find music libraries across all servers.

    Args:
        client: PlexClient used for requests
        servers: Servers from ``PlexClient.get_servers``
        token: Bearer token

    Returns:
        (server, library) pairs in server order, then library order within
        each server. Servers that fail are skipped.

    Example:
        >>> servers = await client.get_servers(token)
        >>> for found in await find_music_libraries(client, servers, token):
        ...     print(found.server.name, found.library.title)
    """
    probes = await probe_servers(client, servers, token)

    music_libraries = [
        MusicLibrary(server=probe.server, library=library)
        for probe in probes
        if probe.ok
        for library in probe.libraries
    ]
    logger.info(f"Found {len(music_libraries)} music libraries on {len(servers)} servers")
    return music_libraries
