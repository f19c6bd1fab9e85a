"""Connection selection for Plex Media Servers."""

import logging

from .exceptions import NoConnectionError
from .models import MediaServer

logger = logging.getLogger(__name__)


def select_best_url(server: MediaServer) -> str:
    """Pick the URL to reach a server from a remote caller.

    The first remote HTTPS connection wins, since it works regardless of
    where the caller sits on the network. Otherwise the first connection in
    upstream order is used. Secure local connections get no special rank.

    Args:
        server: MediaServer with its candidate connections

    Returns:
        Connection URI

    Raises:
        NoConnectionError: If the server lists no connections

    Examples:
        >>> from src.plex.models import Connection
        >>> local = Connection("http", "10.0.0.2", 32400, "http://10.0.0.2:32400", True)
        >>> remote = Connection("https", "1.2.3.4", 32400, "https://1-2-3-4.plex.direct:32400", False)
        >>> select_best_url(MediaServer("abc", "Home", "server", True, connections=(local, remote)))
        'https://1-2-3-4.plex.direct:32400'
    """
    if not server.connections:
        raise NoConnectionError(server.name)

    for connection in server.connections:
        if connection.is_secure and not connection.local:
            logger.debug(f"Using remote HTTPS connection for {server.name}")
            return connection.uri

    logger.debug(f"No remote HTTPS connection for {server.name}, using first listed")
    return server.connections[0].uri
