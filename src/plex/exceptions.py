"""Exception classes for the Plex account and media server client."""

from typing import Optional


class PlexError(Exception):
    """Base exception for all Plex client errors.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamError(PlexError):
    """Plex API returned a non-success HTTP status.

    Not retried by the client; the caller decides whether to try again.

    Attributes:
        status_code: HTTP status code
        reason: HTTP reason phrase
    """

    def __init__(self, status_code: int, reason: str, context: str = "Plex request failed"):
        """Initialize upstream error.

        Args:
            status_code: HTTP status code from the response
            reason: HTTP reason phrase (may be empty)
            context: What the client was trying to do
        """
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{context}: {status_code} {reason}".rstrip())


class AuthenticationError(PlexError):
    """Credentials or token rejected (HTTP 401).

    Kept apart from UpstreamError so hosts can ask the user to sign in again
    instead of reporting the service as unavailable.
    """

    def __init__(self, message: str, status_code: Optional[int] = 401):
        self.status_code = status_code
        super().__init__(message)


class ProtocolError(PlexError):
    """Successful response missing an expected field."""

    pass


class NoConnectionError(PlexError):
    """Server record has no usable network endpoint."""

    def __init__(self, server_name: str):
        self.server_name = server_name
        super().__init__(f"Server {server_name!r} has no available connections")


class AuthorizationTimeoutError(PlexError):
    """PIN was not authorized before the polling deadline."""

    def __init__(self, pin_id: int, timeout: float):
        self.pin_id = pin_id
        self.timeout = timeout
        super().__init__(f"PIN {pin_id} was not authorized within {timeout:g}s")
