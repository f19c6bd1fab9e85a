"""Async HTTP client for the plex.tv account API and Plex Media Servers."""

import logging
from typing import Any, List, Optional, Tuple

import httpx

from .auth import build_headers
from .exceptions import AuthenticationError, ProtocolError, UpstreamError
from .models import AccountUser, AuthPin, AuthToken, Library, MediaServer, PlayRecord, PlexConfig
from .transform import (
    parse_libraries,
    parse_pin,
    parse_pin_token,
    parse_play_history,
    parse_servers,
    parse_user,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10000


class PlexClient:
    """Asynchronous client for the Plex PIN flow, server discovery and history.

    Every method is a single round trip: nothing is cached and no state is
    carried between calls, so methods may be awaited concurrently. The
    bearer token is passed per call rather than stored on the client.

    Attributes:
        config: PlexConfig with product headers and account URL
        client: httpx.AsyncClient used for all requests

    Example:
        >>> async with PlexClient(PlexConfig(client_identifier="abc")) as plex:
        ...     pin = await plex.create_pin()
        ...     token = await plex.check_pin_status(pin.id)
    """

    def __init__(self, config: PlexConfig, http_client: Optional[httpx.AsyncClient] = None):
        """Initialize Plex client.

        Args:
            config: PlexConfig with client identifier and product details
            http_client: Optional pre-configured httpx.AsyncClient. When
                omitted the client creates and owns one.
        """
        self.config = config
        self._account_url = config.account_url.rstrip("/")
        self._owns_client = http_client is None

        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.timeout, connect=10.0),
                follow_redirects=True,
            )
        self.client = http_client

        logger.debug(f"Initialized Plex client for {self._account_url}")

    async def aclose(self):
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
            logger.debug("Closed Plex client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _build_url(self, path: str) -> str:
        """Build a plex.tv account API URL."""
        return f"{self._account_url}{path}"

    @staticmethod
    def _server_url(server_url: str, path: str) -> str:
        return f"{server_url.rstrip('/')}{path}"

    def _handle_response(
        self,
        response: httpx.Response,
        context: str,
        unauthorized_message: Optional[str] = None,
    ) -> Any:
        """Validate status and decode a JSON response.

        Args:
            response: HTTP response
            context: Description of the call for error messages
            unauthorized_message: If set, a 401 raises AuthenticationError
                with this message instead of UpstreamError

        Returns:
            Decoded JSON body

        Raises:
            AuthenticationError: For 401 when unauthorized_message is set
            UpstreamError: For any other non-success status
            ProtocolError: If the body is not valid JSON
        """
        if response.status_code == 401 and unauthorized_message:
            logger.warning(f"{context}: token or credentials rejected")
            raise AuthenticationError(unauthorized_message)

        if not response.is_success:
            logger.error(f"{context}: {response.status_code} {response.reason_phrase}")
            raise UpstreamError(response.status_code, response.reason_phrase, context)

        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"{context}: response is not valid JSON") from e

    # PIN authentication flow

    async def create_pin(self) -> AuthPin:
        """Create a new PIN for the user to authorize on plex.tv.

        Returns:
            AuthPin with id (for polling) and code (for display)

        Raises:
            UpstreamError: If plex.tv rejects the request
        """
        headers = build_headers(self.config)
        headers["strong"] = "true"

        response = await self.client.post(self._build_url("/api/v2/pins"), headers=headers)
        data = self._handle_response(response, "Failed to create Plex PIN")

        pin = parse_pin(data)
        logger.info(f"Created Plex PIN {pin.id}")
        return pin

    async def check_pin_status(self, pin_id: int) -> Optional[AuthToken]:
        """Check once whether a PIN has been authorized.

        No retry or sleep happens here; the caller owns the polling loop
        (see ``src.plex.polling.wait_for_authorization``).

        Args:
            pin_id: PIN id from ``create_pin``

        Returns:
            The auth token once authorized, or None while still pending

        Raises:
            UpstreamError: If plex.tv rejects the request (e.g. expired PIN)
        """
        response = await self.client.get(
            self._build_url(f"/api/v2/pins/{pin_id}"), headers=build_headers(self.config)
        )
        data = self._handle_response(response, "Failed to check PIN status")

        token = parse_pin_token(data)
        logger.debug(f"PIN {pin_id} {'authorized' if token else 'still pending'}")
        return token

    async def exchange_claim_token(self, claim_token: str) -> AuthToken:
        """Exchange a temporary claim token for a durable auth token.

        Args:
            claim_token: Token from plex.tv/claim (``claim-`` prefix)

        Returns:
            Durable auth token

        Raises:
            UpstreamError: If the exchange is rejected
            ProtocolError: If no auth token is returned
        """
        response = await self.client.post(
            self._build_url("/api/claim/exchange"),
            params={"token": claim_token},
            headers=build_headers(self.config),
        )
        data = self._handle_response(response, "Failed to exchange claim token")

        token = data.get("authToken") if isinstance(data, dict) else None
        if not token:
            raise ProtocolError("No auth token returned from claim exchange")

        logger.info("Exchanged claim token for auth token")
        return token

    async def get_user(self, token: AuthToken) -> AccountUser:
        """Fetch the account profile for a token.

        This doubles as token validation: an invalid or expired token is
        reported by plex.tv as HTTP 401.

        Raises:
            AuthenticationError: If the token is rejected
            UpstreamError: For other failures
        """
        response = await self.client.get(
            self._build_url("/api/v2/user"), headers=build_headers(self.config, token)
        )
        data = self._handle_response(
            response,
            "Failed to get Plex user",
            unauthorized_message="Plex token is invalid or expired",
        )

        user = parse_user(data)
        logger.info(f"Validated token for Plex user {user.username}")
        return user

    validate_token = get_user

    async def sign_in_with_password(
        self, login: str, password: str
    ) -> Tuple[AuthToken, AccountUser]:
        """Sign in with username/email and password, bypassing the PIN flow.

        Args:
            login: Plex username or email
            password: Account password

        Returns:
            Tuple of (auth token, account user)

        Raises:
            AuthenticationError: If the credentials are rejected
            UpstreamError: For other failures
            ProtocolError: If the response lacks the user or token
        """
        headers = build_headers(self.config)
        headers["Content-Type"] = "application/x-www-form-urlencoded"

        response = await self.client.post(
            self._build_url("/users/sign_in.json"),
            data={"login": login, "password": password},
            headers=headers,
        )
        data = self._handle_response(
            response, "Failed to sign in", unauthorized_message="Invalid email or password"
        )

        user_data = data.get("user") if isinstance(data, dict) else None
        if not isinstance(user_data, dict) or not user_data.get("authToken"):
            raise ProtocolError("Sign-in response missing user auth token")

        user = parse_user(user_data)
        logger.info(f"Signed in Plex user {user.username}")
        return user_data["authToken"], user

    # Server discovery

    async def get_servers(self, token: AuthToken) -> List[MediaServer]:
        """List the account's media servers.

        Companion apps and players are dropped; server order is preserved.

        Raises:
            UpstreamError: If plex.tv rejects the request
            ProtocolError: If the response is not a resource array
        """
        response = await self.client.get(
            self._build_url("/api/v2/resources"),
            params={"includeHttps": "1"},
            headers=build_headers(self.config, token),
        )
        data = self._handle_response(response, "Failed to get Plex servers")

        servers = parse_servers(data)
        logger.info(f"Retrieved {len(servers)} Plex servers")
        return servers

    async def get_libraries(self, server_url: str, token: AuthToken) -> List[Library]:
        """List the library sections on one server.

        Args:
            server_url: Base URL chosen by ``select_best_url``
            token: Bearer token

        Returns:
            Libraries in server order (empty if the server has none)

        Raises:
            UpstreamError: If the server rejects the request
            ProtocolError: If the response lacks a MediaContainer
        """
        response = await self.client.get(
            self._server_url(server_url, "/library/sections"),
            headers=build_headers(self.config, token),
        )
        data = self._handle_response(response, "Failed to get libraries")

        libraries = parse_libraries(data)
        logger.debug(f"Retrieved {len(libraries)} libraries from {server_url}")
        return libraries

    # Play history

    async def get_play_history(
        self,
        server_url: str,
        token: AuthToken,
        library_section_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> List[PlayRecord]:
        """Fetch play history for one library section, newest first.

        Sorting is delegated to the server; records are returned in the
        order received. Only the first page of ``limit`` records is read.

        Args:
            server_url: Base URL of the server
            token: Bearer token
            library_section_id: Library section key
            limit: Maximum number of records (default: 10000)

        Returns:
            List of PlayRecord (empty if the server reports none)

        Raises:
            UpstreamError: If the server rejects the request
        """
        params = {
            "librarySectionID": str(library_section_id),
            "sort": "viewedAt:desc",
            "X-Plex-Container-Start": "0",
            "X-Plex-Container-Size": str(limit),
        }

        response = await self.client.get(
            self._server_url(server_url, "/status/sessions/history/all"),
            params=params,
            headers=build_headers(self.config, token),
        )
        data = self._handle_response(response, "Failed to get play history")

        records = parse_play_history(data)
        logger.info(f"Retrieved {len(records)} play records for section {library_section_id}")
        return records
