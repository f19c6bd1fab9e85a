"""Plex authentication helpers.

Every request to plex.tv or a Plex Media Server carries a fixed set of
client headers identifying the product. Authenticated requests add the
account's bearer token in ``X-Plex-Token``.

PIN Flow:
    1. Create a PIN (``PlexClient.create_pin``)
    2. Send the user to ``get_auth_url(config, pin.code)`` to approve it
    3. Poll ``PlexClient.check_pin_status`` until a token appears
    4. Validate the token with ``PlexClient.get_user``

Example:
    >>> from src.plex.models import PlexConfig
    >>> config = PlexConfig(client_identifier="wrapped-abc123")
    >>> build_headers(config, token="secret")["X-Plex-Token"]
    'secret'
    >>> is_claim_token("claim-xyz")
    True

Security Notes:
    - Tokens grant full account access; never log them
    - Claim tokens expire within minutes and can be exchanged only once
"""

from typing import Dict, Optional
from urllib.parse import urlencode

from .models import AuthToken, PlexConfig

TOKEN_HEADER = "X-Plex-Token"
CLAIM_TOKEN_PREFIX = "claim-"


def build_headers(config: PlexConfig, token: Optional[AuthToken] = None) -> Dict[str, str]:
    """Build the header set sent with every Plex request.

    Args:
        config: Plex configuration with product and client identifier
        token: Optional bearer token for authenticated calls

    Returns:
        Dictionary of HTTP headers
    """
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "X-Plex-Product": config.product,
        "X-Plex-Version": config.version,
        "X-Plex-Client-Identifier": config.client_identifier,
    }
    if token:
        headers[TOKEN_HEADER] = token
    return headers


def get_auth_url(config: PlexConfig, code: str) -> str:
    """Build the plex.tv URL where the user approves a PIN.

    Args:
        config: Plex configuration
        code: PIN code returned by ``create_pin``

    Returns:
        Authorization URL with client ID, code and product context

    Example:
        >>> get_auth_url(PlexConfig(client_identifier="abc"), "WXYZ")
        'https://app.plex.tv/auth#?clientID=abc&code=WXYZ&context%5Bdevice%5D%5Bproduct%5D=Plex+Wrapped'
    """
    params = urlencode(
        {
            "clientID": config.client_identifier,
            "code": code,
            "context[device][product]": config.product,
        }
    )
    return f"{config.auth_app_url}#?{params}"


def is_claim_token(value: str) -> bool:
    """Check whether a credential is a short-lived claim token.

    Claim tokens (from plex.tv/claim) must be exchanged for a durable
    bearer token before use.
    """
    return value.strip().startswith(CLAIM_TOKEN_PREFIX)
