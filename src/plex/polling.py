"""Caller-side polling loop for PIN authorization.

``PlexClient.check_pin_status`` is a single check. This module owns the
loop around it: interval, deadline and abandonment.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from .client import PlexClient
from .exceptions import AuthorizationTimeoutError
from .models import AuthToken

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
# PINs are shown to the user for 10 minutes
DEFAULT_POLL_TIMEOUT = 600.0


async def wait_for_authorization(
    client: PlexClient,
    pin_id: int,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float = DEFAULT_POLL_TIMEOUT,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> AuthToken:
    """Poll a PIN until it is authorized or the deadline passes.

    Args:
        client: PlexClient used for status checks
        pin_id: PIN id from ``create_pin``
        interval: Seconds between checks
        timeout: Seconds before giving up
        sleep: Awaitable sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        Auth token once the user approves the PIN

    Raises:
        AuthorizationTimeoutError: If no token appears before ``timeout``
        UpstreamError: If a status check fails (e.g. the PIN expired)
    """
    if interval <= 0:
        raise ValueError("interval must be positive")

    deadline = clock() + timeout
    attempt = 0

    while True:
        attempt += 1
        token = await client.check_pin_status(pin_id)
        if token:
            logger.info(f"PIN {pin_id} authorized after {attempt} checks")
            return token

        remaining = deadline - clock()
        if remaining <= 0:
            logger.warning(f"Gave up on PIN {pin_id} after {attempt} checks")
            raise AuthorizationTimeoutError(pin_id, timeout)

        await sleep(min(interval, remaining))
