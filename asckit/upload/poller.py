"""Asset delivery state poller.

After an upload is committed the server processes the asset asynchronously.
The poller re-reads the delivery state at a fixed interval until it is
terminal or the caller's deadline passes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..deadline import Deadline
from ..errors import AssetProcessingFailedError
from .models import DELIVERY_COMPLETE, DeliveryState

logger = logging.getLogger(__name__)

# Default interval between state polls (seconds)
DEFAULT_POLL_INTERVAL = 2.0

FetchState = Callable[[], Awaitable[DeliveryState | None]]


async def wait_for_delivery_state(
    asset_id: str,
    fetch_state: FetchState,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    deadline: Deadline | None = None,
) -> str:
    """
    Poll until the asset reaches a terminal delivery state.

    Args:
        asset_id: Asset being processed (for errors and logs)
        fetch_state: Coroutine function returning the current state, or None
            when the server has not reported one yet
        poll_interval: Fixed wait between polls in seconds
        deadline: Caller deadline, checked before every fetch and sleep

    Returns:
        ``"COMPLETE"``

    Raises:
        AssetProcessingFailedError: Server reported FAILED
        DeadlineExceededError: Deadline passed before a terminal state
    """
    if poll_interval <= 0:
        raise ValueError("poll_interval must be positive")
    deadline = deadline or Deadline.never()

    last_state: str | None = None
    while True:
        deadline.check(f"waiting for asset {asset_id}")
        state = await deadline.run(fetch_state(), f"waiting for asset {asset_id}")

        current = state.state if state is not None else None
        if current != last_state:
            logger.debug(
                "Asset delivery state changed",
                extra={"asset_id": asset_id, "state": current},
            )
            last_state = current

        if state is not None and state.is_complete:
            return DELIVERY_COMPLETE
        if state is not None and state.is_failed:
            raise AssetProcessingFailedError(asset_id, state.reasons())

        await deadline.sleep(poll_interval, f"waiting for asset {asset_id}")
