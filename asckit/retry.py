"""Retry helper for transient failures.

Only ``RetryableError`` is retried. Everything else propagates on the first
attempt; deciding what is transient belongs to whoever raises.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, Field

from .deadline import Deadline
from .errors import RetryableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryOptions(BaseModel):
    """Retry policy."""

    max_retries: int = Field(default=3, ge=0)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)

    def backoff(self, attempt: int) -> float:
        """Full-jitter exponential backoff for the given retry attempt (0-based)."""
        ceiling = min(self.max_delay, self.base_delay * (2**attempt))
        return random.uniform(0, ceiling)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
    deadline: Deadline | None = None,
) -> T:
    """Call ``fn`` and retry it while it raises ``RetryableError``.

    The server's ``retry_after`` takes precedence over computed backoff.
    Waits are bounded by ``deadline``; the last RetryableError is re-raised
    once ``max_retries`` is exhausted.
    """
    options = options or RetryOptions()
    deadline = deadline or Deadline.never()

    attempt = 0
    while True:
        try:
            return await fn()
        except RetryableError as e:
            if attempt >= options.max_retries:
                raise
            delay = e.retry_after if e.retry_after else options.backoff(attempt)
            logger.info(
                f"Retrying after transient failure: {e}",
                extra={"attempt": attempt + 1, "delay": round(delay, 3)},
            )
            attempt += 1
            await deadline.sleep(delay, "retry")
