"""Caller deadline shared by every suspension point of one unit of work.

A ``Deadline`` plays the role of a cancellable request context: HTTP calls
and poll sleeps are bounded by whatever time is left, and an expired
deadline raises ``DeadlineExceededError`` instead of sleeping further.
Task cancellation is plain ``asyncio`` cancellation and is never caught here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import DeadlineExceededError

T = TypeVar("T")


class Deadline:
    """Absolute deadline on the running event loop's monotonic clock."""

    def __init__(self, expires_at: float | None):
        self._expires_at = expires_at

    @classmethod
    def after(cls, seconds: float | None) -> Deadline:
        """Deadline ``seconds`` from now; ``None`` never expires."""
        if seconds is None:
            return cls(None)
        return cls(asyncio.get_running_loop().time() + seconds)

    @classmethod
    def never(cls) -> Deadline:
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left, clamped at zero; ``None`` for an unbounded deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - asyncio.get_running_loop().time())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, what: str = "operation") -> None:
        """Raise DeadlineExceededError if the deadline has passed."""
        if self.expired:
            raise DeadlineExceededError(f"{what}: deadline exceeded")

    async def sleep(self, seconds: float, what: str = "wait") -> None:
        """Sleep for ``seconds`` or until the deadline, whichever is first."""
        self.check(what)
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            await asyncio.sleep(remaining)
            raise DeadlineExceededError(f"{what}: deadline exceeded")
        await asyncio.sleep(seconds)

    async def run(self, awaitable: Awaitable[T], what: str = "operation") -> T:
        """Await ``awaitable`` bounded by the time left.

        On expiry the awaitable is cancelled, which aborts an in-flight
        HTTP request.
        """
        if self.expired:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DeadlineExceededError(f"{what}: deadline exceeded")
        try:
            return await asyncio.wait_for(awaitable, timeout=self.remaining())
        except asyncio.TimeoutError as exc:
            raise DeadlineExceededError(f"{what}: deadline exceeded") from exc
