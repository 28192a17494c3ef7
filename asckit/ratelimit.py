"""Rate limit header parsing.

App Store Connect reports quota in an ``X-Rate-Limit`` header such as::

    user-hour-lim:3600;user-hour-rem:3599;

and throttles with ``429`` plus an optional ``Retry-After`` header.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from pydantic import BaseModel, Field

RATE_LIMIT_HEADER = "X-Rate-Limit"
RETRY_AFTER_HEADER = "Retry-After"

_SEPARATORS = re.compile(r"[;,\n]")


class RateLimitWindow(BaseModel):
    """Limit and remaining count for one quota window."""

    limit: int | None = None
    remaining: int | None = None


class RateLimitInfo(BaseModel):
    """Parsed rate limit header."""

    windows: dict[str, RateLimitWindow] = Field(default_factory=dict)
    raw: str = ""

    def summary(self) -> str:
        """Render windows sorted by name, e.g. ``user-hour 3599/3600 remaining``."""
        parts = []
        for name in sorted(self.windows):
            window = self.windows[name]
            if window.limit is not None and window.remaining is not None:
                parts.append(f"{name} {window.remaining}/{window.limit} remaining")
            elif window.remaining is not None:
                parts.append(f"{name} {window.remaining} remaining")
            elif window.limit is not None:
                parts.append(f"{name} limit {window.limit}")
        return "; ".join(parts)


def parse_rate_limit_header(value: str | None) -> RateLimitInfo | None:
    """Parse an ``X-Rate-Limit`` header value.

    Tokens are separated by ``;``, ``,`` or newlines and use ``:`` (or ``=``)
    between key and value. Keys ending in ``-lim`` / ``-rem`` populate the
    window named by the rest of the key. Returns None when nothing usable is
    present.
    """
    raw = (value or "").strip()
    if not raw:
        return None

    info = RateLimitInfo(raw=raw)
    for token in _SEPARATORS.split(raw):
        token = token.strip()
        if not token:
            continue

        sep = "=" if "=" in token and ":" not in token else ":"
        key, found, val = token.partition(sep)
        if not found:
            continue
        key, val = key.strip(), val.strip()
        if not key or not val:
            continue
        try:
            number = int(val)
        except ValueError:
            continue

        if key.endswith("-lim"):
            window = info.windows.setdefault(key[: -len("-lim")], RateLimitWindow())
            window.limit = number
        elif key.endswith("-rem"):
            window = info.windows.setdefault(key[: -len("-rem")], RateLimitWindow())
            window.remaining = number

    if not info.windows:
        return None
    return info


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header into seconds.

    Accepts delta-seconds or an HTTP-date. Dates in the past yield 0.
    """
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        pass
    else:
        return seconds if seconds > 0 else None

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())
