"""Error classification for user-facing output.

``classify`` turns any failure into a message plus an actionable hint. It is
pure: the same error always yields the same classification.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator

import httpx
from pydantic import BaseModel

from .errors import (
    DeadlineExceededError,
    ForbiddenError,
    MissingAuthError,
    RetryableError,
    UnauthorizedError,
)

MISSING_AUTH_HINT = (
    "Run `asc auth login` or `asc auth init` (or set ASC_KEY_ID/ASC_ISSUER_ID/"
    "ASC_PRIVATE_KEY_PATH). Try `asc auth doctor` if you're unsure what's "
    "misconfigured."
)
DEADLINE_HINT = "Increase the request timeout (e.g. set `ASC_TIMEOUT=90s`)."
FORBIDDEN_HINT = (
    "Check that your API key has the right role/permissions for this "
    "operation in App Store Connect."
)
UNAUTHORIZED_HINT = (
    "Your credentials may be invalid or expired. Try `asc auth status` and "
    "re-login if needed."
)
RATE_LIMIT_FALLBACK_HINT = "Reduce request volume and try again."

_DEADLINE_TYPES = (DeadlineExceededError, asyncio.TimeoutError, httpx.TimeoutException)


class ClassifiedError(BaseModel):
    """Human-readable error message with an optional hint."""

    message: str = ""
    hint: str = ""


def _chain(err: BaseException) -> Iterator[BaseException]:
    """Yield ``err`` and its causes, guarding against cycles."""
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _find(err: BaseException, kinds: type | tuple[type, ...]) -> BaseException | None:
    for candidate in _chain(err):
        if isinstance(candidate, kinds):
            return candidate
    return None


def format_duration(seconds: float) -> str:
    """Render seconds truncated to whole seconds, e.g. ``30s`` or ``1m30s``."""
    total = int(seconds)
    if total <= 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    out = ""
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return f"{out}{secs}s"


def _message(err: BaseException) -> str:
    return str(err) or type(err).__name__


def classify(err: BaseException | None) -> ClassifiedError:
    """Classify a failure.

    Rate limiting wins over everything else: waiting is the most specific
    remediation even when the failure also looks like a timeout.
    """
    if err is None:
        return ClassifiedError()

    message = _message(err)

    retryable = _find(err, RetryableError)
    if isinstance(retryable, RetryableError):
        hints = []
        if retryable.retry_after and retryable.retry_after > 0:
            hints.append(f"Retry after {format_duration(retryable.retry_after)}.")
        if retryable.rate_limit is not None:
            summary = retryable.rate_limit.summary()
            if summary:
                hints.append(f"Quota: {summary}.")
        if not hints:
            hints.append(RATE_LIMIT_FALLBACK_HINT)
        return ClassifiedError(message=message, hint=" ".join(hints))

    if _find(err, MissingAuthError):
        return ClassifiedError(message=message, hint=MISSING_AUTH_HINT)

    if _find(err, _DEADLINE_TYPES):
        return ClassifiedError(message=message, hint=DEADLINE_HINT)

    if _find(err, ForbiddenError):
        return ClassifiedError(message=message, hint=FORBIDDEN_HINT)

    if _find(err, UnauthorizedError):
        return ClassifiedError(message=message, hint=UNAUTHORIZED_HINT)

    return ClassifiedError(message=message)


def format_stderr(err: BaseException | None) -> str:
    """Format an error (and its hint, if any) for stderr."""
    classified = classify(err)
    if not classified.message:
        return ""
    if not classified.hint:
        return f"Error: {classified.message}\n"
    return f"Error: {classified.message}\nHint: {classified.hint}\n"
