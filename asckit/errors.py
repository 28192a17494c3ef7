"""Error types.

Every failure raised by the core derives from ``AscError``. Lower layers raise
immediately and wrap with ``raise ... from ...`` so callers (and
``asckit.errfmt.classify``) can inspect the cause chain.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from .ratelimit import RateLimitInfo

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]|\x1b\[[0-9;]*[A-Za-z]")


def _sanitize(value: str) -> str:
    return _CONTROL_CHARS.sub("", value).strip()


class AscError(Exception):
    """Base class for asckit errors."""


class MissingAuthError(AscError):
    """Credentials were never configured."""

    def __init__(self, message: str = "missing authentication credentials"):
        super().__init__(message)


class TransportError(AscError):
    """Network or HTTP failure."""


class UploadTransportError(TransportError):
    """An upload operation did not complete with a 2xx status."""

    def __init__(
        self,
        message: str,
        *,
        url: str,
        index: int,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.index = index
        self.status_code = status_code


class APIError(AscError):
    """Parsed App Store Connect error response."""

    def __init__(
        self,
        *,
        status_code: int | None = None,
        code: str = "",
        title: str = "",
        detail: str = "",
    ):
        self.status_code = status_code
        self.code = _sanitize(code)
        self.title = _sanitize(title)
        self.detail = _sanitize(detail)
        super().__init__(self._render())

    def _render(self) -> str:
        if self.title and self.detail:
            return f"{self.title}: {self.detail}"
        return self.title or self.detail or self.code or "API error"

    @classmethod
    def from_response(cls, response: httpx.Response) -> APIError:
        """Build the most specific APIError for a non-2xx response.

        The first entry of the JSON:API ``errors`` array is used; bodies that
        are not JSON fall back to the status line.
        """
        code = title = detail = ""
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            errors = payload.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                first = errors[0]
                code = str(first.get("code") or "")
                title = str(first.get("title") or "")
                detail = str(first.get("detail") or "")

        if not (code or title or detail):
            title = f"HTTP {response.status_code}"
            detail = response.text[:200]

        error_cls = _STATUS_ERRORS.get(response.status_code) or _CODE_ERRORS.get(
            code.upper(), cls
        )
        return error_cls(
            status_code=response.status_code, code=code, title=title, detail=detail
        )


class BadRequestError(APIError):
    """400 / BAD_REQUEST."""


class UnauthorizedError(APIError):
    """Credentials are invalid or expired."""


class ForbiddenError(APIError):
    """Credentials are valid but lack permission."""


class NotFoundError(APIError):
    """Resource not found."""


_STATUS_ERRORS: dict[int, type[APIError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}

_CODE_ERRORS: dict[str, type[APIError]] = {
    "BAD_REQUEST": BadRequestError,
    "UNAUTHORIZED": UnauthorizedError,
    "FORBIDDEN": ForbiddenError,
    "NOT_FOUND": NotFoundError,
}


class RetryableError(AscError):
    """Transient failure that may succeed if retried later.

    Args:
        message: Human-readable description
        retry_after: Server-suggested wait in seconds, if any
        rate_limit: Parsed quota summary, if the server sent one
    """

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        rate_limit: RateLimitInfo | None = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.rate_limit = rate_limit


class ShortReadError(AscError):
    """File holds fewer bytes than an upload operation declares."""

    def __init__(self, offset: int, expected: int, actual: int):
        super().__init__(
            f"short read at offset {offset}: expected {expected} bytes, got {actual}"
        )
        self.offset = offset
        self.expected = expected
        self.actual = actual


class NoUploadOperationsError(AscError):
    """Server returned no upload operations for a non-empty file."""

    def __init__(self, file_name: str):
        super().__init__(f"no upload operations returned for {file_name!r}")
        self.file_name = file_name


class AssetProcessingFailedError(AscError):
    """Server-side processing of an uploaded asset ended in FAILED."""

    def __init__(self, asset_id: str, reasons: list[str] | None = None):
        self.asset_id = asset_id
        self.reasons = list(reasons or [])
        message = f"asset {asset_id} processing failed"
        if self.reasons:
            message = f"{message}: {'; '.join(self.reasons)}"
        super().__init__(message)


class PaginationCursorLoopError(AscError):
    """Server returned a next cursor identical to the one just requested."""

    def __init__(self, cursor: str, page: int):
        super().__init__(
            f"pagination cursor did not advance on page {page}: {cursor}"
        )
        self.cursor = cursor
        self.page = page


class DeadlineExceededError(AscError):
    """The caller's deadline elapsed before the work finished."""
