"""Cursor pagination.

App Store Connect list responses carry ``links.next``; following it until it
is empty yields the whole collection. Pages are fetched strictly in order
because each cursor is only known once the previous page has arrived.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import PaginationCursorLoopError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Links(BaseModel):
    """JSON:API document links."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    self_: str | None = Field(default=None, alias="self")
    next: str | None = None


class PaginatedResponse(Protocol):
    """Anything exposing a page of items and a next cursor."""

    data: list[Any]
    links: Links


class Page(BaseModel, Generic[T]):
    """One page (or an aggregated collection) of a list response."""

    model_config = ConfigDict(extra="ignore")

    data: list[T] = Field(default_factory=list)
    links: Links = Field(default_factory=Links)
    meta: dict[str, Any] | None = None


FetchNext = Callable[[str], Awaitable[PaginatedResponse]]
PageObserver = Callable[[int, str], None]


def _next_cursor(page: PaginatedResponse) -> str:
    links = getattr(page, "links", None)
    return ((links.next if links is not None else None) or "").strip()


async def paginate_all(
    first_page: PaginatedResponse,
    fetch_next: FetchNext,
    observer: PageObserver | None = None,
) -> PaginatedResponse:
    """Aggregate every page reachable from ``first_page``.

    Args:
        first_page: Already-fetched first page
        fetch_next: Coroutine function fetching the page behind a cursor
        observer: Optional callback ``(page_number, next_cursor)`` called once
            per page, after the page's items have been collected

    Returns:
        A page holding every item in server order together with the final
        page's links and meta. Pydantic pages keep their own type.

    Raises:
        PaginationCursorLoopError: A page handed back a cursor that was
            already requested
        Exception: Whatever ``fetch_next`` raises; nothing partial is returned
    """
    items: list[Any] = list(first_page.data or [])
    current = first_page
    page_number = 1
    cursor = _next_cursor(current)
    requested: set[str] = set()

    if observer:
        observer(page_number, cursor)

    while cursor:
        requested.add(cursor)
        current = await fetch_next(cursor)
        page_number += 1
        items.extend(current.data or [])

        next_cursor = _next_cursor(current)
        if next_cursor in requested:
            raise PaginationCursorLoopError(next_cursor, page_number)

        logger.debug(
            "Fetched page",
            extra={"page": page_number, "items": len(items)},
        )
        if observer:
            observer(page_number, next_cursor)
        cursor = next_cursor

    update = {"data": items, "links": current.links}
    meta = getattr(current, "meta", None)
    if isinstance(first_page, BaseModel):
        if "meta" in type(first_page).model_fields:
            update["meta"] = meta
        return first_page.model_copy(update=update)
    return Page(data=items, links=current.links, meta=meta)
