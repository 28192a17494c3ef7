"""Tests for cursor pagination."""

from types import SimpleNamespace
from unittest import mock

import pytest

from asckit import Links, Page, PaginationCursorLoopError, TransportError, paginate_all


def make_page(ids: list[str], next_url: str | None = None, meta=None) -> Page[dict]:
    return Page[dict](
        data=[{"id": i} for i in ids],
        links=Links(next=next_url),
        meta=meta,
    )


def fetcher(pages: dict[str, Page]) -> mock.AsyncMock:
    async def fetch(cursor: str) -> Page:
        return pages[cursor]

    return mock.AsyncMock(side_effect=fetch)


class TestPaginateAll:
    """Test paginate_all aggregation."""

    @pytest.mark.asyncio
    async def test_single_page(self):
        first = make_page(["1", "2"])
        fetch = fetcher({})

        result = await paginate_all(first, fetch)

        assert [item["id"] for item in result.data] == ["1", "2"]
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concatenates_pages_in_order(self):
        first = make_page(["1", "2"], "c1")
        fetch = fetcher(
            {
                "c1": make_page(["3", "4", "5"], "c2"),
                "c2": make_page(["6"], None, meta={"paging": {"total": 6}}),
            }
        )

        result = await paginate_all(first, fetch)

        assert [item["id"] for item in result.data] == ["1", "2", "3", "4", "5", "6"]
        assert result.links.next is None
        assert result.meta == {"paging": {"total": 6}}
        assert [c.args[0] for c in fetch.await_args_list] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_keeps_duplicates(self):
        first = make_page(["1"], "c1")
        fetch = fetcher({"c1": make_page(["1"], "")})

        result = await paginate_all(first, fetch)

        assert [item["id"] for item in result.data] == ["1", "1"]

    @pytest.mark.asyncio
    async def test_does_not_mutate_first_page(self):
        first = make_page(["1"], "c1")
        fetch = fetcher({"c1": make_page(["2"])})

        result = await paginate_all(first, fetch)

        assert len(first.data) == 1
        assert first.links.next == "c1"
        assert isinstance(result, Page)

    @pytest.mark.asyncio
    async def test_cursor_loop_fails_fast(self):
        first = make_page(["1"], "c1")
        fetch = fetcher({"c1": make_page(["2"], "c1")})

        with pytest.raises(PaginationCursorLoopError) as exc_info:
            await paginate_all(first, fetch)

        assert exc_info.value.cursor == "c1"
        assert exc_info.value.page == 2
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revisited_cursor_fails_fast(self):
        first = make_page(["1"], "c1")
        fetch = fetcher(
            {
                "c1": make_page(["2"], "c2"),
                "c2": make_page(["3"], "c1"),
            }
        )

        with pytest.raises(PaginationCursorLoopError):
            await paginate_all(first, fetch)

        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self):
        first = make_page(["1"], "c1")
        fetch = mock.AsyncMock(side_effect=TransportError("connection reset"))

        with pytest.raises(TransportError, match="connection reset"):
            await paginate_all(first, fetch)

    @pytest.mark.asyncio
    async def test_observer_called_per_page(self):
        first = make_page(["1"], "next-2")
        fetch = fetcher({"next-2": make_page(["2"], "")})
        pages: list[int] = []
        nexts: list[str] = []

        def observer(page: int, next_url: str) -> None:
            pages.append(page)
            nexts.append(next_url)

        result = await paginate_all(first, fetch, observer)

        assert len(result.data) == 2
        assert pages == [1, 2]
        assert nexts == ["next-2", ""]

    @pytest.mark.asyncio
    async def test_accepts_any_paginated_response(self):
        first = SimpleNamespace(data=["a"], links=Links(next="c1"))
        second = SimpleNamespace(data=["b", "c"], links=Links())
        fetch = mock.AsyncMock(return_value=second)

        result = await paginate_all(first, fetch)

        assert isinstance(result, Page)
        assert result.data == ["a", "b", "c"]

    def test_links_accept_self_alias(self):
        links = Links.model_validate({"self": "https://a", "next": "https://b"})
        assert links.self_ == "https://a"
        assert links.next == "https://b"
