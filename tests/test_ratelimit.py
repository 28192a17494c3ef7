"""Tests for rate limit header parsing."""

from datetime import datetime, timezone

import pytest

from asckit import parse_rate_limit_header, parse_retry_after


class TestParseRateLimitHeader:
    """Test X-Rate-Limit parsing."""

    def test_apple_format(self):
        info = parse_rate_limit_header("user-hour-lim:3600;user-hour-rem:3599;")

        assert info is not None
        assert info.windows["user-hour"].limit == 3600
        assert info.windows["user-hour"].remaining == 3599
        assert info.raw == "user-hour-lim:3600;user-hour-rem:3599;"
        assert info.summary() == "user-hour 3599/3600 remaining"

    def test_equals_separator_and_commas(self):
        info = parse_rate_limit_header("b-rem=5, a-lim=10")

        assert info is not None
        assert info.summary() == "a limit 10; b 5 remaining"

    def test_multiple_windows_sorted(self):
        info = parse_rate_limit_header(
            "user-minute-rem:1\nuser-hour-lim:3600;user-hour-rem:10"
        )

        assert info is not None
        assert info.summary() == "user-hour 10/3600 remaining; user-minute 1 remaining"

    def test_ignores_unparseable_tokens(self):
        info = parse_rate_limit_header("junk;user-hour-lim:abc;user-hour-rem:7;x:1")

        assert info is not None
        assert info.summary() == "user-hour 7 remaining"

    @pytest.mark.parametrize("value", [None, "", "   ", "nothing-here", "a:1;b:2"])
    def test_returns_none_without_windows(self, value):
        assert parse_rate_limit_header(value) is None


class TestParseRetryAfter:
    """Test Retry-After parsing."""

    def test_delta_seconds(self):
        assert parse_retry_after("30") == 30.0

    def test_zero_is_none(self):
        assert parse_retry_after("0") is None

    def test_missing(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None

    def test_http_date(self):
        now = datetime(2026, 10, 21, 7, 28, 0, tzinfo=timezone.utc)
        assert parse_retry_after("Wed, 21 Oct 2026 07:28:30 GMT", now=now) == 30.0

    def test_http_date_in_past(self):
        now = datetime(2026, 10, 21, 8, 0, 0, tzinfo=timezone.utc)
        assert parse_retry_after("Wed, 21 Oct 2026 07:28:30 GMT", now=now) == 0.0

    def test_garbage(self):
        assert parse_retry_after("soon") is None
