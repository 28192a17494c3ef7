"""Tests for client configuration."""

import os

import pytest
from pydantic import ValidationError

from asckit import AscConfig, RetryOptions
from asckit.config import parse_duration

# Environment variables to clear for isolated tests
ASC_ENV_VARS = [
    "ASC_API_URL",
    "ASC_TOKEN",
    "ASC_TIMEOUT",
    "ASC_UPLOAD_TIMEOUT",
    "ASC_POLL_INTERVAL",
    "ASC_UPLOAD_CONCURRENCY",
    "ASC_MAX_RETRIES",
    "ASC_BASE_DELAY",
    "ASC_MAX_DELAY",
]


@pytest.fixture
def clean_env():
    """Clear all ASC_ environment variables for isolated tests."""
    original = {k: os.environ.get(k) for k in ASC_ENV_VARS}
    for k in ASC_ENV_VARS:
        os.environ.pop(k, None)
    yield
    # Restore original values
    for k, v in original.items():
        if v is not None:
            os.environ[k] = v
        else:
            os.environ.pop(k, None)


@pytest.mark.usefixtures("clean_env")
class TestAscConfigDefaults:
    """Test AscConfig defaults."""

    def test_defaults(self):
        config = AscConfig()

        assert str(config.api_url).startswith("https://api.appstoreconnect.apple.com")
        assert config.token is None
        assert config.timeout == 30.0
        assert config.upload_timeout == 300.0
        assert config.poll_interval == 2.0
        assert config.upload_concurrency == 1
        assert config.max_retries == 3

    def test_blank_token_is_missing(self):
        config = AscConfig(token="   ")
        assert config.token is None


@pytest.mark.usefixtures("clean_env")
class TestAscConfigEnvironment:
    """Test loading AscConfig from environment variables."""

    def test_loads_prefixed_variables(self):
        os.environ["ASC_API_URL"] = "https://api.example.com"
        os.environ["ASC_TOKEN"] = "token-123"
        os.environ["ASC_UPLOAD_CONCURRENCY"] = "4"

        config = AscConfig()

        assert str(config.api_url).rstrip("/") == "https://api.example.com"
        assert config.token == "token-123"
        assert config.upload_concurrency == 4

    def test_duration_strings(self):
        os.environ["ASC_TIMEOUT"] = "90s"
        os.environ["ASC_UPLOAD_TIMEOUT"] = "10m"
        os.environ["ASC_POLL_INTERVAL"] = "500ms"

        config = AscConfig()

        assert config.timeout == 90.0
        assert config.upload_timeout == 600.0
        assert config.poll_interval == 0.5

    def test_retry_delay_aliases(self):
        os.environ["ASC_BASE_DELAY"] = "2s"
        os.environ["ASC_MAX_DELAY"] = "1m"
        os.environ["ASC_MAX_RETRIES"] = "5"

        config = AscConfig()

        assert config.retry_base_delay == 2.0
        assert config.retry_max_delay == 60.0
        assert config.retry_options() == RetryOptions(
            max_retries=5, base_delay=2.0, max_delay=60.0
        )


@pytest.mark.usefixtures("clean_env")
class TestAscConfigValidation:
    """Test AscConfig validation."""

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            AscConfig(poll_interval=0)

    def test_upload_concurrency_at_least_one(self):
        with pytest.raises(ValidationError):
            AscConfig(upload_concurrency=0)

    def test_invalid_duration(self):
        with pytest.raises(ValidationError):
            AscConfig(timeout="soon")

    def test_invalid_api_url(self):
        with pytest.raises(ValidationError):
            AscConfig(api_url="not a url")


class TestParseDuration:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("30", 30.0),
            ("30s", 30.0),
            ("1m30s", 90.0),
            ("1h", 3600.0),
            ("250ms", 0.25),
            (" 2M ", 120.0),
            (15, 15),
        ],
    )
    def test_parses(self, value, expected):
        assert parse_duration(value) == expected

    def test_unparseable_is_returned_unchanged(self):
        assert parse_duration("30 seconds") == "30 seconds"
