"""Client configuration.

The configuration object is constructed once by the entry point and passed
down explicitly; nothing in the package reads ambient global state.
"""

import re

from pydantic import AliasChoices, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .retry import RetryOptions

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: object) -> object:
    """Parse ``"90s"``, ``"1m30s"`` or ``"500ms"`` into seconds.

    Plain numbers (or numeric strings) are taken as seconds. Anything else is
    returned unchanged so pydantic reports the validation error.
    """
    if not isinstance(value, str):
        return value
    text = value.strip().lower()
    try:
        return float(text)
    except ValueError:
        pass
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        return value
    return sum(float(n) * _DURATION_UNITS[u] for n, u in parts)


class AscConfig(BaseSettings):
    """
    App Store Connect client configuration.

    Uses Pydantic BaseSettings for automatic environment variable loading.
    Environment variables are prefixed with ASC_.

    Optional environment variables:
        ASC_API_URL: API base URL (default: https://api.appstoreconnect.apple.com)
        ASC_TOKEN: Bearer token minted by the signing layer
        ASC_TIMEOUT: Request timeout, seconds or duration like "90s" (default: 30s)
        ASC_UPLOAD_TIMEOUT: Deadline for one whole asset upload (default: 300s)
        ASC_POLL_INTERVAL: Delivery state poll interval (default: 2s)
        ASC_UPLOAD_CONCURRENCY: Upload operations in flight per asset (default: 1)
        ASC_MAX_RETRIES: Retries for transient failures (default: 3)
        ASC_BASE_DELAY: Backoff base delay (default: 1s)
        ASC_MAX_DELAY: Backoff ceiling (default: 30s)
    """

    model_config = SettingsConfigDict(
        env_prefix="ASC_",
        extra="ignore",
    )

    api_url: HttpUrl = Field(
        default="https://api.appstoreconnect.apple.com", validate_default=True
    )

    # Bearer token - the request signing layer lives outside this package
    token: str | None = None

    # Per-request timeout and default deadline for list calls (seconds)
    timeout: float = Field(default=30.0, gt=0)

    # Deadline for a whole asset upload including delivery polling (seconds)
    upload_timeout: float = Field(default=300.0, gt=0)

    # Fixed interval between delivery state polls (seconds)
    poll_interval: float = Field(default=2.0, gt=0)

    # Upload operations in flight per asset (1 = sequential)
    upload_concurrency: int = Field(default=1, ge=1)

    max_retries: int = Field(default=3, ge=0)

    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        validation_alias=AliasChoices("retry_base_delay", "ASC_BASE_DELAY"),
    )

    retry_max_delay: float = Field(
        default=30.0,
        ge=0,
        validation_alias=AliasChoices("retry_max_delay", "ASC_MAX_DELAY"),
    )

    @field_validator(
        "timeout",
        "upload_timeout",
        "poll_interval",
        "retry_base_delay",
        "retry_max_delay",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value: object) -> object:
        return parse_duration(value)

    @field_validator("token", mode="before")
    @classmethod
    def _blank_token_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def retry_options(self) -> RetryOptions:
        """Retry settings for transient failures."""
        return RetryOptions(
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )
