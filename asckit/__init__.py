"""App Store Connect asset upload core.

Chunked asset uploads with delivery state polling, cursor pagination and
error classification for the App Store Connect API.

Example:
    from asckit import APP_PREVIEW, AscApiClient, AscConfig, AssetUploader

    config = AscConfig()  # reads ASC_* environment variables
    async with AscApiClient(config) as client:
        preview_set = await client.ensure_asset_set(APP_PREVIEW, loc_id, "IPHONE_65")
        uploader = AssetUploader(
            client.asset_target(APP_PREVIEW, preview_set.id),
            client.upload_executor(),
            poll_interval=config.poll_interval,
            timeout=config.upload_timeout,
        )
        result = await uploader.upload("preview.mov")
"""

from importlib.metadata import PackageNotFoundError, version

from .client import (
    APP_PREVIEW,
    APP_SCREENSHOT,
    ASSET_KINDS,
    ApiAssetTarget,
    AscApiClient,
    AssetKind,
    Resource,
)
from .config import AscConfig
from .deadline import Deadline
from .errfmt import ClassifiedError, classify, format_stderr
from .errors import (
    APIError,
    AscError,
    AssetProcessingFailedError,
    BadRequestError,
    DeadlineExceededError,
    ForbiddenError,
    MissingAuthError,
    NotFoundError,
    NoUploadOperationsError,
    PaginationCursorLoopError,
    RetryableError,
    ShortReadError,
    TransportError,
    UnauthorizedError,
    UploadTransportError,
)
from .pagination import Links, Page, PaginatedResponse, paginate_all
from .ratelimit import (
    RateLimitInfo,
    RateLimitWindow,
    parse_rate_limit_header,
    parse_retry_after,
)
from .retry import RetryOptions, with_retry
from .upload import (
    AssetReservation,
    AssetUploader,
    AssetUploadResult,
    AssetUploadTarget,
    Checksum,
    ChecksumAlgorithm,
    DeliveryState,
    UploadExecutor,
    UploadOperation,
    UploadStage,
    compute_checksum,
    upload_asset,
    wait_for_delivery_state,
)

try:
    __version__ = version("asckit")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "APIError",
    "APP_PREVIEW",
    "APP_SCREENSHOT",
    "ASSET_KINDS",
    "ApiAssetTarget",
    "AscApiClient",
    "AscConfig",
    "AscError",
    "AssetKind",
    "AssetProcessingFailedError",
    "AssetReservation",
    "AssetUploadResult",
    "AssetUploadTarget",
    "AssetUploader",
    "BadRequestError",
    "Checksum",
    "ChecksumAlgorithm",
    "ClassifiedError",
    "Deadline",
    "DeadlineExceededError",
    "DeliveryState",
    "ForbiddenError",
    "Links",
    "MissingAuthError",
    "NoUploadOperationsError",
    "NotFoundError",
    "Page",
    "PaginatedResponse",
    "PaginationCursorLoopError",
    "RateLimitInfo",
    "RateLimitWindow",
    "Resource",
    "RetryOptions",
    "RetryableError",
    "ShortReadError",
    "TransportError",
    "UnauthorizedError",
    "UploadExecutor",
    "UploadOperation",
    "UploadStage",
    "UploadTransportError",
    "__version__",
    "classify",
    "compute_checksum",
    "format_stderr",
    "paginate_all",
    "parse_rate_limit_header",
    "parse_retry_after",
    "upload_asset",
    "wait_for_delivery_state",
    "with_retry",
]
