"""Asset upload pipeline.

Create placeholder, checksum, chunked upload, commit, then poll the
server's delivery state until it is terminal.
"""

from .checksum import (
    Checksum,
    ChecksumAlgorithm,
    compute_checksum,
    compute_file_checksum,
)
from .executor import (
    UploadExecutor,
    check_operations,
    read_range,
    upload_asset_from_file,
)
from .files import collect_asset_files, detect_mime_type
from .models import (
    DELIVERY_COMPLETE,
    DELIVERY_FAILED,
    AssetReservation,
    AssetUploadResult,
    DeliveryIssue,
    DeliveryState,
    HttpHeader,
    UploadOperation,
)
from .orchestrator import AssetUploader, AssetUploadTarget, UploadStage, upload_asset
from .poller import DEFAULT_POLL_INTERVAL, wait_for_delivery_state

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DELIVERY_COMPLETE",
    "DELIVERY_FAILED",
    "AssetReservation",
    "AssetUploadResult",
    "AssetUploadTarget",
    "AssetUploader",
    "Checksum",
    "ChecksumAlgorithm",
    "DeliveryIssue",
    "DeliveryState",
    "HttpHeader",
    "UploadExecutor",
    "UploadOperation",
    "UploadStage",
    "check_operations",
    "collect_asset_files",
    "compute_checksum",
    "compute_file_checksum",
    "detect_mime_type",
    "read_range",
    "upload_asset",
    "upload_asset_from_file",
    "wait_for_delivery_state",
]
