"""Upload orchestrator.

Drives one asset through::

    CREATING -> CHECKSUMMING -> UPLOADING -> REPORTING -> POLLING -> DONE

Any failure moves the asset to FAILED and aborts the remaining steps. The
partially uploaded asset is left on the server for the operator to inspect
or delete.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import Protocol

from ..deadline import Deadline
from ..errors import NoUploadOperationsError
from ..retry import RetryOptions, with_retry
from .checksum import Checksum, ChecksumAlgorithm, compute_checksum
from .executor import UploadExecutor
from .files import detect_mime_type
from .models import AssetReservation, AssetUploadResult, DeliveryState
from .poller import DEFAULT_POLL_INTERVAL, wait_for_delivery_state

logger = logging.getLogger(__name__)


class UploadStage(str, Enum):
    CREATING = "CREATING"
    CHECKSUMMING = "CHECKSUMMING"
    UPLOADING = "UPLOADING"
    REPORTING = "REPORTING"
    POLLING = "POLLING"
    DONE = "DONE"
    FAILED = "FAILED"


class AssetUploadTarget(Protocol):
    """Server-side half of an asset upload."""

    async def create(
        self, file_name: str, file_size: int, mime_type: str | None
    ) -> AssetReservation:
        """Create the asset placeholder and return its upload operations."""
        ...

    async def commit(self, asset_id: str, checksum: Checksum) -> None:
        """Mark the asset uploaded, handing over the content checksum."""
        ...

    async def get_delivery_state(self, asset_id: str) -> DeliveryState | None:
        """Current processing state, or None if not reported yet."""
        ...


StageObserver = Callable[[UploadStage], None]


class AssetUploader:
    """
    Uploads local files as assets of one upload target.

    Each ``upload`` call is independent and owns its own file handle, so
    several may run concurrently.
    """

    def __init__(
        self,
        target: AssetUploadTarget,
        executor: UploadExecutor,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        retry_options: RetryOptions | None = None,
        checksum_algorithm: ChecksumAlgorithm = ChecksumAlgorithm.MD5,
    ):
        """Create an uploader.

        Args:
            target: Server-side create/commit/state calls
            executor: Performs the chunked transfers
            poll_interval: Seconds between delivery state polls
            timeout: Deadline for one whole upload; None for no deadline
            retry_options: Retry transient failures of delivery state reads.
                None disables retries.
            checksum_algorithm: Digest reported on commit
        """
        self._target = target
        self._executor = executor
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._retry_options = retry_options
        self._checksum_algorithm = checksum_algorithm

    async def upload(
        self,
        path: str | Path,
        mime_type: str | None = None,
        on_stage: StageObserver | None = None,
    ) -> AssetUploadResult:
        """
        Upload one file and wait for the server to finish processing it.

        Args:
            path: Regular file to upload
            mime_type: Override for extension-based detection
            on_stage: Called on every stage transition

        Returns:
            AssetUploadResult with the final delivery state

        Raises:
            NoUploadOperationsError: Server issued nothing to upload
            ShortReadError: File shrank below the declared ranges
            UploadTransportError: An upload operation failed
            AssetProcessingFailedError: Server reported FAILED
            DeadlineExceededError: ``timeout`` elapsed
        """
        path = Path(path)
        deadline = Deadline.after(self._timeout)
        stage = UploadStage.CREATING

        def enter(next_stage: UploadStage) -> None:
            nonlocal stage
            stage = next_stage
            logger.debug(
                "Asset upload stage", extra={"path": str(path), "stage": stage.value}
            )
            if on_stage:
                on_stage(stage)

        if mime_type is None:
            mime_type = detect_mime_type(path)

        try:
            with open(path, "rb") as f:
                info = os.fstat(f.fileno())
                if not stat.S_ISREG(info.st_mode):
                    raise ValueError(f"{str(path)!r} is not a regular file")
                file_size = info.st_size

                enter(UploadStage.CREATING)
                reservation = await deadline.run(
                    self._target.create(path.name, file_size, mime_type),
                    "create asset",
                )
                asset_id = reservation.asset_id
                if file_size > 0 and not reservation.upload_operations:
                    raise NoUploadOperationsError(path.name)

                enter(UploadStage.CHECKSUMMING)
                checksum = compute_checksum(
                    f, self._checksum_algorithm, length=file_size
                )

                enter(UploadStage.UPLOADING)
                await self._executor.execute(
                    f, file_size, reservation.upload_operations, deadline
                )

            enter(UploadStage.REPORTING)
            await deadline.run(
                self._target.commit(asset_id, checksum), "commit asset upload"
            )

            enter(UploadStage.POLLING)
            state = await wait_for_delivery_state(
                asset_id,
                lambda: self._fetch_state(asset_id, deadline),
                poll_interval=self._poll_interval,
                deadline=deadline,
            )
        except Exception as e:
            logger.warning(
                f"Asset upload failed during {stage.value}: {e}",
                extra={"path": str(path), "stage": stage.value},
            )
            enter(UploadStage.FAILED)
            raise

        enter(UploadStage.DONE)
        logger.info(
            "Asset uploaded",
            extra={"path": str(path), "asset_id": asset_id, "state": state},
        )
        return AssetUploadResult(
            file_name=path.name,
            file_path=str(path),
            asset_id=asset_id,
            state=state,
        )

    async def upload_many(
        self,
        paths: Sequence[str | Path],
        on_stage: StageObserver | None = None,
    ) -> list[AssetUploadResult]:
        """Upload files one after another, stopping at the first failure."""
        return [await self.upload(p, on_stage=on_stage) for p in paths]

    async def _fetch_state(
        self, asset_id: str, deadline: Deadline
    ) -> DeliveryState | None:
        if self._retry_options is None:
            return await self._target.get_delivery_state(asset_id)
        return await with_retry(
            lambda: self._target.get_delivery_state(asset_id),
            self._retry_options,
            deadline,
        )


async def upload_asset(
    path: str | Path,
    target: AssetUploadTarget,
    executor: UploadExecutor,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
    mime_type: str | None = None,
) -> AssetUploadResult:
    """Upload one file to ``target``; see ``AssetUploader.upload``."""
    uploader = AssetUploader(
        target, executor, poll_interval=poll_interval, timeout=timeout
    )
    return await uploader.upload(path, mime_type=mime_type)
