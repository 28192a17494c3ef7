"""Chunked upload executor.

Sends each server-issued upload operation as one HTTP request carrying
exactly the operation's byte range. There is no retry here: the first failed
operation aborts the asset and the caller decides what to do next.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import httpx

from ..deadline import Deadline
from ..errors import ShortReadError, UploadTransportError
from .models import UploadOperation

logger = logging.getLogger(__name__)


def check_operations(operations: Sequence[UploadOperation], file_size: int) -> None:
    """Check that the operations tile ``[0, file_size)`` exactly once.

    Operations reaching past ``file_size`` are left to the read step, which
    reports them as ShortReadError.

    Raises:
        ValueError: On a gap or an overlap between operations
    """
    position = 0
    for op in sorted(operations, key=lambda o: (o.offset, o.length)):
        if op.offset > position:
            raise ValueError(
                f"upload operations leave bytes {position}-{op.offset} uncovered"
            )
        if op.offset < position:
            raise ValueError(f"upload operations overlap at byte {op.offset}")
        position = op.end
    if position < file_size:
        raise ValueError(
            f"upload operations cover {position} of {file_size} bytes"
        )


def read_range(file: BinaryIO, offset: int, length: int) -> bytes:
    """Read exactly ``length`` bytes at ``offset``.

    Raises:
        ShortReadError: The file ends before the range does
    """
    file.seek(offset)
    chunks = []
    remaining = length
    while remaining > 0:
        chunk = file.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    data = b"".join(chunks)
    if len(data) != length:
        raise ShortReadError(offset, length, len(data))
    return data


class UploadExecutor:
    """
    Performs the HTTP transfers described by upload operations.

    Upload URLs are presigned, so ``http`` should be a client that does not
    attach API credentials.
    """

    def __init__(self, http: httpx.AsyncClient, concurrency: int = 1):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._http = http
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def execute(
        self,
        file: BinaryIO,
        file_size: int,
        operations: Sequence[UploadOperation],
        deadline: Deadline | None = None,
    ) -> None:
        """
        Upload every operation's byte range from ``file``.

        Args:
            file: Open, seekable binary handle
            file_size: Declared file size in bytes
            operations: Operations issued by the server, in any order
            deadline: Bound for every HTTP call

        Raises:
            ValueError: Operations do not tile the file
            ShortReadError: The file is shorter than an operation's range
            UploadTransportError: An operation failed; nothing further is sent
            DeadlineExceededError: The deadline elapsed mid-upload
        """
        check_operations(operations, file_size)
        deadline = deadline or Deadline.never()

        if self._concurrency == 1 or len(operations) < 2:
            for index, op in enumerate(operations):
                await self._run_operation(file, index, op, deadline)
            return

        await self._execute_concurrently(file, operations, deadline)

    async def _execute_concurrently(
        self,
        file: BinaryIO,
        operations: Sequence[UploadOperation],
        deadline: Deadline,
    ) -> None:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run_with_permit(index: int, op: UploadOperation) -> None:
            async with semaphore:
                await self._run_operation(file, index, op, deadline)

        tasks = [
            asyncio.create_task(run_with_permit(index, op))
            for index, op in enumerate(operations)
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            failed = [t for t in tasks if t in done and t.exception() is not None]
            if failed:
                raise failed[0].exception()  # type: ignore[misc]
        finally:
            # First failure (or our own cancellation) stops everything else
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_operation(
        self,
        file: BinaryIO,
        index: int,
        op: UploadOperation,
        deadline: Deadline,
    ) -> None:
        # seek + read never yield to the loop, so concurrent operations
        # cannot interleave on the shared handle
        body = read_range(file, op.offset, op.length)

        request = self._http.build_request(
            op.method,
            op.url,
            headers=op.header_items(),
            content=body,
        )
        try:
            response = await deadline.run(
                self._http.send(request), f"upload operation {index}"
            )
        except httpx.RequestError as e:
            raise UploadTransportError(
                f"upload operation {index} failed: {e}", url=op.url, index=index
            ) from e

        if not response.is_success:
            raise UploadTransportError(
                f"upload operation {index} failed: HTTP {response.status_code}",
                url=op.url,
                index=index,
                status_code=response.status_code,
            )

        logger.debug(
            "Uploaded byte range",
            extra={"index": index, "offset": op.offset, "length": op.length},
        )


async def upload_asset_from_file(
    path: str | Path,
    operations: Sequence[UploadOperation],
    http: httpx.AsyncClient,
    *,
    concurrency: int = 1,
    deadline: Deadline | None = None,
) -> None:
    """Open ``path`` and run ``operations`` against it."""
    path = Path(path)
    with open(path, "rb") as f:
        size = path.stat().st_size
        await UploadExecutor(http, concurrency).execute(f, size, operations, deadline)
