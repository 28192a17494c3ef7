"""Content checksum for server-side integrity verification."""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel

from ..errors import ShortReadError

# Chunk size for checksum reads (1 MiB)
CHUNK_SIZE = 1024 * 1024


class ChecksumAlgorithm(str, Enum):
    """Digest algorithms the server can verify against."""

    MD5 = "MD5"
    SHA256 = "SHA_256"

    def new(self):
        if self is ChecksumAlgorithm.MD5:
            return hashlib.md5(usedforsecurity=False)
        return hashlib.sha256()


class Checksum(BaseModel):
    """Hex digest plus the algorithm that produced it."""

    hash: str
    algorithm: ChecksumAlgorithm


def compute_checksum(
    stream: BinaryIO,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.MD5,
    length: int | None = None,
) -> Checksum:
    """Digest a byte stream in one pass without buffering it whole.

    Seekable streams are rewound first so the digest covers the same bytes
    that will be uploaded from this handle. Read failures propagate as
    ``OSError``.

    Args:
        stream: Binary stream to digest
        algorithm: Digest algorithm
        length: Digest exactly the first ``length`` bytes; None reads to EOF

    Raises:
        ShortReadError: The stream ends before ``length`` bytes
    """
    if stream.seekable():
        stream.seek(0)

    digest = algorithm.new()
    total = 0
    while length is None or total < length:
        size = CHUNK_SIZE if length is None else min(CHUNK_SIZE, length - total)
        chunk = stream.read(size)
        if not chunk:
            break
        digest.update(chunk)
        total += len(chunk)

    if length is not None and total < length:
        raise ShortReadError(0, length, total)

    return Checksum(hash=digest.hexdigest(), algorithm=algorithm)


def compute_file_checksum(
    path: str | Path,
    algorithm: ChecksumAlgorithm = ChecksumAlgorithm.MD5,
) -> Checksum:
    """Digest a file on disk."""
    with open(path, "rb") as f:
        return compute_checksum(f, algorithm)
