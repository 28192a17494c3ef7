"""Tests for checksum computation."""

import hashlib
import io

import pytest

from asckit.errors import ShortReadError
from asckit.upload import ChecksumAlgorithm, compute_checksum, compute_file_checksum
from asckit.upload.checksum import CHUNK_SIZE


class CountingStream(io.BytesIO):
    """BytesIO that records the size of every read."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads: list[int] = []

    def read(self, size: int | None = -1) -> bytes:
        chunk = super().read(size)
        self.reads.append(len(chunk))
        return chunk


class UnseekableStream(io.RawIOBase):
    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        return self._inner.read(size)


class FailingStream(io.RawIOBase):
    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def read(self, size: int = -1) -> bytes:
        raise OSError("disk went away")


class TestComputeChecksum:
    """Test compute_checksum."""

    def test_md5_is_default(self):
        checksum = compute_checksum(io.BytesIO(b"hello world"))

        assert checksum.algorithm == ChecksumAlgorithm.MD5
        assert checksum.hash == "5eb63bbbe01eeed093cb22bb8f5acdc3"

    def test_sha256(self):
        checksum = compute_checksum(io.BytesIO(b"hello world"), ChecksumAlgorithm.SHA256)

        assert checksum.algorithm == ChecksumAlgorithm.SHA256
        assert checksum.hash == hashlib.sha256(b"hello world").hexdigest()

    def test_deterministic(self):
        data = bytes(range(256)) * 100

        first = compute_checksum(io.BytesIO(data))
        second = compute_checksum(io.BytesIO(data))

        assert first == second

    def test_rewinds_seekable_stream(self):
        stream = io.BytesIO(b"abcdef")
        stream.read(3)

        checksum = compute_checksum(stream)

        assert checksum.hash == hashlib.md5(b"abcdef").hexdigest()

    def test_repeated_on_same_handle(self):
        stream = io.BytesIO(b"abcdef")

        assert compute_checksum(stream) == compute_checksum(stream)

    def test_reads_in_bounded_chunks(self):
        data = b"x" * (CHUNK_SIZE * 2 + 10)
        stream = CountingStream(data)

        checksum = compute_checksum(stream)

        assert checksum.hash == hashlib.md5(data).hexdigest()
        assert max(stream.reads) <= CHUNK_SIZE
        assert sum(stream.reads) == len(data)

    def test_unseekable_stream(self):
        checksum = compute_checksum(UnseekableStream(b"payload"))
        assert checksum.hash == hashlib.md5(b"payload").hexdigest()

    def test_empty_stream(self):
        checksum = compute_checksum(io.BytesIO(b""))
        assert checksum.hash == hashlib.md5(b"").hexdigest()

    def test_read_error_propagates(self):
        with pytest.raises(OSError, match="disk went away"):
            compute_checksum(FailingStream())

    def test_length_bounds_digest(self):
        checksum = compute_checksum(io.BytesIO(b"0123456789APPENDED"), length=10)
        assert checksum.hash == hashlib.md5(b"0123456789").hexdigest()

    def test_length_bounds_chunked_reads(self):
        data = b"x" * (CHUNK_SIZE + 10)
        stream = CountingStream(data + b"tail")

        checksum = compute_checksum(stream, length=len(data))

        assert checksum.hash == hashlib.md5(data).hexdigest()
        assert sum(stream.reads) == len(data)

    def test_length_past_end(self):
        with pytest.raises(ShortReadError) as exc_info:
            compute_checksum(io.BytesIO(b"abc"), length=5)

        assert exc_info.value.expected == 5
        assert exc_info.value.actual == 3

    def test_zero_length(self):
        checksum = compute_checksum(io.BytesIO(b"abc"), length=0)
        assert checksum.hash == hashlib.md5(b"").hexdigest()


class TestComputeFileChecksum:
    """Test compute_file_checksum."""

    def test_file(self, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG data")

        checksum = compute_file_checksum(path)

        assert checksum.hash == hashlib.md5(b"\x89PNG data").hexdigest()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            compute_file_checksum(tmp_path / "missing.png")
