"""Local asset file discovery and MIME type detection."""

from __future__ import annotations

import mimetypes
from pathlib import Path


def collect_asset_files(path: str | Path) -> list[Path]:
    """Resolve an upload path to the files it names.

    A regular file yields itself. A directory yields its regular,
    non-hidden files sorted by name (not recursive).

    Raises:
        FileNotFoundError: Path does not exist
        ValueError: Path is a symlink, or a directory with no files
    """
    path = Path(path)
    if path.is_symlink():
        raise ValueError(f"refusing to follow symlink {str(path)!r}")
    if not path.exists():
        raise FileNotFoundError(f"path not found: {path}")
    if path.is_file():
        return [path]

    files = sorted(
        p
        for p in path.iterdir()
        if not p.name.startswith(".") and not p.is_symlink() and p.is_file()
    )
    if not files:
        raise ValueError(f"no files found in {str(path)!r}")
    return files


def detect_mime_type(path: str | Path) -> str:
    """MIME type from the file extension, without parameters.

    Raises:
        ValueError: Extension is missing or unknown
    """
    path = Path(path)
    ext = path.suffix.lower()
    if not ext:
        raise ValueError(f"file {str(path)!r} is missing an extension")
    mime_type, _ = mimetypes.guess_type(f"file{ext}", strict=False)
    if not mime_type:
        raise ValueError(f"unsupported file extension {ext!r}")
    return mime_type.split(";", 1)[0].strip()
