"""
Source helpers for print-elements.

Responsibilities:
- Turn an element's source (embedded bytes, embedded text or a file locator)
  into the bytes a decoder consumes
- Enforce the configured source size limit
- Basic image extension helpers for locator sniffing

These functions are independent of the preparer so they can be used from
both job and CLI contexts.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Union

from .errors import InvalidSourceData

# Supported image extensions for locators
IMAGE_EXTS: List[str] = [".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".pcx"]

SourceData = Union[bytes, bytearray, memoryview, str, Path]


def is_supported_image(filename: str) -> bool:
    """
    True if the filename has a supported image extension.
    """
    ext = os.path.splitext(filename)[1].lower()
    return ext in IMAGE_EXTS


def _looks_like_path(value: Union[str, Path]) -> bool:
    if isinstance(value, Path):
        return True
    # Embedded markup and command strings are never file names
    if not value or len(value) > 4096 or "\n" in value or "\x00" in value:
        return False
    try:
        return Path(value).is_file()
    except OSError:
        return False


def read_source(source: SourceData, encoding: str, *, text_allowed: bool, max_bytes: int = 0) -> bytes:
    """
    Resolve `source` to bytes.

    - bytes-like values are returned unchanged
    - a Path, or a str naming an existing file, is read from disk
    - any other str is embedded text, encoded with `encoding`, when
      `text_allowed`; otherwise it is an unreadable locator

    Raises:
        InvalidSourceData when the source cannot be read, cannot be encoded,
        or exceeds `max_bytes` (0 disables the limit).
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    elif isinstance(source, (str, Path)):
        if _looks_like_path(source):
            path = Path(source)
            try:
                if max_bytes and path.stat().st_size > max_bytes:
                    raise InvalidSourceData(f"{path} exceeds {max_bytes} bytes")
                data = path.read_bytes()
            except OSError as e:
                raise InvalidSourceData(f"Cannot read {path}: {e}") from e
        elif text_allowed:
            try:
                data = str(source).encode(encoding)
            except (LookupError, UnicodeEncodeError) as e:
                raise InvalidSourceData(f"Cannot encode source as {encoding}: {e}") from e
        else:
            raise InvalidSourceData(f"Source not found: {source!s:.80}")
    else:
        raise InvalidSourceData(f"Unsupported source type: {type(source).__name__}")

    if max_bytes and len(data) > max_bytes:
        raise InvalidSourceData(f"Source exceeds {max_bytes} bytes")
    return data


__all__ = ["IMAGE_EXTS", "SourceData", "is_supported_image", "read_source"]
