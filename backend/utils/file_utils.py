"""
File handling utilities
"""

import re
import time
from pathlib import Path
from typing import Union

# Trailing ".ext" of a client file name (no dots or slashes inside)
_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")
_UNSAFE_CHARS_PATTERN = re.compile(r"[^a-zA-Z0-9.-]")

BYTES_PER_MB = 1024 * 1024


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if not"""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def strip_extension(filename: str) -> str:
    """Drop the trailing extension of a file name, if it has one"""
    return _EXTENSION_PATTERN.sub("", filename)


def sanitize_basename(filename: str) -> str:
    """
    Turn an untrusted client file name into a storage-safe base name.

    The extension is stripped first, then every character outside
    ``[A-Za-z0-9.-]`` is replaced by an underscore:

        >>> sanitize_basename("My Logo!!.png")
        'My_Logo__'
    """
    return _UNSAFE_CHARS_PATTERN.sub("_", strip_extension(filename or ""))


def current_millis() -> int:
    """Current unix epoch time in milliseconds"""
    return time.time_ns() // 1_000_000


def mb_to_bytes(size_mb: float) -> int:
    """Convert a size in MB (MiB) to bytes"""
    return int(size_mb * BYTES_PER_MB)


def format_size_mb(size_bytes: int) -> str:
    """Format a byte ceiling the way users see it, e.g. 5242880 -> '5'"""
    return f"{size_bytes / BYTES_PER_MB:g}"
