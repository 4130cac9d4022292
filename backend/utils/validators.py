"""
Upload validation checks, run before any image decoding.
"""

from typing import Iterable, Optional

from utils.error_handlers import FileTooLarge, NoFileProvided, UnsupportedMimeType
from utils.file_utils import format_size_mb


def validate_file_present(file_bytes: Optional[bytes]) -> bytes:
    """
    Validate that a file was supplied at all.

    An empty buffer counts as a file here; it is rejected later, when
    decoding fails.

    Raises:
        NoFileProvided: If no file was sent
    """
    if file_bytes is None:
        raise NoFileProvided()
    return file_bytes


def validate_mime_type(declared_mime_type: Optional[str], allowed: Iterable[str]) -> str:
    """
    Validate the client-declared MIME type against a whitelist.

    The match is exact and case-sensitive. File extensions are not consulted.

    Raises:
        UnsupportedMimeType: If the type is not whitelisted
    """
    allowed = list(allowed)
    if declared_mime_type not in allowed:
        raise UnsupportedMimeType(
            details={"declared": declared_mime_type, "allowed": allowed}
        )
    return declared_mime_type


def validate_file_size(file_size: int, max_size_bytes: int) -> bool:
    """
    Validate file size against the byte ceiling.

    Raises:
        FileTooLarge: If the file is larger than the ceiling
    """
    if file_size > max_size_bytes:
        raise FileTooLarge(
            f"File size must be less than {format_size_mb(max_size_bytes)}MB",
            details={"size": file_size, "max_size": max_size_bytes}
        )
    return True
