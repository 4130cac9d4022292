"""
Error handling utilities for the ingestion pipeline and its HTTP surface.
"""

import asyncio
import logging
from datetime import datetime
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from fastapi import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error class."""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        details: Optional[Dict] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.user_message = user_message or message
        self.timestamp = datetime.utcnow().isoformat()


class IngestError(AppError):
    """Base class for every failure of the image ingestion pipeline."""

    default_message = "Upload failed"
    default_code = "INGEST_ERROR"
    default_status = 500

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("code", self.default_code)
        kwargs.setdefault("status_code", self.default_status)
        super().__init__(message or self.default_message, **kwargs)


class NoFileProvided(IngestError):
    """The caller sent no file at all."""

    default_message = "No file uploaded"
    default_code = "NO_FILE_PROVIDED"
    default_status = 400


class UnsupportedMimeType(IngestError):
    """The declared content type is not in the whitelist."""

    default_message = "Invalid file type"
    default_code = "UNSUPPORTED_MIME_TYPE"
    default_status = 415


class FileTooLarge(IngestError):
    """The upload exceeds the configured size ceiling."""

    default_message = "File size exceeds the allowed maximum"
    default_code = "FILE_TOO_LARGE"
    default_status = 413


class DecodeFailed(IngestError):
    """The bytes could not be decoded as an image."""

    default_message = "Uploaded file is not a valid image"
    default_code = "DECODE_FAILED"
    default_status = 422


class StorageWriteFailed(IngestError):
    """Directory creation or the file write failed."""

    default_message = "Failed to store uploaded image"
    default_code = "STORAGE_WRITE_FAILED"
    default_status = 507


class ProcessingTimeout(IngestError):
    """The pipeline did not finish before its deadline."""

    default_message = "Image processing timed out"
    default_code = "PROCESSING_TIMEOUT"
    default_status = 504


def error_response(error: Union[AppError, Exception]) -> JSONResponse:
    """
    Create a standardized failure response.

    Args:
        error: The error to convert to response

    Returns:
        JSONResponse shaped as ``{"success": false, "error": ..., "code": ...}``
    """
    if isinstance(error, AppError):
        content = {
            "success": False,
            "error": error.user_message,
            "code": error.code,
            "details": error.details,
            "timestamp": error.timestamp
        }
        status_code = error.status_code
    else:
        content = {
            "success": False,
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
            "timestamp": datetime.utcnow().isoformat()
        }
        status_code = 500

        # Log the actual error
        logger.error(f"Unhandled error: {str(error)}", exc_info=error)

    return JSONResponse(
        status_code=status_code,
        content=content
    )


def handle_errors(
    fallback_message: str = "Operation failed",
    log_errors: bool = True
):
    """
    Decorator for handling errors in async route handlers.

    Args:
        fallback_message: Message to use for unexpected errors
        log_errors: Whether to log errors
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except AppError as e:
                if log_errors:
                    logger.warning(f"{e.code}: {e.message}", extra={"details": e.details})
                return error_response(e)
            except HTTPException:
                raise  # Let FastAPI handle HTTP exceptions
            except Exception as e:
                if log_errors:
                    logger.error(f"Unhandled error in {func.__name__}: {str(e)}", exc_info=True)
                return error_response(
                    AppError(
                        message=str(e) or fallback_message,
                        code="INTERNAL_ERROR",
                        user_message=fallback_message
                    )
                )

        return wrapper

    return decorator


async def with_timeout(
    func: Callable[[], Awaitable[Any]],
    timeout: Optional[float],
    timeout_message: str = "Operation timed out"
) -> Any:
    """
    Execute async function with timeout.

    Args:
        func: Async function to execute
        timeout: Timeout in seconds, None for no limit
        timeout_message: Error message on timeout

    Returns:
        Result of the function

    Raises:
        ProcessingTimeout: If timeout occurs
    """
    try:
        return await asyncio.wait_for(func(), timeout=timeout)
    except asyncio.TimeoutError:
        raise ProcessingTimeout(
            timeout_message,
            details={"timeout": timeout}
        )
