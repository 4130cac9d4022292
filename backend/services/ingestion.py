"""
Image ingestion pipeline.

Turns one untrusted upload into one stored, normalized WebP image:
validate -> decode -> resize/crop -> encode -> write -> public URL.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Union

from core.config import Settings
from services.image_processor import OUTPUT_EXTENSION, ImageProcessorService
from services.presets import AspectRatioPolicy, ResizePreset, get_preset
from services.storage import UploadStorage
from utils.error_handlers import with_timeout
from utils.file_utils import mb_to_bytes
from utils.validators import validate_file_present, validate_file_size, validate_mime_type

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
})


@dataclass(frozen=True)
class IngestionConfig:
    """Defaults and storage layout for an ImageIngestionService."""
    public_dir: Path = Path("./public")
    uploads_root: str = "uploads"
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    allowed_mime_types: FrozenSet[str] = DEFAULT_ALLOWED_MIME_TYPES
    quality: int = 80
    timeout_seconds: Optional[float] = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionConfig":
        return cls(
            public_dir=Path(settings.PUBLIC_DIR),
            uploads_root=settings.UPLOADS_ROOT,
            max_size_bytes=mb_to_bytes(settings.MAX_UPLOAD_SIZE_MB),
            allowed_mime_types=frozenset(settings.ALLOWED_MIME_TYPES),
            quality=settings.OUTPUT_QUALITY,
            timeout_seconds=settings.INGEST_TIMEOUT_SECONDS,
        )


@dataclass
class UploadRequest:
    """One uploaded file plus how it should be processed."""
    file_bytes: Optional[bytes]
    declared_mime_type: Optional[str] = None
    declared_file_name: str = ""
    aspect_ratio_policy: Union[str, AspectRatioPolicy, None] = AspectRatioPolicy.ORIGINAL
    max_size_bytes: Optional[int] = None
    allowed_mime_types: Optional[Iterable[str]] = None
    timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class StoredImage:
    """Result of a successful ingestion."""
    public_url: str
    byte_size: int
    filename: str
    path: Path = field(compare=False)
    width: int
    height: int


@dataclass(frozen=True)
class _EncodedImage:
    content: bytes
    width: int
    height: int


class ImageIngestionService:
    """Validates, normalizes and stores uploaded images"""

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        processor: Optional[ImageProcessorService] = None,
        storage: Optional[UploadStorage] = None
    ):
        self.config = config or IngestionConfig()
        self.processor = processor or ImageProcessorService(quality=self.config.quality)
        self.storage = storage or UploadStorage(
            self.config.public_dir,
            self.config.uploads_root,
            extension=OUTPUT_EXTENSION
        )

    async def ingest(self, request: UploadRequest) -> StoredImage:
        """
        Run the full pipeline for one upload.

        Returns:
            StoredImage describing the written file

        Raises:
            NoFileProvided, UnsupportedMimeType, FileTooLarge: before any decoding
            DecodeFailed: If the bytes are not a readable image
            ProcessingTimeout: If decoding/resizing/encoding exceeds the timeout
            StorageWriteFailed: If the file cannot be written
        """
        content = self.validate(request)
        preset = get_preset(request.aspect_ratio_policy)

        timeout = request.timeout_seconds
        if timeout is None:
            timeout = self.config.timeout_seconds

        # CPU-bound work runs off the event loop; the write only starts once it
        # has finished, so a timeout never leaves a file behind
        encoded = await with_timeout(
            lambda: asyncio.to_thread(self._render, content, preset),
            timeout,
            timeout_message=f"Image processing exceeded {timeout}s"
        )

        filename, path = await self.storage.save(encoded.content, request.declared_file_name or "")
        stored = StoredImage(
            public_url=self.storage.public_url(filename),
            byte_size=len(encoded.content),
            filename=filename,
            path=path,
            width=encoded.width,
            height=encoded.height
        )

        logger.info(
            f"Stored upload {request.declared_file_name!r} as {stored.public_url} "
            f"({stored.width}x{stored.height}, {stored.byte_size} bytes, policy={preset.policy.value})"
        )
        return stored

    def validate(self, request: UploadRequest) -> bytes:
        """Cheap checks, in order: presence, declared type, size"""
        content = validate_file_present(request.file_bytes)
        self.check_declared(
            request.declared_mime_type,
            len(content),
            max_size_bytes=request.max_size_bytes,
            allowed_mime_types=request.allowed_mime_types
        )
        return content

    def check_declared(
        self,
        declared_mime_type: Optional[str],
        size: int,
        max_size_bytes: Optional[int] = None,
        allowed_mime_types: Optional[Iterable[str]] = None
    ) -> None:
        """
        Type and size checks on upload metadata alone.

        Lets callers reject a multipart upload from its headers before
        reading its body.
        """
        if allowed_mime_types is None:
            allowed_mime_types = self.config.allowed_mime_types
        validate_mime_type(declared_mime_type, allowed_mime_types)

        if max_size_bytes is None:
            max_size_bytes = self.config.max_size_bytes
        validate_file_size(size, max_size_bytes)

    def _render(self, content: bytes, preset: ResizePreset) -> _EncodedImage:
        image = self.processor.decode(content)
        image = self.processor.transform(image, preset)
        return _EncodedImage(
            content=self.processor.encode(image),
            width=image.width,
            height=image.height
        )
