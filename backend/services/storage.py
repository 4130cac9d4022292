"""
Public uploads storage service
"""

import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

import aiofiles
import aiofiles.os

from utils.error_handlers import StorageWriteFailed
from utils.file_utils import current_millis, sanitize_basename

logger = logging.getLogger(__name__)

# Keeps generated names well under common 255-byte filesystem limits
MAX_BASENAME_LENGTH = 200

# Attempts at a free name before giving up; each bumps the timestamp by 1ms
MAX_NAME_ATTEMPTS = 5


class UploadStorage:
    """
    Writes processed images into one flat public directory.

    Files land in ``<public_dir>/<uploads_root>/`` and are addressed publicly
    as ``/<uploads_root>/<filename>``. Files are only ever created, never
    overwritten: the target is opened in exclusive-create mode.
    """

    def __init__(
        self,
        public_dir: Union[str, Path],
        uploads_root: str = "uploads",
        extension: str = ".webp"
    ):
        self.public_dir = Path(public_dir)
        self.uploads_root = uploads_root.strip("/")
        self.upload_dir = self.public_dir / self.uploads_root
        self.extension = extension

    def generate_filename(self, original_name: str, timestamp_ms: Optional[int] = None) -> str:
        """
        Build ``<epoch-millis>_<sanitized-basename><extension>``.

        Args:
            original_name: Client file name (untrusted)
            timestamp_ms: Epoch milliseconds, defaults to now
        """
        if timestamp_ms is None:
            timestamp_ms = current_millis()
        # Base names longer than MAX_BASENAME_LENGTH are cut; this is the one
        # departure from the plain <millis>_<base><ext> format
        basename = sanitize_basename(original_name)[:MAX_BASENAME_LENGTH]
        return f"{timestamp_ms}_{basename}{self.extension}"

    def public_url(self, filename: str) -> str:
        return f"/{self.uploads_root}/{filename}"

    async def ensure_upload_dir(self) -> Path:
        """Create the uploads directory (and parents) if missing"""
        try:
            await aiofiles.os.makedirs(self.upload_dir, exist_ok=True)
        except OSError as e:
            raise StorageWriteFailed(
                f"Could not create upload directory: {e}",
                details={"directory": str(self.upload_dir)}
            )
        return self.upload_dir

    async def save(self, content: bytes, original_name: str) -> Tuple[str, Path]:
        """
        Save encoded image bytes under a freshly generated name.

        Returns: (filename, file_path)

        Raises:
            StorageWriteFailed: If the directory or file cannot be written
        """
        await self.ensure_upload_dir()

        timestamp = current_millis()
        for attempt in range(MAX_NAME_ATTEMPTS):
            filename = self.generate_filename(original_name, timestamp + attempt)
            file_path = self.upload_dir / filename

            created = False
            try:
                async with aiofiles.open(file_path, "xb") as f:
                    created = True
                    await f.write(content)
            except BaseException as e:
                # Anything that interrupts the write, cancellation included,
                # must not leave a partial file behind
                if created:
                    await self._discard(file_path)
                elif isinstance(e, FileExistsError):
                    logger.warning(f"Upload name already taken, retrying: {filename}")
                    continue

                if isinstance(e, OSError):
                    action = "write" if created else "create"
                    raise StorageWriteFailed(
                        f"Could not {action} {filename}: {e}",
                        details={"path": str(file_path)}
                    ) from e
                raise

            return filename, file_path

        raise StorageWriteFailed(
            "Could not allocate a unique file name",
            details={"original_name": original_name, "attempts": MAX_NAME_ATTEMPTS}
        )

    async def is_writable(self) -> bool:
        """Check that the uploads directory exists (or can be made) and is writable"""
        try:
            await self.ensure_upload_dir()
        except StorageWriteFailed:
            return False
        return await aiofiles.os.access(self.upload_dir, os.W_OK)

    async def _discard(self, file_path: Path) -> None:
        """Remove a partially written file"""
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove partial upload {file_path}: {e}")
