"""
Picture uploads on behalf of business entities (categories, brands, products,
customers, employees).

Entities keep the returned public URL as a plain string. A missing file is
not an error: the entity is saved with no picture. A bad file is, and the
entity operation must abort.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from services.ingestion import ImageIngestionService, UploadRequest
from services.presets import AspectRatioPolicy
from utils.error_handlers import IngestError
from utils.file_utils import mb_to_bytes

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    """Entities that carry a picture column."""
    CATEGORY = "category"
    BRAND = "brand"
    PRODUCT = "product"
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class PictureRule:
    """Upload constraints for one entity kind."""
    policy: AspectRatioPolicy
    max_size_mb: float

    @property
    def max_size_bytes(self) -> int:
        return mb_to_bytes(self.max_size_mb)


PICTURE_RULES: Dict[EntityKind, PictureRule] = {
    kind: PictureRule(policy=AspectRatioPolicy.ORIGINAL, max_size_mb=5)
    for kind in EntityKind
}


@dataclass
class PictureFile:
    """A file as received from a form: raw bytes plus client metadata."""
    content: bytes
    content_type: Optional[str]
    filename: str


def get_picture_rule(kind: Optional[EntityKind]) -> Optional[PictureRule]:
    """Rule for an entity kind, or None to use the service defaults"""
    if kind is None:
        return None
    return PICTURE_RULES.get(kind)


def build_request(picture: Optional[PictureFile], kind: Optional[EntityKind] = None) -> UploadRequest:
    """Turn a form file into an UploadRequest under the entity's rule"""
    rule = get_picture_rule(kind)
    return UploadRequest(
        file_bytes=picture.content if picture else None,
        declared_mime_type=picture.content_type if picture else None,
        declared_file_name=picture.filename if picture else "",
        aspect_ratio_policy=rule.policy if rule else AspectRatioPolicy.ORIGINAL,
        max_size_bytes=rule.max_size_bytes if rule else None,
    )


def upload_failure(error: IngestError, field_name: str, filename: str) -> IngestError:
    """Same error type, reworded as "Failed to upload <filename>" for the form"""
    return type(error)(
        f"Failed to upload {filename}",
        details={"field": field_name, "reason": error.user_message, **error.details}
    )


async def upload_entity_picture(
    service: ImageIngestionService,
    kind: EntityKind,
    picture: Optional[PictureFile]
) -> Optional[str]:
    """
    Store an entity's picture.

    Returns:
        Public URL of the stored picture, or None when no file was given

    Raises:
        IngestError: If the file was given but could not be stored
    """
    if picture is None:
        return None

    stored = await service.ingest(build_request(picture, kind))
    return stored.public_url


async def upload_named_pictures(
    service: ImageIngestionService,
    kind: Optional[EntityKind],
    pictures: Mapping[str, Optional[PictureFile]]
) -> Dict[str, str]:
    """
    Store several pictures keyed by form field name, one after another.

    Absent entries are skipped. The first failure aborts the rest; files
    stored before it are kept.

    Returns:
        Mapping of field name to public URL

    Raises:
        IngestError: "Failed to upload <filename>", chained to the cause
    """
    urls: Dict[str, str] = {}

    for field_name, picture in pictures.items():
        if picture is None:
            continue
        try:
            stored = await service.ingest(build_request(picture, kind))
        except IngestError as e:
            logger.error(f"Error uploading {field_name}: {e.message}")
            raise upload_failure(e, field_name, picture.filename) from e
        urls[field_name] = stored.public_url

    return urls
