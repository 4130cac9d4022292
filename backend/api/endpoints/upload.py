"""
Image upload endpoints
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Dict, List, Optional
import logging

from api.dependencies import get_ingestion_service
from core.config import settings
from models.upload import (
    BatchUploadResponse,
    PresetInfo,
    PresetListResponse,
    UploadErrorResponse,
    UploadResponse,
)
from services.entity_pictures import (
    EntityKind,
    PictureFile,
    get_picture_rule,
    upload_failure,
    upload_named_pictures,
)
from services.ingestion import ImageIngestionService, UploadRequest
from services.presets import get_all_presets
from utils.error_handlers import AppError, IngestError, handle_errors
from utils.file_utils import mb_to_bytes

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    status: {"model": UploadErrorResponse}
    for status in (400, 413, 415, 422, 504, 507)
}


async def read_upload(
    file: UploadFile,
    service: ImageIngestionService,
    max_size_bytes: Optional[int] = None
) -> PictureFile:
    """
    Read a multipart file fully into memory.

    When the multipart layer reports the size, type and size are checked
    first and an oversized body is rejected unread.
    """
    if file.size is not None:
        try:
            service.check_declared(file.content_type, file.size, max_size_bytes=max_size_bytes)
        except IngestError:
            await file.close()
            raise

    try:
        content = await file.read()
    finally:
        await file.close()
    return PictureFile(
        content=content,
        content_type=file.content_type,
        filename=file.filename or ""
    )


def parse_entity(entity: Optional[str]) -> Optional[EntityKind]:
    if not entity:
        return None
    try:
        return EntityKind(entity)
    except ValueError:
        raise AppError(
            f"Unknown entity type: {entity}",
            code="UNKNOWN_ENTITY",
            status_code=400,
            details={"allowed": [kind.value for kind in EntityKind]}
        )


@router.post("/image", response_model=UploadResponse, responses=ERROR_RESPONSES)
@handle_errors(fallback_message="Upload failed")
async def upload_image(
    file: Optional[UploadFile] = File(None),
    aspect_ratio: str = Form("original"),
    max_size_mb: Optional[float] = Form(None),
    service: ImageIngestionService = Depends(get_ingestion_service)
):
    """
    Upload a single image.

    - Validates declared type and size
    - Resizes according to ``aspect_ratio`` ("original", "1:1" or "3:4")
    - Stores it as WebP under the public uploads directory
    - Returns its public URL
    """
    max_size_bytes = service.config.max_size_bytes
    if max_size_mb is not None:
        # Clients may lower the configured ceiling, never raise it
        max_size_bytes = min(mb_to_bytes(max_size_mb), max_size_bytes)

    picture = None
    if file is not None:
        picture = await read_upload(file, service, max_size_bytes)

    stored = await service.ingest(UploadRequest(
        file_bytes=picture.content if picture else None,
        declared_mime_type=picture.content_type if picture else None,
        declared_file_name=picture.filename if picture else "",
        aspect_ratio_policy=aspect_ratio,
        max_size_bytes=max_size_bytes,
    ))

    return UploadResponse(
        url=stored.public_url,
        size=stored.byte_size,
        width=stored.width,
        height=stored.height
    )


@router.post("/batch", response_model=BatchUploadResponse, responses=ERROR_RESPONSES)
@handle_errors(fallback_message="Upload failed")
async def upload_batch(
    files: List[UploadFile] = File(...),
    entity: Optional[str] = Form(None),
    service: ImageIngestionService = Depends(get_ingestion_service)
):
    """
    Upload several images in one request, stopping at the first failure.

    Results are keyed by original file name; repeated names get a ``#<index>``
    suffix.
    """
    if len(files) > settings.MAX_BATCH_FILES:
        raise AppError(
            f"Maximum {settings.MAX_BATCH_FILES} files can be uploaded at once",
            code="TOO_MANY_FILES",
            status_code=400,
            details={"received": len(files)}
        )

    kind = parse_entity(entity)
    rule = get_picture_rule(kind)
    max_size_bytes = rule.max_size_bytes if rule else None

    pictures: Dict[str, PictureFile] = {}
    for idx, file in enumerate(files):
        key = file.filename or f"file{idx}"
        if key in pictures:
            key = f"{key}#{idx}"
        try:
            pictures[key] = await read_upload(file, service, max_size_bytes)
        except IngestError as e:
            raise upload_failure(e, key, file.filename or "") from e

    urls = await upload_named_pictures(service, kind, pictures)

    return BatchUploadResponse(urls=urls, total=len(urls))


@router.get("/presets", response_model=PresetListResponse)
async def list_presets():
    """List the accepted aspect-ratio policies and their output boxes"""
    return PresetListResponse(presets=[
        PresetInfo(
            policy=policy.value,
            width=preset.output_width,
            height=preset.output_height,
            fit=preset.fit.value,
            description=preset.description
        )
        for policy, preset in get_all_presets().items()
    ])
