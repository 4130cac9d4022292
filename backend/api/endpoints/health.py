"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime

from api.dependencies import get_ingestion_service
from core.config import settings
from services.ingestion import ImageIngestionService

router = APIRouter()


@router.get("/status")
async def health_status():
    """Get detailed health status"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "version": "0.1.0"
    }


@router.get("/ready")
async def readiness_check(
    service: ImageIngestionService = Depends(get_ingestion_service)
):
    """Readiness probe: the uploads directory must be writable"""
    writable = await service.storage.is_writable()
    return JSONResponse(
        status_code=200 if writable else 503,
        content={"ready": writable, "uploads_writable": writable}
    )
