"""
Shared FastAPI dependencies
"""

from functools import lru_cache

from core.config import settings
from services.ingestion import ImageIngestionService, IngestionConfig


@lru_cache(maxsize=1)
def get_ingestion_service() -> ImageIngestionService:
    """Process-wide ingestion service built from the application settings"""
    return ImageIngestionService(IngestionConfig.from_settings(settings))
