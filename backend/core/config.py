"""
Application configuration management
"""

from typing import Annotated, List
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "PicStore"

    # CORS Settings
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:8000"]

    # Public storage layout: files live in PUBLIC_DIR/UPLOADS_ROOT and are
    # served as /UPLOADS_ROOT/<filename>
    PUBLIC_DIR: str = "./public"
    UPLOADS_ROOT: str = "uploads"

    # File Upload Settings
    MAX_UPLOAD_SIZE_MB: float = 10
    ALLOWED_MIME_TYPES: Annotated[List[str], NoDecode] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/bmp",
        "image/tiff",
    ]
    MAX_BATCH_FILES: int = 10

    # Image Processing Settings
    OUTPUT_QUALITY: int = 80  # WebP quality, 0-100
    INGEST_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("ALLOWED_MIME_TYPES", mode="before")
    @classmethod
    def parse_allowed_mime_types(cls, v):
        if isinstance(v, str):
            return [mime.strip() for mime in v.split(",") if mime.strip()]
        return v

    @field_validator("OUTPUT_QUALITY")
    @classmethod
    def check_output_quality(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("OUTPUT_QUALITY must be between 0 and 100")
        return v


# Create settings instance
settings = Settings()
