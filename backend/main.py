"""
PicStore Backend API
Main FastAPI application entry point
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging

from core.config import settings
from core.middleware import RequestIDMiddleware, LoggingMiddleware
from api.router import api_router
from api.dependencies import get_ingestion_service
from utils.error_handlers import AppError, error_response
from utils.file_utils import ensure_directory

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events"""
    # Startup
    logger.info("Starting PicStore API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    upload_dir = await get_ingestion_service().storage.ensure_upload_dir()
    logger.info(f"Uploads directory: {upload_dir.resolve()}")

    yield

    # Shutdown
    logger.info("Shutting down PicStore API...")


# Create FastAPI application
app = FastAPI(
    title="PicStore API",
    description="Image upload, resize and storage API for business entity pictures",
    version="0.1.0",
    lifespan=lifespan,
    # Keep docs on /api/* so they don't collide with public files at "/"
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.add_middleware(RequestIDMiddleware)
app.add_middleware(LoggingMiddleware)

# Include API routes under /api/v1
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render application errors raised outside decorated routes"""
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed form fields get the same failure body as upload errors"""
    return error_response(AppError(
        "Invalid request",
        code="INVALID_REQUEST",
        status_code=422,
        details={"errors": jsonable_encoder(exc.errors())}
    ))


@app.get("/health")
async def health_check():
    """Health check endpoint (kept outside /api so it's easy to probe)"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }


# ---- Serve the public directory (and so /uploads/<file>) at "/" ----
# Mounted AFTER API routes so /api/* keeps working.
app.mount(
    "/",
    StaticFiles(directory=ensure_directory(settings.PUBLIC_DIR)),
    name="public"
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
