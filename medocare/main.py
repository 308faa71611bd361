"""
Medo Care - FastAPI Application

Medical image intake and patient-friendly radiology report service.

IMPORTANT: This is NOT a diagnostic tool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware

from medocare.config import settings
from medocare.api.routes import router
from medocare.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    UploadSizeLimitMiddleware,
    setup_error_handlers,
    setup_rate_limiting
)
from medocare.utils.logger import get_logger, configure_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "Starting Medo Care",
        version=settings.app_version,
        debug=settings.debug
    )

    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )

    # Ensure the upload directory exists
    settings.upload_path.mkdir(parents=True, exist_ok=True)

    logger.info("Application ready")

    yield

    logger.info("Shutting down Medo Care")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Medo Care - Medical Imaging Intake

Accepts medical images from clinicians and turns radiology findings
into language patients can read.

### ⚠️ Important Disclaimer

**This is NOT a diagnostic tool.** The report translation is a fixed
rewrite of common radiology phrases and does not interpret images.

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/upload` | POST | Upload up to 5 PNG/JPEG/DICOM images |
| `/report` | POST | Build a patient-friendly report |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )

    # Setup middleware (order matters - last added is outermost)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Checked before the multipart body is read
    app.add_middleware(
        UploadSizeLimitMiddleware,
        max_body_bytes=settings.max_files_per_upload * settings.max_file_size_bytes
    )

    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(ErrorHandlingMiddleware)

    setup_error_handlers(app)
    setup_rate_limiting(app)

    app.include_router(router, tags=["API"])

    return app


app = create_app()


# Run with: uvicorn medocare.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medocare.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
