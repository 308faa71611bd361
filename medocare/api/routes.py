"""
API routes for Medo Care.

Defines the upload, report and health endpoints.
"""

import os
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from medocare.config import settings
from medocare.models.schemas import (
    ErrorResponse,
    HealthResponse,
    ReportBody,
    ReportRequest,
    ReportResponse,
    UploadedFileInfo,
    UploadResponse,
)
from medocare.api.middleware import limiter
from medocare.services.ingestion import IngestionPipeline
from medocare.services.report_composer import ReportComposer
from medocare.utils.file_validators import UploadCandidate
from medocare.utils.logger import get_logger

logger = get_logger("routes")

router = APIRouter()

REPORT_REQUEST_SCHEMA = ReportRequest.model_json_schema(by_alias=True)


@lru_cache
def get_ingestion_pipeline() -> IngestionPipeline:
    """Pipeline bound to the configured upload directory."""
    return IngestionPipeline.from_settings(settings)


@lru_cache
def get_report_composer() -> ReportComposer:
    """Composer with the configured report content."""
    return ReportComposer.from_settings(settings)


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _to_candidate(upload: UploadFile) -> UploadCandidate:
    return UploadCandidate(
        original_name=upload.filename or "",
        declared_mime_type=upload.content_type or "",
        size_bytes=_upload_size(upload),
        raw_content=upload.file,
    )


FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_report_request(request: Request) -> ReportRequest:
    """
    Read findings from a JSON or form-encoded body.

    Browser forms post findingsText urlencoded; API clients send JSON.
    An absent body is an empty request.
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        findings = form.get("findingsText")
        return ReportRequest(findings_text=findings if isinstance(findings, str) else None)

    raw = await request.body()
    if not raw.strip():
        return ReportRequest()

    try:
        return ReportRequest.model_validate_json(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=raw) from e


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """Check if the service is healthy and running."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version
    )


# =============================================================================
# Image Upload
# =============================================================================

@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["Upload"],
    summary="Upload medical images (PNG, JPEG, DICOM)",
    responses={
        400: {"model": ErrorResponse, "description": "Batch rejected"},
        500: {"model": ErrorResponse, "description": "Batch could not be stored"}
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def upload_images(
    request: Request,
    images: Optional[List[UploadFile]] = File(
        default=None,
        description="Up to 5 image files"
    ),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    """
    Upload a batch of medical images.

    Supports:
    - PNG files (image/png)
    - JPEG files (image/jpeg)
    - DICOM files (application/dicom, application/dicom+json, or any *.dcm)

    The batch is stored as a whole or not at all. Stored files get
    random names; the original filename is never used on disk.
    """
    candidates = [_to_candidate(upload) for upload in images or []]

    result = await pipeline.ingest_async(candidates)
    result.raise_for_rejection()

    logger.info("Images uploaded", file_count=len(result.assets))

    return UploadResponse(
        message="Upload received",
        files=[
            UploadedFileInfo(
                filename=asset.storage_name,
                mimetype=asset.mime_type,
                size=asset.size_bytes
            )
            for asset in result.assets
        ]
    )


# =============================================================================
# Report Generation
# =============================================================================

@router.post(
    "/report",
    response_model=ReportResponse,
    tags=["Reports"],
    summary="Generate a patient-friendly report",
    openapi_extra={
        "requestBody": {
            "required": False,
            "content": {
                "application/json": {"schema": REPORT_REQUEST_SCHEMA},
                "application/x-www-form-urlencoded": {"schema": REPORT_REQUEST_SCHEMA},
            },
        }
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def generate_report(
    request: Request,
    body: ReportRequest = Depends(read_report_request),
    composer: ReportComposer = Depends(get_report_composer),
):
    """
    Build a structured report from radiology findings.

    Clinical jargon in the findings is rewritten into plain language
    for the patient explanation. An empty request yields the normal
    default report.

    **Important**: This is a fixed text rewrite, NOT a diagnosis.
    """
    report = composer.compose(body.findings_text)

    return ReportResponse(
        report=ReportBody(
            findings=report.findings,
            impression=report.impression,
            recommendations=report.recommendations,
            patient_explanation=report.patient_explanation
        )
    )
