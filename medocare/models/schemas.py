"""
Pydantic schemas for the Medo Care API.

Defines request/response models for all API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Upload Models
# =============================================================================

class UploadedFileInfo(BaseModel):
    """A stored file as reported back to the uploader."""

    filename: str = Field(description="Storage name assigned to the file")
    mimetype: str = Field(description="Declared MIME type")
    size: int = Field(description="File size in bytes")

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    """Response after a successful batch upload."""

    message: str = Field(default="Upload received")
    files: List[UploadedFileInfo] = Field(
        default=[],
        description="Stored files, in submission order"
    )


# =============================================================================
# Report Models
# =============================================================================

class ReportRequest(BaseModel):
    """Request to build a patient-friendly report."""

    findings_text: Optional[str] = Field(
        default=None,
        alias="findingsText",
        description="Free-text radiology findings"
    )

    model_config = ConfigDict(populate_by_name=True)


class ReportBody(BaseModel):
    """Structured report content."""

    findings: str = Field(description="Clinical findings, or the normal default")
    impression: str = Field(description="Overall impression")
    recommendations: List[str] = Field(description="Ordered recommendations")
    patient_explanation: str = Field(
        alias="patientExplanation",
        description="Findings rewritten in plain language"
    )

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ReportResponse(BaseModel):
    """Envelope for the report endpoint."""

    report: ReportBody


# =============================================================================
# Health & Errors
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(description="Application version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Error body returned to JSON clients."""

    error: str = Field(description="Human-readable error message")
