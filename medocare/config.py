"""
Configuration management for Medo Care.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FINDINGS = "No acute cardiopulmonary abnormality identified."
DEFAULT_EXPLANATION = "Your lungs look okay overall."
DEFAULT_IMPRESSION = "Imaging features are most compatible with community-acquired pneumonia."
DEFAULT_RECOMMENDATIONS = (
    "Clinical correlation with symptoms and labs.",
    "Consider follow-up chest X-ray in 6–8 weeks.",
    "Antibiotic therapy per local guidelines.",
)

class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "Medo Care"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    
    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 3000
    
    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 30
    
    # ==========================================================================
    # File Upload
    # ==========================================================================
    upload_dir: str = "uploads"
    max_files_per_upload: int = 5
    max_file_size_mb: int = 25
    allowed_mime_types: str = (
        "image/png,image/jpeg,application/dicom,application/dicom+json"
    )
    dicom_filename_suffix: str = ".dcm"
    
    # ==========================================================================
    # Report Content
    # ==========================================================================
    report_default_findings: str = DEFAULT_FINDINGS
    report_default_explanation: str = DEFAULT_EXPLANATION
    report_impression: str = DEFAULT_IMPRESSION
    report_recommendations: list[str] = list(DEFAULT_RECOMMENDATIONS)
    
    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024
    
    @property
    def mime_types(self) -> list[str]:
        """List of accepted MIME types."""
        return [
            mime.strip().lower()
            for mime in self.allowed_mime_types.split(",")
            if mime.strip()
        ]
    
    @property
    def upload_path(self) -> Path:
        """Path to the stored asset directory."""
        path = Path(self.upload_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path


# Canonical extensions for accepted types. Types without an entry resolve
# to the generic binary extension.
MIME_EXTENSIONS: Mapping[str, str] = MappingProxyType({
    "image/png": "png",
    "image/jpeg": "jpeg",
    "application/dicom": "dcm",
})

GENERIC_EXTENSION = "bin"


@dataclass(frozen=True)
class UploadPolicy:
    """
    Immutable upload acceptance policy.
    
    Built once from settings and handed to the validator, so the
    validator itself never reads process-wide configuration.
    """
    
    max_files: int = 5
    max_file_size_bytes: int = 25 * 1024 * 1024
    allowed_mime_types: frozenset[str] = frozenset({
        "image/png",
        "image/jpeg",
        "application/dicom",
        "application/dicom+json",
    })
    dicom_suffix: str = ".dcm"
    extensions: Mapping[str, str] = field(default_factory=lambda: MIME_EXTENSIONS)
    
    @classmethod
    def from_settings(cls, config: Settings) -> "UploadPolicy":
        return cls(
            max_files=config.max_files_per_upload,
            max_file_size_bytes=config.max_file_size_bytes,
            allowed_mime_types=frozenset(config.mime_types),
            dicom_suffix=config.dicom_filename_suffix.lower(),
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
