"""
Shared fixtures for Medo Care tests.
"""

import io
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from medocare.api.middleware import limiter
from medocare.api.routes import get_ingestion_pipeline
from medocare.core.storage import LocalAssetStore
from medocare.main import app
from medocare.services.ingestion import IngestionPipeline
from medocare.utils.file_validators import UploadCandidate

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def make_candidate(
    name: str = "scan.png",
    mime: str = "image/png",
    content: bytes = PNG_BYTES,
    size: Optional[int] = None
) -> UploadCandidate:
    """Build an UploadCandidate backed by an in-memory stream."""
    return UploadCandidate(
        original_name=name,
        declared_mime_type=mime,
        size_bytes=len(content) if size is None else size,
        raw_content=io.BytesIO(content),
    )


def stored_files(root: Path) -> list[Path]:
    """Every file currently in the upload directory."""
    if not root.exists():
        return []
    return sorted(p for p in root.iterdir() if p.is_file())


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def pipeline(upload_root: Path) -> IngestionPipeline:
    return IngestionPipeline(store=LocalAssetStore(upload_root))


@pytest.fixture
def client(pipeline: IngestionPipeline):
    """Test client storing uploads in a temporary directory."""
    app.dependency_overrides[get_ingestion_pipeline] = lambda: pipeline
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
    app.dependency_overrides.clear()
