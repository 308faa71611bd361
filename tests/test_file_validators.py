"""
Tests for upload validation.
"""

import pytest

from medocare.config import Settings, UploadPolicy
from medocare.utils.file_validators import (
    Accepted,
    Rejected,
    RejectionReason,
    UploadValidator,
)

from conftest import make_candidate

LIMIT = 25 * 1024 * 1024


@pytest.fixture
def validator():
    return UploadValidator(UploadPolicy())


class TestTypeAcceptance:
    """Declared type and .dcm fallback."""

    @pytest.mark.parametrize("mime,extension", [
        ("image/png", "png"),
        ("image/jpeg", "jpeg"),
        ("application/dicom", "dcm"),
        ("application/dicom+json", "bin"),
    ])
    def test_allowed_types_accepted(self, validator, mime, extension):
        """Every allowed MIME type is accepted with its extension."""
        result = validator.validate(make_candidate(name="image", mime=mime))
        assert result == Accepted(extension)

    def test_declared_type_is_case_insensitive(self, validator):
        """MIME comparison ignores case."""
        result = validator.validate(make_candidate(mime="IMAGE/PNG"))
        assert isinstance(result, Accepted)

    @pytest.mark.parametrize("name", ["scan.dcm", "SCAN.DCM", "study.Dcm"])
    def test_dcm_name_accepted_regardless_of_type(self, validator, name):
        """A .dcm name is accepted whatever type is declared."""
        result = validator.validate(
            make_candidate(name=name, mime="application/octet-stream")
        )
        assert result == Accepted("dcm")

    def test_dcm_name_with_empty_type(self, validator):
        """A .dcm name with no declared type still resolves to dcm."""
        result = validator.validate(make_candidate(name="scan.dcm", mime=""))
        assert result == Accepted("dcm")

    def test_declared_type_decides_extension(self, validator):
        """The declared type wins over the .dcm name for the extension."""
        result = validator.validate(make_candidate(name="scan.dcm", mime="image/png"))
        assert result == Accepted("png")

    @pytest.mark.parametrize("name,mime", [
        ("notes.txt", "text/plain"),
        ("report.pdf", "application/pdf"),
        ("scan.png.exe", "application/octet-stream"),
        ("scan.dcm.txt", "text/plain"),
    ])
    def test_other_types_rejected(self, validator, name, mime):
        """Anything else is an unsupported type."""
        result = validator.validate(make_candidate(name=name, mime=mime))
        assert isinstance(result, Rejected)
        assert result.reason == RejectionReason.UNSUPPORTED_FILE_TYPE
        assert result.filename == name


class TestSizeLimits:
    """Per-file size limit."""

    def test_file_at_limit_accepted(self, validator):
        """A file exactly at the limit is accepted."""
        result = validator.validate(make_candidate(size=LIMIT))
        assert isinstance(result, Accepted)

    def test_file_over_limit_rejected(self, validator):
        """A file one byte over the limit is rejected."""
        result = validator.validate(make_candidate(size=LIMIT + 1))
        assert result.reason == RejectionReason.FILE_TOO_LARGE
        assert "25 MB" in result.message

    def test_size_checked_before_type(self, validator):
        """An oversized file of a bad type reports the size problem."""
        result = validator.validate(
            make_candidate(name="notes.txt", mime="text/plain", size=LIMIT + 1)
        )
        assert result.reason == RejectionReason.FILE_TOO_LARGE


class TestBatchSize:
    """Number of files per request."""

    def test_five_files_allowed(self, validator):
        """Five files pass the batch check."""
        assert validator.check_batch_size([make_candidate()] * 5) is None

    def test_six_files_rejected(self, validator):
        """Six files are refused as a batch."""
        result = validator.check_batch_size([make_candidate()] * 6)
        assert result.reason == RejectionReason.TOO_MANY_FILES
        assert "5" in result.message


class TestPolicyFromSettings:
    """Policy built from Settings."""

    def test_policy_follows_settings(self):
        """Limits and types are taken from settings."""
        config = Settings(
            max_files_per_upload=2,
            max_file_size_mb=1,
            allowed_mime_types="image/png, IMAGE/JPEG"
        )
        policy = UploadPolicy.from_settings(config)

        assert policy.max_files == 2
        assert policy.max_file_size_bytes == 1024 * 1024
        assert policy.allowed_mime_types == frozenset({"image/png", "image/jpeg"})

    def test_validator_uses_injected_policy(self):
        """A stricter policy changes the outcome."""
        validator = UploadValidator(UploadPolicy(max_file_size_bytes=10))
        result = validator.validate(make_candidate(content=b"x" * 11))
        assert result.reason == RejectionReason.FILE_TOO_LARGE
