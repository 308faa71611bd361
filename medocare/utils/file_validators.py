"""
Upload validation for Medo Care.

Decides whether each file in an upload batch may be stored:
- Batch size limit
- Per-file size limit
- Declared content type (with a .dcm filename fallback)

Validation is pure: no file is read or written here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Optional, Sequence, Union

from medocare.config import GENERIC_EXTENSION, UploadPolicy


class RejectionReason(str, Enum):
    """Reasons an upload batch can be refused."""
    TOO_MANY_FILES = "too_many_files"
    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    STORAGE_WRITE_FAILURE = "storage_write_failure"

    @property
    def message(self) -> str:
        """Human-readable message shown to the uploader."""
        return REJECTION_MESSAGES[self]

    @property
    def is_client_error(self) -> bool:
        """Whether the uploader can correct this by changing the batch."""
        return self is not RejectionReason.STORAGE_WRITE_FAILURE


REJECTION_MESSAGES = {
    RejectionReason.TOO_MANY_FILES: "Too many files.",
    RejectionReason.FILE_TOO_LARGE: "File too large.",
    RejectionReason.UNSUPPORTED_FILE_TYPE: "Unsupported file type. Allowed: PNG, JPEG, DICOM (.dcm)",
    RejectionReason.STORAGE_WRITE_FAILURE: "Upload could not be stored. Please try again.",
}


@dataclass(frozen=True)
class UploadCandidate:
    """A file received from the transport layer, not yet stored."""

    original_name: str
    declared_mime_type: str
    size_bytes: int
    raw_content: BinaryIO


@dataclass(frozen=True)
class Accepted:
    """Candidate may be stored with the given extension."""

    resolved_extension: str


@dataclass(frozen=True)
class Rejected:
    """Candidate (or whole batch) refused."""

    reason: RejectionReason
    filename: Optional[str] = None
    detail: str = ""

    @property
    def message(self) -> str:
        return self.detail or self.reason.message


ValidationResult = Union[Accepted, Rejected]


class UploadValidator:
    """
    Validates upload batches against an UploadPolicy.

    Per-file checks run as an ordered sequence of stages; the first
    stage that rejects wins. The batch size check runs before any
    per-file stage.
    """

    def __init__(self, policy: Optional[UploadPolicy] = None):
        self.policy = policy or UploadPolicy()
        self._stages: tuple[Callable[[UploadCandidate], Optional[Rejected]], ...] = (
            self.check_file_size,
            self.check_file_type,
        )

    def check_batch_size(
        self,
        candidates: Sequence[UploadCandidate]
    ) -> Optional[Rejected]:
        """
        Check the number of files in a batch.

        Args:
            candidates: Every file submitted in the request

        Returns:
            Rejected(TOO_MANY_FILES) if the batch is too big, else None
        """
        if len(candidates) > self.policy.max_files:
            return Rejected(
                RejectionReason.TOO_MANY_FILES,
                detail=(
                    f"Too many files. Upload at most "
                    f"{self.policy.max_files} files at a time."
                ),
            )
        return None

    def check_file_size(self, candidate: UploadCandidate) -> Optional[Rejected]:
        """Reject files above the per-file size limit."""
        if candidate.size_bytes > self.policy.max_file_size_bytes:
            limit_mb = self.policy.max_file_size_bytes / (1024 * 1024)
            return Rejected(
                RejectionReason.FILE_TOO_LARGE,
                candidate.original_name,
                detail=f"File too large. Each file must be {limit_mb:g} MB or smaller.",
            )
        return None

    def check_file_type(self, candidate: UploadCandidate) -> Optional[Rejected]:
        """Reject files whose type is neither allowed nor a .dcm name."""
        if self._mime(candidate) in self.policy.allowed_mime_types:
            return None
        if self._has_dicom_name(candidate):
            return None
        return Rejected(RejectionReason.UNSUPPORTED_FILE_TYPE, candidate.original_name)

    def resolve_extension(self, candidate: UploadCandidate) -> str:
        """
        Pick the stored extension for an accepted candidate.

        The declared type decides. A .dcm name only matters when the
        declared type has no canonical extension of its own.
        """
        extension = self.policy.extensions.get(self._mime(candidate))
        if extension:
            return extension
        if self._has_dicom_name(candidate):
            return self.policy.dicom_suffix.lstrip(".")
        return GENERIC_EXTENSION

    def validate(self, candidate: UploadCandidate) -> ValidationResult:
        """
        Validate a single candidate.

        Args:
            candidate: File to check

        Returns:
            Accepted with the resolved extension, or the first Rejected
        """
        for stage in self._stages:
            rejection = stage(candidate)
            if rejection is not None:
                return rejection
        return Accepted(self.resolve_extension(candidate))

    def _mime(self, candidate: UploadCandidate) -> str:
        return (candidate.declared_mime_type or "").strip().lower()

    def _has_dicom_name(self, candidate: UploadCandidate) -> bool:
        name = (candidate.original_name or "").lower()
        return name.endswith(self.policy.dicom_suffix)
