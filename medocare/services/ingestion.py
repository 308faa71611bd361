"""
Upload ingestion pipeline for Medo Care.

Validates and stores an upload batch with all-or-nothing semantics:
either every file in the batch is stored, or none is.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from medocare.config import Settings, UploadPolicy
from medocare.core.storage import LocalAssetStore, StorageNamer
from medocare.utils.file_validators import (
    Rejected,
    RejectionReason,
    UploadCandidate,
    UploadValidator,
)
from medocare.utils.logger import get_logger

logger = get_logger("ingestion")


class UploadRejectedError(Exception):
    """Raised when an upload batch is refused as a whole."""

    def __init__(self, rejection: Rejected):
        self.rejection = rejection
        self.reason = rejection.reason
        self.message = rejection.message
        super().__init__(self.message)


@dataclass(frozen=True)
class StoredAsset:
    """A file that has been accepted and written to storage."""

    id: str
    storage_name: str
    mime_type: str
    size_bytes: int
    storage_path: Path


@dataclass
class BatchResult:
    """Outcome of ingesting one batch. Never partially successful."""

    assets: List[StoredAsset] = field(default_factory=list)
    rejection: Optional[Rejected] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    def raise_for_rejection(self) -> None:
        """Raise UploadRejectedError if the batch was refused."""
        if self.rejection is not None:
            raise UploadRejectedError(self.rejection)


class IngestionPipeline:
    """
    Orchestrates validation and storage of upload batches.

    Files are processed in submission order. Each accepted file is
    written immediately; the first rejection, storage failure or
    cancellation removes every file already written for the batch.
    """

    def __init__(
        self,
        store: LocalAssetStore,
        validator: Optional[UploadValidator] = None,
        namer: Optional[StorageNamer] = None,
    ):
        self.store = store
        self.validator = validator or UploadValidator()
        self.namer = namer or StorageNamer()

    @classmethod
    def from_settings(cls, config: Settings) -> "IngestionPipeline":
        return cls(
            store=LocalAssetStore(config.upload_path),
            validator=UploadValidator(UploadPolicy.from_settings(config)),
        )

    def ingest(
        self,
        batch: Sequence[UploadCandidate],
        stored: Optional[List[StoredAsset]] = None
    ) -> BatchResult:
        """
        Validate and store a batch.

        Args:
            batch: Candidates in submission order
            stored: List that receives each asset as soon as it is
                written, so a caller can undo the batch if it is
                abandoned before this method returns

        Returns:
            BatchResult with every stored asset, or a single rejection
        """
        logger.info("Batch received", file_count=len(batch))

        if stored is None:
            stored = []

        rejection = self.validator.check_batch_size(batch)
        if rejection is not None:
            return self._reject(rejection, stored)

        try:
            for candidate in batch:
                result = self.validator.validate(candidate)
                if isinstance(result, Rejected):
                    return self._reject(result, stored)
                stored.append(self._store(candidate, result.resolved_extension))
        except OSError as e:
            logger.error("Storage write failed", error_type=type(e).__name__)
            return self._reject(Rejected(RejectionReason.STORAGE_WRITE_FAILURE), stored)
        except BaseException:
            # Cancelled mid-batch: clean up, then let the cancellation through
            self.rollback(stored)
            raise

        logger.info("Batch stored", file_count=len(stored))
        return BatchResult(assets=stored)

    async def ingest_async(self, batch: Sequence[UploadCandidate]) -> BatchResult:
        """
        Run ingest in a worker thread on behalf of a request.

        A cancelled request does not interrupt the worker thread, so the
        batch may finish writing after the caller has gone. Whatever it
        wrote is removed before the cancellation is re-raised.
        """
        stored: List[StoredAsset] = []
        try:
            return await run_in_threadpool(self.ingest, batch, stored)
        except BaseException:
            logger.warning("Batch abandoned", file_count=len(batch))
            self.rollback(stored)
            raise

    def _store(self, candidate: UploadCandidate, extension: str) -> StoredAsset:
        asset_id, storage_name = self.namer.assign_name(extension)
        path = self.store.write(storage_name, candidate.raw_content)
        return StoredAsset(
            id=asset_id,
            storage_name=storage_name,
            mime_type=candidate.declared_mime_type,
            size_bytes=candidate.size_bytes,
            storage_path=path,
        )

    def _reject(self, rejection: Rejected, stored: List[StoredAsset]) -> BatchResult:
        self.rollback(stored)
        logger.warning(
            "Batch rejected",
            reason=rejection.reason.value,
            filename=rejection.filename
        )
        return BatchResult(rejection=rejection)

    def rollback(self, stored: List[StoredAsset]) -> None:
        """Remove every asset written for a batch. Missing files are skipped."""
        if not stored:
            return

        removed = 0
        for asset in stored:
            try:
                if self.store.delete(asset.storage_path):
                    removed += 1
            except OSError:
                # Keep going so the remaining files are still removed
                continue

        logger.info("Batch rolled back", removed=removed, stored=len(stored))
