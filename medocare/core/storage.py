"""
Stored asset naming and local disk storage for Medo Care.

Storage names are random tokens plus an extension. The uploader's
original filename is never used on disk.
"""

import shutil
from pathlib import Path
from typing import BinaryIO, Tuple
from uuid import uuid4

from medocare.utils.logger import get_logger

logger = get_logger("storage")


class StorageNamer:
    """
    Generates collision-free storage names.

    Each name is a random UUID4 token, so concurrent callers need no
    coordination and the namer keeps no state.
    """

    def assign_name(self, resolved_extension: str) -> Tuple[str, str]:
        """
        Create a new storage name.

        Args:
            resolved_extension: Extension without the leading dot

        Returns:
            Tuple of (asset_id, storage_name)
        """
        asset_id = str(uuid4())
        extension = resolved_extension.lstrip(".")
        return asset_id, f"{asset_id}.{extension}"


class LocalAssetStore:
    """Writes and removes stored assets under a single root directory."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, root: Path):
        self.root = Path(root)

    def write(self, storage_name: str, content: BinaryIO) -> Path:
        """
        Persist content under a storage name.

        The file is created exclusively; an existing file is never
        overwritten.

        Args:
            storage_name: Name from StorageNamer
            content: Readable binary stream

        Returns:
            Path of the written file

        Raises:
            OSError: If the file cannot be created or written
        """
        self.root.mkdir(parents=True, exist_ok=True)
        destination = self.root / Path(storage_name).name

        if hasattr(content, "seek"):
            content.seek(0)

        handle = open(destination, "xb")
        try:
            with handle:
                shutil.copyfileobj(content, handle, self.CHUNK_SIZE)
        except BaseException:
            # Drop whatever part of the file was written
            destination.unlink(missing_ok=True)
            raise

        return destination

    def delete(self, path: Path) -> bool:
        """
        Remove a stored asset.

        Returns:
            True if a file was removed, False if it was already gone
        """
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Asset removal failed", storage_name=Path(path).name, error=str(e))
            raise
