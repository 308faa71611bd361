"""
Tests for storage naming and the local asset store.
"""

import io
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from medocare.core.storage import LocalAssetStore, StorageNamer

UUID_NAME = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}\.png$")


class TestStorageNamer:
    """Random storage names."""

    def test_name_is_token_plus_extension(self):
        """Names are a UUID4 token and the resolved extension."""
        asset_id, name = StorageNamer().assign_name("png")
        assert name == f"{asset_id}.png"
        assert UUID_NAME.match(name)

    def test_leading_dot_ignored(self):
        """An extension given with a dot does not double up."""
        _, name = StorageNamer().assign_name(".dcm")
        assert name.endswith(".dcm")
        assert ".." not in name

    def test_concurrent_names_are_unique(self):
        """Thousands of names generated in parallel never collide."""
        namer = StorageNamer()
        count = 5000

        with ThreadPoolExecutor(max_workers=16) as pool:
            names = list(pool.map(lambda _: namer.assign_name("png")[1], range(count)))

        assert len(set(names)) == count


class TestLocalAssetStore:
    """Writing and removing assets."""

    def test_write_creates_file(self, tmp_path):
        """Content lands under the root with the given name."""
        store = LocalAssetStore(tmp_path / "uploads")
        path = store.write("abc.png", io.BytesIO(b"data"))

        assert path == tmp_path / "uploads" / "abc.png"
        assert path.read_bytes() == b"data"

    def test_write_rewinds_stream(self, tmp_path):
        """A stream that was already read is written from the start."""
        stream = io.BytesIO(b"data")
        stream.read()

        path = LocalAssetStore(tmp_path).write("abc.png", stream)
        assert path.read_bytes() == b"data"

    def test_write_never_overwrites(self, tmp_path):
        """An existing file is left untouched."""
        store = LocalAssetStore(tmp_path)
        store.write("abc.png", io.BytesIO(b"first"))

        with pytest.raises(FileExistsError):
            store.write("abc.png", io.BytesIO(b"second"))

        assert (tmp_path / "abc.png").read_bytes() == b"first"

    def test_write_stays_inside_root(self, tmp_path):
        """Directory components in a name are discarded."""
        store = LocalAssetStore(tmp_path / "uploads")
        path = store.write("../escape.png", io.BytesIO(b"data"))

        assert path.parent == tmp_path / "uploads"
        assert not (tmp_path / "escape.png").exists()

    def test_failed_write_leaves_no_file(self, tmp_path):
        """A stream error removes the partly written file."""

        class BrokenStream(io.BytesIO):
            def read(self, *args):
                raise OSError("disk went away")

        store = LocalAssetStore(tmp_path)
        with pytest.raises(OSError):
            store.write("abc.png", BrokenStream(b"data"))

        assert not (tmp_path / "abc.png").exists()

    def test_delete(self, tmp_path):
        """Delete reports whether a file was removed."""
        store = LocalAssetStore(tmp_path)
        path = store.write("abc.png", io.BytesIO(b"data"))

        assert store.delete(path) is True
        assert not path.exists()
        assert store.delete(path) is False
