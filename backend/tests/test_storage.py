"""
Tests for the public uploads storage service.
"""

import re

import pytest
from aiofiles.threadpool.binary import AsyncBufferedIOBase

import services.storage as storage_module
from services.storage import MAX_BASENAME_LENGTH, MAX_NAME_ATTEMPTS, UploadStorage
from utils.error_handlers import StorageWriteFailed

NAME_PATTERN = re.compile(r"^\d+_[A-Za-z0-9.\-_]*\.webp$")


@pytest.fixture
def storage(tmp_path):
    return UploadStorage(tmp_path / "public")


@pytest.fixture
def frozen_clock(monkeypatch):
    """Pin the storage clock to a fixed epoch-millis value."""
    monkeypatch.setattr(storage_module, "current_millis", lambda: 1700000000000)
    return 1700000000000


class TestGenerateFilename:

    def test_format(self, storage):
        assert storage.generate_filename("My Logo!!.png", 1700000000000) == "1700000000000_My_Logo__.webp"

    def test_path_components_cannot_escape(self, storage):
        name = storage.generate_filename("../../etc/passwd", 1)
        assert "/" not in name
        assert NAME_PATTERN.match(name)

    def test_empty_name(self, storage):
        assert storage.generate_filename("", 42) == "42_.webp"

    def test_long_name_is_truncated(self, storage):
        name = storage.generate_filename("a" * 500 + ".jpg", 7)
        assert name == f"7_{'a' * MAX_BASENAME_LENGTH}.webp"

    def test_uses_current_time(self, storage, frozen_clock):
        assert storage.generate_filename("x.png").startswith(f"{frozen_clock}_")

    def test_public_url(self, storage):
        assert storage.public_url("1_a.webp") == "/uploads/1_a.webp"

    def test_custom_uploads_root(self, tmp_path):
        storage = UploadStorage(tmp_path, uploads_root="/media/")
        assert storage.upload_dir == tmp_path / "media"
        assert storage.public_url("1_a.webp") == "/media/1_a.webp"


class TestSave:

    async def test_creates_directory_and_writes(self, storage, list_files):
        filename, path = await storage.save(b"webp-bytes", "cat.jpg")

        assert NAME_PATTERN.match(filename)
        assert filename.endswith("_cat.webp")
        assert path == storage.upload_dir / filename
        assert path.read_bytes() == b"webp-bytes"
        assert list_files(storage.upload_dir) == [filename]

    async def test_same_millisecond_does_not_overwrite(self, storage, frozen_clock, list_files):
        first, _ = await storage.save(b"first", "a.png")
        second, _ = await storage.save(b"second", "a.png")

        assert first == f"{frozen_clock}_a.webp"
        assert second == f"{frozen_clock + 1}_a.webp"
        assert (storage.upload_dir / first).read_bytes() == b"first"
        assert (storage.upload_dir / second).read_bytes() == b"second"
        assert len(list_files(storage.upload_dir)) == 2

    async def test_gives_up_after_max_attempts(self, storage, frozen_clock, list_files):
        storage.upload_dir.mkdir(parents=True)
        for offset in range(MAX_NAME_ATTEMPTS):
            (storage.upload_dir / f"{frozen_clock + offset}_a.webp").write_bytes(b"old")

        with pytest.raises(StorageWriteFailed) as exc_info:
            await storage.save(b"new", "a.png")

        assert exc_info.value.status_code == 507
        assert len(list_files(storage.upload_dir)) == MAX_NAME_ATTEMPTS
        assert all(
            (storage.upload_dir / name).read_bytes() == b"old"
            for name in list_files(storage.upload_dir)
        )

    async def test_unwritable_directory(self, tmp_path):
        # A regular file where the public directory should be
        blocker = tmp_path / "public"
        blocker.write_text("not a directory")
        storage = UploadStorage(blocker)

        with pytest.raises(StorageWriteFailed) as exc_info:
            await storage.save(b"data", "a.png")

        assert exc_info.value.code == "STORAGE_WRITE_FAILED"

    async def test_failed_write_leaves_no_file(self, storage, monkeypatch, list_files):
        async def failing_write(self, data):
            # Part of the payload reaches disk before the device fills up
            self._file.write(data[: len(data) // 2])
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(AsyncBufferedIOBase, "write", failing_write)

        with pytest.raises(StorageWriteFailed) as exc_info:
            await storage.save(b"webp-bytes", "a.png")

        assert "No space left" in exc_info.value.message
        assert list_files(storage.upload_dir) == []

    async def test_unexpected_write_error_leaves_no_file(self, storage, monkeypatch, list_files):
        async def broken_write(self, data):
            self._file.write(data[:3])
            raise RuntimeError("worker died")

        monkeypatch.setattr(AsyncBufferedIOBase, "write", broken_write)

        with pytest.raises(RuntimeError):
            await storage.save(b"webp-bytes", "a.png")

        assert list_files(storage.upload_dir) == []

    async def test_saved_file_is_complete(self, storage):
        content = bytes(range(256)) * 1024

        _, path = await storage.save(content, "big.png")

        assert path.read_bytes() == content


class TestWritable:

    async def test_writable(self, storage):
        assert await storage.is_writable() is True
        assert storage.upload_dir.is_dir()

    async def test_not_writable(self, tmp_path):
        blocker = tmp_path / "public"
        blocker.write_text("")
        assert await UploadStorage(blocker).is_writable() is False
