"""Test filesystem backend specifics."""

import asyncio
import os

import pytest

from blob_facade import (
    BlobStore,
    DeserializationError,
    FilesystemStorageBackend,
    NotFoundError,
)
from blob_facade.storage import fs as fs_module
from blob_facade.storage.fs import STAGING_DIR


@pytest.fixture
def backend(fs_root):
    return FilesystemStorageBackend(fs_root)


class TestLayout:
    """On-disk layout."""

    @pytest.mark.asyncio
    async def test_blob_written_under_container(self, backend, fs_root):
        """Test that blobs map to root/container/path."""
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "a/b.txt", "hello")

        assert (fs_root / "docs" / "a" / "b.txt").read_text() == "hello"

    @pytest.mark.asyncio
    async def test_create_container_idempotent(self, backend, fs_root):
        assert await backend.create_container_if_not_exists("docs") is True
        assert await backend.create_container_if_not_exists("docs") is False
        assert (fs_root / "docs").is_dir()

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, backend, fs_root):
        """Test that the atomic write leaves only the final file."""
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "a.txt", "one")
        await backend.upload_text("docs", "a.txt", "two")

        assert sorted(p.name for p in (fs_root / "docs").iterdir()) == ["a.txt"]
        assert list((fs_root / STAGING_DIR).iterdir()) == []

    @pytest.mark.asyncio
    async def test_staging_dir_is_not_a_container(self, backend):
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "a.txt", "x")

        segment = await backend.list_containers_segment()
        assert [c.name for c in segment.items] == ["docs"]

    @pytest.mark.asyncio
    async def test_delete_prunes_empty_directories(self, backend, fs_root):
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "deep/nested/file.txt", "x")

        assert await backend.delete_blob_if_exists("docs", "deep/nested/file.txt") is True

        assert not (fs_root / "docs" / "deep").exists()
        assert (fs_root / "docs").is_dir()

    @pytest.mark.asyncio
    async def test_delete_directory_prefix_is_not_a_blob(self, backend):
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "dir/file.txt", "x")

        assert await backend.delete_blob_if_exists("docs", "dir") is False


class TestReads:
    """Reading from disk."""

    @pytest.mark.asyncio
    async def test_directory_is_not_a_blob(self, backend):
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "dir/file.txt", "x")

        with pytest.raises(NotFoundError):
            await backend.download_text("docs", "dir")

    @pytest.mark.asyncio
    async def test_non_utf8_content(self, backend, fs_root):
        """Test that binary content cannot be read as text."""
        await backend.create_container_if_not_exists("docs")
        (fs_root / "docs" / "image.bin").write_bytes(b"\xff\xfe\x00binary")

        with pytest.raises(DeserializationError, match="not UTF-8"):
            await backend.download_text("docs", "image.bin")

    @pytest.mark.asyncio
    async def test_files_added_outside_are_visible(self, backend, fs_root):
        """Test that the directory is the source of truth, not a cache."""
        (fs_root / "docs").mkdir()
        (fs_root / "docs" / "external.txt").write_text("dropped in")

        segment = await backend.list_blobs_segment("docs")
        assert [b.name for b in segment.items] == ["external.txt"]
        assert await backend.download_text("docs", "external.txt") == "dropped in"

    @pytest.mark.asyncio
    async def test_dot_prefixed_blobs_listed(self, backend):
        """Test that names resembling temp files are ordinary blobs."""
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", ".tmp-notes.txt", "hello")
        await backend.upload_text("docs", "dir/.hidden", "x")

        segment = await backend.list_blobs_segment("docs")
        assert [b.name for b in segment.items] == [".tmp-notes.txt", "dir/.hidden"]
        assert await backend.download_text("docs", ".tmp-notes.txt") == "hello"

    @pytest.mark.asyncio
    async def test_write_survives_parent_pruned_mid_write(self, backend, fs_root, monkeypatch):
        """Test that a write retries when a concurrent delete removes its directory."""
        await backend.create_container_if_not_exists("docs")
        parent = fs_root / "docs" / "a"
        real_replace = os.replace
        calls = []

        def replace_after_prune(src, dst):
            calls.append(dst)
            if len(calls) == 1:
                parent.rmdir()
            return real_replace(src, dst)

        monkeypatch.setattr(fs_module.os, "replace", replace_after_prune)
        await backend.upload_text("docs", "a/y.txt", "survived")

        assert len(calls) == 2
        assert (parent / "y.txt").read_text() == "survived"

    @pytest.mark.asyncio
    async def test_concurrent_write_and_delete_in_same_directory(self, backend):
        await backend.create_container_if_not_exists("docs")
        await backend.upload_text("docs", "a/x.txt", "x")

        await asyncio.gather(
            backend.delete_blob_if_exists("docs", "a/x.txt"),
            backend.upload_text("docs", "a/y.txt", "y"),
        )

        assert await backend.download_text("docs", "a/y.txt") == "y"


class TestPersistence:
    """State lives on disk."""

    @pytest.mark.asyncio
    async def test_visible_to_new_store(self, fs_root):
        """Test that a second store over the same root sees earlier writes."""
        async with BlobStore(backend=FilesystemStorageBackend(fs_root)) as first:
            await first.post_json("data", "state.json", {"n": 1})

        async with BlobStore(backend=FilesystemStorageBackend(fs_root)) as second:
            assert await second.get_json("data", "state.json") == {"n": 1}

    @pytest.mark.asyncio
    async def test_hidden_directories_not_containers(self, backend, fs_root):
        (fs_root / ".cache").mkdir()
        await backend.create_container_if_not_exists("docs")

        segment = await backend.list_containers_segment()
        assert [c.name for c in segment.items] == ["docs"]
