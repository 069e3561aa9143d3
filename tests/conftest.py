"""Shared test fixtures and utilities."""

import pytest

from blob_facade import BlobStore, FilesystemStorageBackend, InMemoryStorageBackend
from blob_facade.config import ENV_VARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real storage settings from the developer's shell out of tests."""
    for names in ENV_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_backend():
    """Fresh in-memory backend."""
    return InMemoryStorageBackend()


@pytest.fixture
def store(memory_backend):
    """BlobStore over an in-memory backend."""
    return BlobStore(backend=memory_backend)


@pytest.fixture
def fs_root(tmp_path):
    """Root directory for filesystem-backed stores."""
    return tmp_path / "blobs"


@pytest.fixture(params=["memory", "fs"])
def any_store(request, fs_root):
    """BlobStore over each local backend, for behavior both must share."""
    if request.param == "fs":
        return BlobStore(backend=FilesystemStorageBackend(fs_root))
    return BlobStore(backend=InMemoryStorageBackend())


class RecordingBackend(InMemoryStorageBackend):
    """In-memory backend that records the primitive calls made on it."""

    def __init__(self):
        super().__init__()
        self.calls = []

    async def create_container_if_not_exists(self, container):
        self.calls.append(("create_container", container))
        return await super().create_container_if_not_exists(container)

    async def upload_text(self, container, path, content, content_type=None):
        self.calls.append(("upload", container, path))
        await super().upload_text(container, path, content, content_type)

    async def download_text(self, container, path):
        self.calls.append(("download", container, path))
        return await super().download_text(container, path)


@pytest.fixture
def recording_backend():
    return RecordingBackend()
