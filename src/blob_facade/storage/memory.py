"""In-memory storage backend for unit tests."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from ..errors import BackendError, NotFoundError
from ..storage_models import (
    BlobDescriptor,
    BlobSegment,
    ContainerDescriptor,
    ContainerSegment,
)
from .naming import page, validate_blob_path, validate_container_name


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Blob:
    content: str
    content_type: Optional[str]
    last_modified: datetime = field(default_factory=_now)

    @property
    def etag(self) -> str:
        return '"' + hashlib.md5(self.content.encode("utf-8"), usedforsecurity=False).hexdigest() + '"'


@dataclass
class _Container:
    blobs: Dict[str, _Blob] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=_now)


class InMemoryStorageBackend:
    """
    Dictionary-backed store (avoids Azurite dependency in tests).

    Each mutation completes without awaiting, so concurrent coroutines never
    observe a half-written blob.
    """

    def __init__(self):
        self._containers: Dict[str, _Container] = {}
        self.closed = False

    async def create_container_if_not_exists(self, container: str) -> bool:
        validate_container_name(container)
        if container in self._containers:
            return False
        self._containers[container] = _Container()
        return True

    async def upload_text(
        self,
        container: str,
        path: str,
        content: str,
        content_type: Optional[str] = None,
    ) -> None:
        validate_blob_path(path)
        entry = self._containers.get(validate_container_name(container))
        if entry is None:
            # Write paths report a missing container as a plain backend failure
            raise BackendError(
                f"Container not found: {container}",
                status_code=404,
                error_code="ContainerNotFound",
            )
        entry.blobs[path] = _Blob(content, content_type)

    async def download_text(self, container: str, path: str) -> str:
        validate_blob_path(path)
        blob = self._container(container).blobs.get(path)
        if blob is None:
            raise NotFoundError(
                f"Blob not found: {container}/{path}",
                status_code=404,
                error_code="BlobNotFound",
            )
        return blob.content

    async def list_containers_segment(
        self,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ContainerSegment:
        names, token = page(list(self._containers), continuation_token, max_results)
        items = [
            ContainerDescriptor(
                name=name,
                last_modified=self._containers[name].last_modified,
            )
            for name in names
        ]
        return ContainerSegment(items=items, continuation_token=token)

    async def list_blobs_segment(
        self,
        container: str,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> BlobSegment:
        blobs = self._container(container).blobs
        names, token = page(list(blobs), continuation_token, max_results)
        items = [
            BlobDescriptor(
                name=name,
                container=container,
                size=len(blobs[name].content.encode("utf-8")),
                last_modified=blobs[name].last_modified,
                etag=blobs[name].etag,
                content_type=blobs[name].content_type,
            )
            for name in names
        ]
        return BlobSegment(items=items, continuation_token=token)

    async def delete_blob_if_exists(self, container: str, path: str) -> bool:
        validate_blob_path(path)
        entry = self._containers.get(validate_container_name(container))
        if entry is None:
            return False
        return entry.blobs.pop(path, None) is not None

    async def close(self) -> None:
        self.closed = True

    def _container(self, container: str) -> _Container:
        entry = self._containers.get(validate_container_name(container))
        if entry is None:
            raise NotFoundError(
                f"Container not found: {container}",
                status_code=404,
                error_code="ContainerNotFound",
            )
        return entry
