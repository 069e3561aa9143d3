"""Filesystem storage backend for local use and testing."""

import asyncio
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..errors import BackendError, DeserializationError, NotFoundError
from ..storage_models import (
    BlobDescriptor,
    BlobSegment,
    ContainerDescriptor,
    ContainerSegment,
)
from .naming import page, safe_target, validate_blob_path, validate_container_name

logger = logging.getLogger(__name__)

# Temp files live here; dot-directories are never containers
STAGING_DIR = ".staging"


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


class FilesystemStorageBackend:
    """
    Local directory store (avoids Azurite dependency).

    Layout: base_dir/<container>/<blob path>, with in-flight writes staged
    under base_dir/.staging.
    Blocking file I/O runs in worker threads via asyncio.to_thread.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize filesystem store.

        Args:
            base_dir: Base directory for containers
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.staging_dir = self.base_dir / STAGING_DIR

    async def create_container_if_not_exists(self, container: str) -> bool:
        return await asyncio.to_thread(self._create_container, container)

    async def upload_text(
        self,
        container: str,
        path: str,
        content: str,
        content_type: Optional[str] = None,
    ) -> None:
        await asyncio.to_thread(self._write, container, path, content)

    async def download_text(self, container: str, path: str) -> str:
        return await asyncio.to_thread(self._read, container, path)

    async def list_containers_segment(
        self,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ContainerSegment:
        return await asyncio.to_thread(
            self._list_containers, continuation_token, max_results
        )

    async def list_blobs_segment(
        self,
        container: str,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> BlobSegment:
        return await asyncio.to_thread(
            self._list_blobs, container, continuation_token, max_results
        )

    async def delete_blob_if_exists(self, container: str, path: str) -> bool:
        return await asyncio.to_thread(self._delete, container, path)

    async def close(self) -> None:
        pass

    def _container_dir(self, container: str) -> Path:
        return self.base_dir / validate_container_name(container)

    def _create_container(self, container: str) -> bool:
        directory = self._container_dir(container)
        try:
            directory.mkdir()
        except FileExistsError:
            return False
        except OSError as e:
            raise BackendError(f"Failed to create container {container}: {e}", cause=e) from e
        return True

    def _write(self, container: str, path: str, content: str) -> None:
        target = safe_target(self.base_dir, container, path)
        if not self._container_dir(container).is_dir():
            raise BackendError(
                f"Container not found: {container}",
                status_code=404,
                error_code="ContainerNotFound",
            )

        # Stage outside every container, then rename into place
        try:
            self.staging_dir.mkdir(exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.staging_dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    f.write(content)
                self._replace(tmp, target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise BackendError(f"Failed to write {container}/{path}: {e}", cause=e) from e

    def _replace(self, tmp: str, target: Path) -> None:
        # A concurrent delete may prune target.parent between mkdir and rename
        for attempt in range(2):
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                os.replace(tmp, target)
                return
            except FileNotFoundError:
                if attempt or not Path(tmp).exists():
                    raise
                logger.debug("Parent of %s vanished, retrying", target)

    def _read(self, container: str, path: str) -> str:
        target = safe_target(self.base_dir, container, path)
        if not self._container_dir(container).is_dir():
            raise NotFoundError(
                f"Container not found: {container}",
                status_code=404,
                error_code="ContainerNotFound",
            )
        if not target.is_file():
            raise NotFoundError(
                f"Blob not found: {container}/{path}",
                status_code=404,
                error_code="BlobNotFound",
            )
        try:
            data = target.read_bytes()
        except OSError as e:
            raise BackendError(f"Failed to read {container}/{path}: {e}", cause=e) from e

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(container, path, f"not UTF-8 text ({e})") from e

    def _list_containers(
        self, continuation_token: Optional[str], max_results: Optional[int]
    ) -> ContainerSegment:
        names = [
            p.name for p in self.base_dir.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        ]
        selected, token = page(names, continuation_token, max_results)
        items = [
            ContainerDescriptor(name=name, last_modified=_mtime(self.base_dir / name))
            for name in selected
        ]
        return ContainerSegment(items=items, continuation_token=token)

    def _list_blobs(
        self,
        container: str,
        continuation_token: Optional[str],
        max_results: Optional[int],
    ) -> BlobSegment:
        directory = self._container_dir(container)
        if not directory.is_dir():
            raise NotFoundError(
                f"Container not found: {container}",
                status_code=404,
                error_code="ContainerNotFound",
            )

        files = {}
        for file in directory.rglob("*"):
            if file.is_file():
                files[file.relative_to(directory).as_posix()] = file

        selected, token = page(list(files), continuation_token, max_results)
        items: List[BlobDescriptor] = []
        for name in selected:
            stat = files[name].stat()
            items.append(BlobDescriptor(
                name=name,
                container=container,
                size=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                etag=f'"{stat.st_mtime_ns:x}-{stat.st_size:x}"',
            ))
        return BlobSegment(items=items, continuation_token=token)

    def _delete(self, container: str, path: str) -> bool:
        validate_blob_path(path)
        directory = self._container_dir(container)
        if not directory.is_dir():
            return False

        target = safe_target(self.base_dir, container, path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except IsADirectoryError:
            # A virtual directory prefix, not a blob
            return False
        except OSError as e:
            raise BackendError(f"Failed to delete {container}/{path}: {e}", cause=e) from e

        self._prune_empty_dirs(target.parent, directory.resolve())
        return True

    def _prune_empty_dirs(self, start: Path, stop: Path) -> None:
        current = start
        while current != stop and stop in current.parents:
            try:
                current.rmdir()
            except OSError:
                break
            logger.debug("Pruned empty directory %s", current)
            current = current.parent

