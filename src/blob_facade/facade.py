"""Asynchronous text/JSON facade over a storage backend.

BlobStore normalizes every backend primitive into a coroutine with a single
outcome: a value, or one of the exceptions in blob_facade.errors. It keeps no
state between calls apart from the backend handle, so any number of
operations may be in flight concurrently.

Example:
    async with BlobStore() as store:
        await store.post_json("reports", "2024/summary.json", {"ok": True})
        summary = await store.get_json("reports", "2024/summary.json")
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .config import StorageConfig, resolve_config
from .errors import (
    BlobFacadeError,
    DeserializationError,
    NotFoundError,
    SerializationError,
)
from .storage.base import StorageBackend
from .storage.factory import make_backend
from .storage_models import BlobSegment, ContainerSegment

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"{name} is not valid JSON")


@contextmanager
def _logged(operation: str, target: str) -> Iterator[None]:
    logger.debug("%s %s", operation, target)
    try:
        yield
    except NotFoundError as e:
        logger.debug("%s %s: not found (%s)", operation, target, e.error_code)
        raise
    except BlobFacadeError as e:
        logger.warning("%s %s failed: %s", operation, target, e)
        raise


class BlobStore:
    """
    Uniform async API for text and JSON blobs.

    Writes always ensure the container exists first. Reads and listings
    report missing containers/blobs as NotFoundError. Deletes are idempotent.
    Exactly one attempt is made per backend call.
    """

    def __init__(
        self,
        account_name: Optional[str] = None,
        account_key: Optional[str] = None,
        *,
        backend: Optional[StorageBackend] = None,
        config: Optional[StorageConfig] = None,
    ):
        """
        Initialize the facade.

        Credentials are resolved once, here. Missing credentials are not an
        error until the first operation needs them.

        Args:
            account_name: Storage account name (default: environment)
            account_key: Storage account key (default: environment)
            backend: Pre-built backend; skips configuration entirely
            config: Pre-resolved configuration, used instead of
                account_name/account_key and the environment
        """
        if backend is None:
            if config is None:
                config = resolve_config(account_name, account_key)
            backend = make_backend(config)
        self.config = config
        self.backend = backend

    async def __aenter__(self) -> "BlobStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying backend."""
        await self.backend.close()

    async def post_text(self, container: str, path: str, content: str) -> None:
        """
        Upload text, creating the container if needed.

        Overwrites any existing blob at path.

        Raises:
            BackendError: If container creation or the write fails
        """
        await self._write(container, path, content, TEXT_CONTENT_TYPE)

    async def post_json(self, container: str, path: str, obj: Any) -> None:
        """
        Serialize obj to JSON and upload it.

        Raises:
            SerializationError: If obj cannot be represented as JSON
                (unsupported types, circular references, NaN/Infinity,
                nesting too deep)
            BackendError: If container creation or the write fails
        """
        try:
            content = json.dumps(obj, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Cannot serialize object for %s/%s: %s", container, path, e)
            raise SerializationError(
                f"Object for '{container}/{path}' is not JSON serializable: {e}"
            ) from e
        await self._write(container, path, content, JSON_CONTENT_TYPE)

    async def get_text(self, container: str, path: str) -> str:
        """
        Download a blob as text.

        Raises:
            NotFoundError: If the container or blob does not exist
            BackendError: For any other backend failure
        """
        with _logged("get", f"{container}/{path}"):
            return await self.backend.download_text(container, path)

    async def get_json(self, container: str, path: str) -> Any:
        """
        Download a blob and parse it as JSON.

        Raises:
            DeserializationError: If the content is not valid JSON
            NotFoundError, BackendError: As for get_text
        """
        text = await self.get_text(container, path)
        try:
            return json.loads(text, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as e:
            logger.warning("Content of %s/%s is not valid JSON: %s", container, path, e)
            raise DeserializationError(container, path, f"invalid JSON ({e})") from e

    async def list_containers(
        self,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ContainerSegment:
        """
        Return one segment of containers.

        Continuation is never followed here. To enumerate everything, pass
        the returned segment's continuation_token back in until it is None.

        Args:
            continuation_token: Token from a previous segment
            max_results: Page size hint

        Raises:
            BackendError: On service failure
        """
        with _logged("list", "containers"):
            return await self.backend.list_containers_segment(
                continuation_token=continuation_token,
                max_results=max_results,
            )

    async def list_blobs(
        self,
        container: str,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> BlobSegment:
        """
        Return one segment of blobs in a container.

        Raises:
            NotFoundError: If the container does not exist
            BackendError: On any other service failure
        """
        with _logged("list", f"{container}/"):
            return await self.backend.list_blobs_segment(
                container,
                continuation_token=continuation_token,
                max_results=max_results,
            )

    async def delete_blob(self, container: str, path: str) -> bool:
        """
        Delete a blob if it exists.

        Returns:
            True if a blob was deleted, False if there was nothing to delete

        Raises:
            BackendError: For failures other than absence
        """
        with _logged("delete", f"{container}/{path}"):
            deleted = await self.backend.delete_blob_if_exists(container, path)
        if not deleted:
            logger.debug("Nothing to delete at %s/%s", container, path)
        return deleted

    async def _write(self, container: str, path: str, content: str, content_type: str) -> None:
        with _logged("put", f"{container}/{path}"):
            if await self.backend.create_container_if_not_exists(container):
                logger.info("Created container %s", container)
            await self.backend.upload_text(container, path, content, content_type)
