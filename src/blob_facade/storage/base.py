"""Base protocol for storage backend implementations."""

from typing import Optional, Protocol

from ..storage_models import BlobSegment, ContainerSegment


class StorageBackend(Protocol):
    """
    Protocol for storage backends used by BlobStore.

    Every method is a coroutine making a single attempt; there are no retries.
    Implementations raise only blob_facade.errors types, chaining the
    vendor exception when there is one.
    """

    async def create_container_if_not_exists(self, container: str) -> bool:
        """
        Create a container unless it already exists.

        Args:
            container: Container name

        Returns:
            True if the container was created, False if it already existed
        """
        ...

    async def upload_text(
        self,
        container: str,
        path: str,
        content: str,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Create or overwrite a blob from text.

        The container must already exist.

        Args:
            container: Container name
            path: Blob path within the container
            content: Text content, stored as UTF-8
            content_type: Optional MIME type recorded with the blob
        """
        ...

    async def download_text(self, container: str, path: str) -> str:
        """
        Read a blob as text.

        Raises:
            NotFoundError: If the container or blob does not exist
        """
        ...

    async def list_containers_segment(
        self,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ContainerSegment:
        """
        Return one segment of containers in the account.

        Args:
            continuation_token: Token from a previous segment, None for the first
            max_results: Page size hint, None for the service default
        """
        ...

    async def list_blobs_segment(
        self,
        container: str,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> BlobSegment:
        """
        Return one segment of blobs in a container.

        Raises:
            NotFoundError: If the container does not exist
        """
        ...

    async def delete_blob_if_exists(self, container: str, path: str) -> bool:
        """
        Delete a blob if present.

        Returns:
            True if a blob was deleted, False if there was nothing to delete
        """
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        ...
