"""Azure blob storage implementation."""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from ..config import StorageConfig
from ..errors import (
    BackendError,
    ConfigError,
    CredentialsError,
    DeserializationError,
    NotFoundError,
)
from ..storage_models import (
    BlobDescriptor,
    BlobSegment,
    ContainerDescriptor,
    ContainerSegment,
)

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_URL = "https://{account}.blob.core.windows.net"


def translate_error(err: AzureError, message: str, not_found: bool = False) -> BackendError:
    """
    Tag an Azure SDK exception with an error kind.

    Args:
        err: Exception raised by the SDK
        message: Context describing the failed operation
        not_found: Whether a 404 on this path means NotFoundError
            (read/list paths) rather than a plain BackendError (write paths)

    Returns:
        BackendError or NotFoundError carrying the original exception
    """
    status_code = getattr(err, "status_code", None)
    error_code = getattr(err, "error_code", None)
    kind = NotFoundError if not_found and isinstance(err, ResourceNotFoundError) else BackendError
    return kind(
        f"{message}: {err.message}",
        cause=err,
        status_code=status_code,
        error_code=str(error_code) if error_code is not None else None,
    )


@contextmanager
def _translated(message: str, not_found: bool = False) -> Iterator[None]:
    try:
        yield
    except AzureError as e:
        logger.debug("%s: %s", message, e)
        raise translate_error(e, message, not_found) from e


class AzureStorageBackend:
    """
    Azure Blob Storage implementation on the asyncio SDK client.

    The service client is created on first use, so missing credentials are
    reported by the first operation rather than at construction. One client
    is shared by all in-flight operations; the SDK client is safe for
    concurrent use.
    """

    def __init__(self, config: StorageConfig):
        """
        Initialize Azure backend.

        Args:
            config: Resolved storage configuration (account name + key,
                or connection string; optional account_url override)
        """
        self.config = config
        self._client: Optional[BlobServiceClient] = None

    @property
    def client(self) -> BlobServiceClient:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> BlobServiceClient:
        """
        Build the service client.

        Raises:
            CredentialsError: If neither a connection string nor
                account name + key are configured
            ConfigError: If the connection string is malformed
        """
        cfg = self.config
        # Exactly one attempt per call
        options = {"retry_total": 0}

        if cfg.connection_string is not None and cfg.connection_string.get_secret_value():
            logger.debug("Creating BlobServiceClient from connection string")
            try:
                return BlobServiceClient.from_connection_string(
                    cfg.connection_string.get_secret_value(), **options
                )
            except ValueError as e:
                raise ConfigError(f"Invalid Azure storage connection string: {e}") from e

        creds = cfg.credentials
        if creds is None:
            raise CredentialsError("azure")

        account_url = cfg.account_url or DEFAULT_ACCOUNT_URL.format(account=creds.account_name)
        logger.debug("Creating BlobServiceClient for %s", account_url)
        try:
            return BlobServiceClient(
                account_url,
                credential={
                    "account_name": creds.account_name,
                    "account_key": creds.account_key.get_secret_value(),
                },
                **options,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid Azure storage account URL {account_url}: {e}") from e

    async def create_container_if_not_exists(self, container: str) -> bool:
        container_client = self.client.get_container_client(container)
        with _translated(f"Failed to create container {container}"):
            try:
                await container_client.create_container()
            except ResourceExistsError as e:
                # ContainerBeingDeleted is also a 409; only pre-existence is a no-op
                if getattr(e, "error_code", None) not in (None, "ContainerAlreadyExists"):
                    raise
                return False
        logger.debug("Created container %s", container)
        return True

    async def upload_text(
        self,
        container: str,
        path: str,
        content: str,
        content_type: Optional[str] = None,
    ) -> None:
        blob_client = self.client.get_blob_client(container=container, blob=path)
        settings = ContentSettings(content_type=content_type) if content_type else None
        with _translated(f"Failed to upload {container}/{path}"):
            await blob_client.upload_blob(
                content,
                overwrite=True,
                encoding="utf-8",
                content_settings=settings,
            )

    async def download_text(self, container: str, path: str) -> str:
        blob_client = self.client.get_blob_client(container=container, blob=path)
        with _translated(f"Failed to download {container}/{path}", not_found=True):
            try:
                downloader = await blob_client.download_blob(encoding="UTF-8")
                return await downloader.readall()
            except UnicodeDecodeError as e:
                raise DeserializationError(container, path, f"not UTF-8 text ({e})") from e

    async def list_containers_segment(
        self,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> ContainerSegment:
        pages = self.client.list_containers(
            include_metadata=True,
            results_per_page=max_results,
        ).by_page(continuation_token=continuation_token)

        items: List[ContainerDescriptor] = []
        with _translated("Failed to list containers"):
            async for page in pages:
                async for props in page:
                    items.append(ContainerDescriptor(
                        name=props.name,
                        last_modified=props.last_modified,
                        etag=props.etag,
                        metadata=props.metadata or {},
                    ))
                break  # First segment only

        return ContainerSegment(items=items, continuation_token=pages.continuation_token or None)

    async def list_blobs_segment(
        self,
        container: str,
        continuation_token: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> BlobSegment:
        container_client = self.client.get_container_client(container)
        pages = container_client.list_blobs(
            results_per_page=max_results,
        ).by_page(continuation_token=continuation_token)

        items: List[BlobDescriptor] = []
        with _translated(f"Failed to list blobs in {container}", not_found=True):
            async for page in pages:
                async for props in page:
                    settings = props.content_settings
                    items.append(BlobDescriptor(
                        name=props.name,
                        container=container,
                        size=props.size or 0,
                        last_modified=props.last_modified,
                        etag=props.etag,
                        content_type=settings.content_type if settings else None,
                    ))
                break  # First segment only

        return BlobSegment(items=items, continuation_token=pages.continuation_token or None)

    async def delete_blob_if_exists(self, container: str, path: str) -> bool:
        blob_client = self.client.get_blob_client(container=container, blob=path)
        with _translated(f"Failed to delete {container}/{path}"):
            try:
                await blob_client.delete_blob()
            except ResourceNotFoundError:
                # BlobNotFound or ContainerNotFound: nothing to delete
                return False
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
