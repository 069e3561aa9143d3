"""blob-facade: async text/JSON facade over blob storage backends."""

import logging

from .config import Credentials, StorageConfig, load_profile, resolve_config
from .errors import (
    BackendError,
    BlobFacadeError,
    ConfigError,
    CredentialsError,
    DeserializationError,
    NotFoundError,
    SerializationError,
)
from .facade import BlobStore
from .storage import (
    AzureStorageBackend,
    FilesystemStorageBackend,
    InMemoryStorageBackend,
    StorageBackend,
    make_backend,
)
from .storage_models import (
    BlobDescriptor,
    BlobSegment,
    ContainerDescriptor,
    ContainerSegment,
    ListSegment,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AzureStorageBackend",
    "BackendError",
    "BlobDescriptor",
    "BlobFacadeError",
    "BlobSegment",
    "BlobStore",
    "ConfigError",
    "ContainerDescriptor",
    "ContainerSegment",
    "Credentials",
    "CredentialsError",
    "DeserializationError",
    "FilesystemStorageBackend",
    "InMemoryStorageBackend",
    "ListSegment",
    "NotFoundError",
    "SerializationError",
    "StorageBackend",
    "StorageConfig",
    "load_profile",
    "make_backend",
    "resolve_config",
]
