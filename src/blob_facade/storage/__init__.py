"""Storage backends for the blob facade."""

from .azure import AzureStorageBackend
from .base import StorageBackend
from .factory import make_backend
from .fs import FilesystemStorageBackend
from .memory import InMemoryStorageBackend

__all__ = [
    "AzureStorageBackend",
    "FilesystemStorageBackend",
    "InMemoryStorageBackend",
    "StorageBackend",
    "make_backend",
]
