"""Factory for creating storage backend instances."""

from ..config import StorageConfig
from ..errors import ConfigError
from .azure import AzureStorageBackend
from .base import StorageBackend
from .fs import FilesystemStorageBackend
from .memory import InMemoryStorageBackend


def validate_fs_config(config: StorageConfig) -> None:
    """
    Early validation of filesystem configuration.

    Raises:
        ConfigError: If no root directory is configured
    """
    if config.root is None:
        raise ConfigError(
            "root (directory path) required for filesystem storage. "
            "Pass root= or set BLOB_FACADE_ROOT"
        )


def make_backend(config: StorageConfig) -> StorageBackend:
    """
    Create a storage backend for the configured provider.

    Azure credentials are not checked here; the Azure backend reports
    missing credentials on first use.

    Args:
        config: Resolved storage configuration

    Returns:
        StorageBackend instance

    Raises:
        ConfigError: If the configuration is invalid or the provider unknown
    """
    if config.provider == "azure":
        return AzureStorageBackend(config)

    elif config.provider == "fs":
        validate_fs_config(config)
        return FilesystemStorageBackend(config.root)

    elif config.provider == "memory":
        return InMemoryStorageBackend()

    else:
        raise ConfigError(f"Provider {config.provider} not supported")
