"""Custom exceptions for blob-facade.

Every failure surfaced by a BlobStore operation is one of these types.
Vendor SDK exceptions are never swallowed: they are tagged with a kind and
chained, so the original error stays available as ``__cause__`` (and as
``.cause`` on backend errors).
"""

from typing import Optional


class BlobFacadeError(RuntimeError):
    """Base class for all blob-facade errors."""
    pass


# Backend Errors
class BackendError(BlobFacadeError):
    """The storage backend reported a failure."""

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        self.cause = cause
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class NotFoundError(BackendError):
    """Container or blob does not exist (404) on a read or list path."""
    pass


# Format Errors
class SerializationError(BlobFacadeError):
    """Object could not be converted to JSON text."""
    pass


class DeserializationError(BlobFacadeError):
    """Stored content is not valid in the expected format."""

    def __init__(self, container: str, path: str, reason: str):
        self.container = container
        self.path = path
        self.reason = reason
        super().__init__(
            f"Content of '{container}/{path}' could not be decoded: {reason}"
        )


# Configuration Errors
class ConfigError(BlobFacadeError):
    """Invalid or incomplete storage configuration."""
    pass


class CredentialsError(ConfigError):
    """No usable storage account credentials were supplied."""

    def __init__(self, provider: str = "azure"):
        self.provider = provider
        super().__init__(
            f"No credentials configured for provider '{provider}'. "
            f"Pass account_name/account_key, or set AZURE_STORAGE_ACCOUNT and "
            f"AZURE_STORAGE_KEY (or AZURE_STORAGE_CONNECTION_STRING)."
        )
