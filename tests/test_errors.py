"""Test the error taxonomy."""

import logging

import pytest

from blob_facade import (
    BackendError,
    BlobFacadeError,
    ConfigError,
    CredentialsError,
    DeserializationError,
    NotFoundError,
    SerializationError,
)
from blob_facade.utils import format_timestamp, humanize_size


class TestHierarchy:
    """Catchability of error kinds."""

    @pytest.mark.parametrize("cls", [
        BackendError, NotFoundError, SerializationError, ConfigError, CredentialsError,
    ])
    def test_all_are_facade_errors(self, cls):
        assert issubclass(cls, BlobFacadeError)
        assert issubclass(cls, RuntimeError)

    def test_not_found_is_backend_error(self):
        assert issubclass(NotFoundError, BackendError)

    def test_format_errors_are_not_backend_errors(self):
        assert not issubclass(SerializationError, BackendError)
        assert not issubclass(DeserializationError, BackendError)

    def test_credentials_is_config_error(self):
        assert issubclass(CredentialsError, ConfigError)


class TestAttributes:
    """Information carried by errors."""

    def test_backend_error_details(self):
        cause = OSError("disk full")
        err = BackendError("write failed", cause=cause, status_code=507, error_code="InsufficientStorage")

        assert str(err) == "write failed"
        assert err.cause is cause
        assert err.status_code == 507
        assert err.error_code == "InsufficientStorage"

    def test_backend_error_defaults(self):
        err = NotFoundError("gone")
        assert err.cause is None
        assert err.status_code is None
        assert err.error_code is None

    def test_deserialization_error(self):
        err = DeserializationError("data", "a.json", "invalid JSON")
        assert err.container == "data"
        assert err.path == "a.json"
        assert str(err) == "Content of 'data/a.json' could not be decoded: invalid JSON"

    def test_credentials_error_names_variables(self):
        message = str(CredentialsError())
        assert "AZURE_STORAGE_ACCOUNT" in message
        assert "AZURE_STORAGE_KEY" in message


class TestDisplayHelpers:
    """CLI formatting helpers."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0.0 B"),
        (512, "512.0 B"),
        (2048, "2.0 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
        (3 * 1024 ** 4, "3.0 TB"),
    ])
    def test_humanize_size(self, size, expected):
        assert humanize_size(size) == expected

    def test_format_timestamp(self):
        from datetime import datetime, timezone
        dt = datetime(2025, 8, 26, 2, 51, 17, 317839, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2025-08-26 02:51:17"

    def test_format_missing_timestamp(self):
        assert format_timestamp(None) == "-"


class TestLogging:
    """Library logging defaults."""

    def test_package_logger_has_null_handler(self):
        """Test that warnings are not printed unless the application configures logging."""
        handlers = logging.getLogger("blob_facade").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)
