"""Storage configuration and credential resolution.

Credentials are resolved once, when a BlobStore is constructed: explicit
arguments win, then process environment variables, then (for the CLI) an
optional YAML profile. The resulting StorageConfig is frozen and is never
re-read from the environment afterwards.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, SecretStr, ValidationError

from .errors import ConfigError

PROVIDERS = ("azure", "fs", "memory")
DEFAULT_PROVIDER = "azure"

# Field -> environment variables, first one set wins
ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "provider": ("BLOB_FACADE_PROVIDER",),
    "account_name": ("AZURE_STORAGE_ACCOUNT", "AZURE_ACCT"),
    "account_key": ("AZURE_STORAGE_KEY", "AZURE_KEY"),
    "account_url": ("AZURE_STORAGE_ACCOUNT_URL",),
    "connection_string": ("AZURE_STORAGE_CONNECTION_STRING",),
    "root": ("BLOB_FACADE_ROOT",),
}


class Credentials(BaseModel, frozen=True):
    """Storage account identifier and secret key."""

    account_name: str
    account_key: SecretStr


class StorageConfig(BaseModel, frozen=True):
    """Resolved storage configuration."""

    provider: str = DEFAULT_PROVIDER
    account_name: str | None = None
    account_key: SecretStr | None = None
    account_url: str | None = None
    connection_string: SecretStr | None = None
    root: Path | None = None

    @property
    def credentials(self) -> Optional[Credentials]:
        """Account name + key, or None if either is missing."""
        if self.account_name and self.account_key is not None:
            if self.account_key.get_secret_value():
                return Credentials(
                    account_name=self.account_name,
                    account_key=self.account_key,
                )
        return None

    @property
    def has_credentials(self) -> bool:
        return self.credentials is not None or bool(
            self.connection_string and self.connection_string.get_secret_value()
        )


def _from_environ(environ: Mapping[str, str]) -> Dict[str, str]:
    values = {}
    for field, names in ENV_VARS.items():
        for name in names:
            value = environ.get(name)
            if value:
                values[field] = value
                break
    return values


def load_profile(path: Path) -> Dict[str, Any]:
    """Load configuration values from a YAML profile.

    Args:
        path: YAML file containing a mapping of StorageConfig field names

    Returns:
        Dict of the values present in the profile

    Raises:
        ConfigError: If the file is missing, unparseable or has unknown keys
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config profile not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config profile {path} must contain a mapping")

    unknown = sorted(set(data) - set(ENV_VARS))
    if unknown:
        raise ConfigError(
            f"Unknown keys in {path}: {', '.join(unknown)}. "
            f"Expected any of: {', '.join(ENV_VARS)}"
        )
    return {k: v for k, v in data.items() if v is not None}


def resolve_config(
    account_name: Optional[str] = None,
    account_key: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    profile: Optional[Path] = None,
    **overrides: Any,
) -> StorageConfig:
    """Resolve a StorageConfig from arguments, environment and profile.

    Args:
        account_name: Storage account name (overrides environment)
        account_key: Storage account key (overrides environment)
        environ: Environment mapping to read (default: os.environ)
        profile: Optional YAML profile, consulted after the environment
        **overrides: Any other StorageConfig field, e.g. provider or root

    Returns:
        Frozen StorageConfig

    Raises:
        ConfigError: If the provider is unknown or a value is invalid
    """
    unknown = sorted(set(overrides) - set(ENV_VARS))
    if unknown:
        raise ConfigError(f"Unknown configuration options: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    if profile is not None:
        values.update(load_profile(profile))
    values.update(_from_environ(os.environ if environ is None else environ))

    explicit = dict(overrides, account_name=account_name, account_key=account_key)
    values.update({k: v for k, v in explicit.items() if v is not None})

    provider = values.get("provider", DEFAULT_PROVIDER)
    if provider not in PROVIDERS:
        raise ConfigError(
            f"Unknown storage provider '{provider}'. "
            f"Expected one of: {', '.join(PROVIDERS)}"
        )

    try:
        return StorageConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid storage configuration: {e}") from e
