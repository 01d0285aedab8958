"""Configuration providers for bucket addressing."""

from __future__ import annotations

from pathlib import Path

from s3_vault.core.config import load_config
from s3_vault.core.models import S3Config
from s3_vault.providers.base import ConfigurationProvider


class StaticConfigurationProvider(ConfigurationProvider):
    """Serve one immutable :class:`S3Config`."""

    def __init__(self, config: S3Config) -> None:
        self._config = config

    def get_config(self) -> S3Config:
        return self._config


class FileConfigurationProvider(ConfigurationProvider):
    """Load ``[s3]`` settings from the TOML config file plus ``S3_VAULT_*`` env.

    The file is re-read on every call; overrides (e.g. from CLI flags) are
    applied last.
    """

    def __init__(self, path: Path | None = None, **overrides: object) -> None:
        self.path = path
        self._overrides = overrides

    def get_config(self) -> S3Config:
        config = load_config(self.path).s3
        if self._overrides:
            config = config.with_overrides(**self._overrides)
        return config
