"""Providers for credentials, configuration and local files."""

from s3_vault.providers.base import ConfigurationProvider, CredentialProvider, LocalFileProvider
from s3_vault.providers.credentials import EnvCredentialProvider, StaticCredentialProvider
from s3_vault.providers.local import LocalFileSystem
from s3_vault.providers.settings import FileConfigurationProvider, StaticConfigurationProvider

__all__ = [
    "ConfigurationProvider",
    "CredentialProvider",
    "EnvCredentialProvider",
    "FileConfigurationProvider",
    "LocalFileProvider",
    "LocalFileSystem",
    "StaticConfigurationProvider",
    "StaticCredentialProvider",
]
