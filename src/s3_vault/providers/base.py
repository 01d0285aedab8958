"""Abstract collaborators the backup service reads from and writes to."""

from __future__ import annotations

import abc
from pathlib import Path
from typing import BinaryIO

from s3_vault.core.models import S3Config, S3Credentials


class CredentialProvider(abc.ABC):
    """Supplies the access key pair. Never persisted by s3-vault."""

    @abc.abstractmethod
    def get_credentials(self) -> S3Credentials | None:
        """Return the current credentials, or ``None`` when none are stored."""


class ConfigurationProvider(abc.ABC):
    """Supplies bucket, region and endpoint settings."""

    @abc.abstractmethod
    def get_config(self) -> S3Config:
        """Return the current S3 configuration."""


class LocalFileProvider(abc.ABC):
    """Local side of a transfer: source bytes for uploads, destination for downloads."""

    @abc.abstractmethod
    def read_bytes(self, path: Path) -> bytes:
        """Read a local backup archive fully into memory.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: If the file cannot be read.
        """

    @abc.abstractmethod
    def temp_path(self, file_name: str) -> Path:
        """Return the path a downloaded object with ``file_name`` is saved to."""

    @abc.abstractmethod
    def open_write(self, path: Path) -> BinaryIO:
        """Open ``path`` for binary writing, creating parent directories."""

    @abc.abstractmethod
    def commit(self, partial: Path, final: Path) -> Path:
        """Move a fully written ``partial`` file to ``final`` and return it."""

    @abc.abstractmethod
    def discard(self, path: Path) -> None:
        """Remove ``path`` if it exists."""
