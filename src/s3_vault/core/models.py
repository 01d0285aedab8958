"""Pydantic models for s3-vault configuration, catalog entries and results."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

# Every object written by s3-vault starts with this literal. Listing and
# connection tests are scoped to it.
BACKUP_KEY_PREFIX = "s3-vault-backup-"


# ──────────────────────── Enums ──────────────────────────


class LogFormat(enum.StrEnum):
    """Structured log output format."""

    CONSOLE = "console"
    JSON = "json"


# ──────────────────── Config Models ──────────────────────


class S3Credentials(BaseModel):
    """Bring-your-own-key credential pair."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: SecretStr

    @property
    def is_complete(self) -> bool:
        return bool(self.access_key_id) and bool(self.secret_access_key.get_secret_value())


class S3Config(BaseModel):
    """Bucket addressing settings. Immutable; use :meth:`with_overrides`."""

    model_config = ConfigDict(frozen=True)

    bucket_name: str | None = None
    region: str | None = None
    custom_endpoint: str | None = None
    force_path_style: bool = False

    @field_validator("bucket_name", "region", "custom_endpoint")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @property
    def is_complete(self) -> bool:
        """Bucket and region are both required to build a client."""
        return bool(self.bucket_name and self.region)

    def with_overrides(self, **changes: Any) -> S3Config:
        """Return a validated copy with ``changes`` applied.

        Keys set to ``None`` are ignored so partial updates never clear
        existing values by accident. Pass an empty string to clear an
        optional text field.
        """
        data = self.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        return S3Config.model_validate(data)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    log_file: Path | None = None
    format: LogFormat = LogFormat.CONSOLE


class AppConfig(BaseModel):
    """Top-level application configuration."""

    s3: S3Config = S3Config()
    logging: LoggingConfig = LoggingConfig()
    download_dir: Path | None = None


# ──────────────────── Transfer Models ────────────────────


class BackupObjectMetadata(BaseModel):
    """One backup object in the remote catalog."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    file_name: str
    size_bytes: int = Field(ge=0)
    last_modified: datetime
    encrypted: bool = False

    @field_validator("last_modified")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_key(cls, key: str, size: int, last_modified: datetime | str) -> BackupObjectMetadata:
        """Build an entry, deriving the file name and encryption hint from the key."""
        file_name = key.rsplit("/", 1)[-1] or key
        return cls(
            key=key,
            file_name=file_name,
            size_bytes=size,
            last_modified=last_modified,  # type: ignore[arg-type]
            encrypted="encrypted" in file_name.lower(),
        )

    @property
    def size_human(self) -> str:
        return _human_size(self.size_bytes)


class TransferProgress(BaseModel):
    """Progress of one upload or download."""

    model_config = ConfigDict(frozen=True)

    bytes_transferred: int = Field(ge=0)
    total_bytes: int = Field(ge=0)
    percentage: int = Field(ge=0, le=100)

    @property
    def loaded(self) -> int:
        return self.bytes_transferred

    @property
    def total(self) -> int:
        return self.total_bytes


class ConnectionTestResult(BaseModel):
    """Outcome of a single connection test."""

    success: bool
    bucket_accessible: bool
    error: str | None = None


# ──────────────────── Helpers ────────────────────────────


def _human_size(nbytes: int) -> str:
    """Convert bytes to human-readable string."""
    size = float(nbytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"
