"""Custom exceptions for s3-vault."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType


class S3VaultError(Exception):
    """Base exception for all s3-vault errors."""


class ConfigError(S3VaultError):
    """Raised when configuration is invalid or missing."""


class BackupErrorKind(enum.StrEnum):
    """Fixed taxonomy of failures surfaced by backup storage operations."""

    CREDENTIALS_NOT_FOUND = "credentials_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    BUCKET_NOT_FOUND = "bucket_not_found"
    NETWORK_ERROR = "network_error"
    UPLOAD_FAILED = "upload_failed"
    DOWNLOAD_FAILED = "download_failed"
    DELETE_FAILED = "delete_failed"
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
    INVALID_BACKUP_FILE = "invalid_backup_file"


ERROR_MESSAGES: Mapping[BackupErrorKind, str] = MappingProxyType({
    BackupErrorKind.CREDENTIALS_NOT_FOUND: (
        "S3 credentials not configured. Please add your access key and secret key."
    ),
    BackupErrorKind.INVALID_CREDENTIALS: (
        "Invalid S3 credentials. Please check your access key and secret key."
    ),
    BackupErrorKind.BUCKET_NOT_FOUND: (
        "S3 bucket not found. Please check the bucket name and region."
    ),
    BackupErrorKind.NETWORK_ERROR: (
        "Network error. Please check your connection and try again."
    ),
    BackupErrorKind.UPLOAD_FAILED: "Failed to upload backup to S3.",
    BackupErrorKind.DOWNLOAD_FAILED: "Failed to download backup from S3.",
    BackupErrorKind.DELETE_FAILED: "Failed to delete backup from S3.",
    BackupErrorKind.PERMISSION_DENIED: (
        "Permission denied. Please check the IAM permissions for this bucket."
    ),
    BackupErrorKind.TIMEOUT: "The S3 request timed out. Please try again.",
    BackupErrorKind.INVALID_BACKUP_FILE: "The backup file is missing or unreadable.",
})


def get_error_message(kind: BackupErrorKind) -> str:
    """Return the static user-facing message for an error kind."""
    return ERROR_MESSAGES[kind]


class S3BackupError(S3VaultError):
    """The only error shape raised past the backup storage boundary.

    Args:
        kind: Taxonomy entry describing the failure.
        message: Optional detail for logs. Defaults to the static message.
        cause: The low-level exception that was normalised, if any.
    """

    def __init__(
            self,
            kind: BackupErrorKind,
            message: str | None = None,
            cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or get_error_message(kind)
        self.cause = cause
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Static message for UI display, independent of the detail message."""
        return get_error_message(self.kind)

    def __repr__(self) -> str:
        return f"S3BackupError(kind={self.kind.value!r}, message={self.message!r})"
