"""S3-compatible backup storage: client, transfers and error normalisation."""

from s3_vault.storage.client import build_client
from s3_vault.storage.service import S3BackupService

__all__ = ["S3BackupService", "build_client"]
