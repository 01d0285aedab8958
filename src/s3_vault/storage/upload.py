"""Multipart upload of local backup archives."""

from __future__ import annotations

import io
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from boto3.s3.transfer import TransferConfig

from s3_vault import __version__
from s3_vault.core.exceptions import BackupErrorKind, S3BackupError
from s3_vault.core.models import BACKUP_KEY_PREFIX
from s3_vault.logging import get_logger
from s3_vault.providers.base import LocalFileProvider
from s3_vault.storage.progress import ProgressCallback, ProgressReporter

log = get_logger(__name__)

# Part size and concurrency bound memory and open sockets per upload.
PART_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_CONCURRENCY = 4

DEFAULT_FILE_NAME = "backup.json"
CONTENT_TYPE = "application/json"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return _UNSAFE_KEY_CHARS.sub("_", file_name)


def backup_key_for(file_name: str) -> str:
    """Object key for a local file name: ``<prefix><sanitized name>``."""
    return f"{BACKUP_KEY_PREFIX}{sanitize_file_name(file_name or DEFAULT_FILE_NAME)}"


class UploadManager:
    """Stream a local archive to S3 through boto3's transfer manager."""

    def __init__(self, files: LocalFileProvider) -> None:
        self._files = files
        self._transfer_config = TransferConfig(
            multipart_threshold=PART_SIZE,
            multipart_chunksize=PART_SIZE,
            max_concurrency=MAX_CONCURRENCY,
            use_threads=True,
        )

    def upload(
            self,
            client: Any,
            bucket: str,
            local_path: Path,
            on_progress: ProgressCallback | None = None,
    ) -> str:
        """Upload ``local_path`` and return the object key.

        Raises:
            S3BackupError: ``INVALID_BACKUP_FILE`` if the file cannot be read.
            Transfer errors propagate unmapped to the caller.
        """
        local_path = Path(local_path)
        try:
            data = self._files.read_bytes(local_path)
        except FileNotFoundError as exc:
            raise S3BackupError(
                BackupErrorKind.INVALID_BACKUP_FILE,
                f"Backup file not found at {local_path}",
                cause=exc,
            ) from exc
        except OSError as exc:
            raise S3BackupError(
                BackupErrorKind.INVALID_BACKUP_FILE,
                f"Backup file could not be read: {exc}",
                cause=exc,
            ) from exc

        key = backup_key_for(local_path.name)
        log.info("s3_upload_start", bucket=bucket, key=key, size=len(data))

        reporter = ProgressReporter(len(data), on_progress, label="s3_upload")
        client.upload_fileobj(
            io.BytesIO(data),
            bucket,
            key,
            ExtraArgs={
                "ContentType": CONTENT_TYPE,
                "Metadata": {
                    "s3-vault-version": __version__,
                    "upload-timestamp": datetime.now(timezone.utc).isoformat(),
                },
            },
            Config=self._transfer_config,
            Callback=reporter,
        )
        reporter.finish()

        log.info("s3_upload_complete", location=f"s3://{bucket}/{key}", size=len(data))
        return key
