"""Download backups to local disk, with a presigned-URL fallback.

Some malformed date headers are rejected deep inside botocore's response
handling, after the header repair in :mod:`s3_vault.storage.transport` has
had its chance. When that happens the same object is fetched once more
through a presigned URL with a plain HTTP GET, which bypasses botocore's
response parsing entirely.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from s3_vault.core.exceptions import BackupErrorKind, S3BackupError
from s3_vault.logging import get_logger
from s3_vault.providers.base import LocalFileProvider
from s3_vault.storage.client import TRANSFER_TIMEOUT
from s3_vault.storage.errors import is_date_parse_error
from s3_vault.storage.progress import ProgressCallback, ProgressReporter
from s3_vault.storage.streams import ByteSource, as_byte_source, drain

log = get_logger(__name__)

PRESIGNED_URL_EXPIRY = 900  # seconds
DEFAULT_FILE_NAME = "backup.json"


def _content_length(headers: Any) -> int:
    raw = headers.get("content-length")
    try:
        length = int(raw) if raw is not None else 0
    except (TypeError, ValueError):
        return 0
    return max(length, 0)


class DownloadManager:
    """Fetch an object into the local download directory."""

    def __init__(self, files: LocalFileProvider, timeout: float = TRANSFER_TIMEOUT) -> None:
        self._files = files
        self.timeout = timeout

    def download(
            self,
            client: Any,
            bucket: str,
            key: str,
            on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Save ``key`` locally and return its path.

        Raises whatever the primary request raised, unless it was a date-header
        rejection, in which case the presigned-URL attempt decides the outcome.
        """
        destination = self._files.temp_path(key.rsplit("/", 1)[-1] or DEFAULT_FILE_NAME)
        log.info("s3_download_start", bucket=bucket, key=key, destination=str(destination))

        try:
            return self._download_direct(client, bucket, key, destination, on_progress)
        except Exception as exc:
            if not is_date_parse_error(exc):
                raise
            log.warning("s3_download_fallback", key=key, bucket=bucket, error=str(exc))

        return self._download_presigned(client, bucket, key, destination, on_progress)

    def _download_direct(
            self,
            client: Any,
            bucket: str,
            key: str,
            destination: Path,
            on_progress: ProgressCallback | None,
    ) -> Path:
        response = client.get_object(Bucket=bucket, Key=key)
        body = response.get("Body")
        if body is None:
            raise S3BackupError(BackupErrorKind.DOWNLOAD_FAILED, "S3 response body is empty")

        total = int(response.get("ContentLength") or 0)
        try:
            path = self._save(as_byte_source(body), destination, total, on_progress)
        finally:
            close = getattr(body, "close", None)
            if callable(close):
                close()

        log.info("s3_download_complete", key=key, destination=str(path), size=path.stat().st_size)
        return path

    def _download_presigned(
            self,
            client: Any,
            bucket: str,
            key: str,
            destination: Path,
            on_progress: ProgressCallback | None,
    ) -> Path:
        url = client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=PRESIGNED_URL_EXPIRY,
        )
        log.info("s3_download_presigned_fetch", bucket=bucket, key=key)

        with httpx.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
            if not response.is_success:
                raise S3BackupError(
                    BackupErrorKind.DOWNLOAD_FAILED,
                    f"Signed URL download failed with status {response.status_code}",
                )
            # httpx decodes Content-Encoding, so the header no longer matches the bytes seen.
            total = 0 if "content-encoding" in response.headers else _content_length(response.headers)
            path = self._save(as_byte_source(response.iter_bytes()), destination, total, on_progress)

        log.info("s3_download_presigned_complete", key=key, destination=str(path))
        return path

    def _save(
            self,
            source: ByteSource,
            destination: Path,
            total: int,
            on_progress: ProgressCallback | None,
    ) -> Path:
        """Drain ``source`` into ``destination`` via a ``.part`` file."""
        partial = destination.with_name(f"{destination.name}.part")
        reporter = ProgressReporter(total, on_progress, label="s3_download")
        try:
            with self._files.open_write(partial) as sink:
                written = drain(source, sink, reporter)
            if total and written != total:
                raise S3BackupError(
                    BackupErrorKind.DOWNLOAD_FAILED,
                    f"Incomplete download: received {written} of {total} bytes",
                )
            self._files.commit(partial, destination)
        except Exception:
            self._files.discard(partial)
            raise

        reporter.finish()
        return destination
