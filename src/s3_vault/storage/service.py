"""Backup storage service: the one entry point callers hold on to."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

from botocore.exceptions import ClientError

from s3_vault.core.exceptions import BackupErrorKind, S3BackupError
from s3_vault.core.models import BackupObjectMetadata, ConnectionTestResult, S3Config
from s3_vault.logging import get_logger
from s3_vault.providers.base import ConfigurationProvider, CredentialProvider, LocalFileProvider
from s3_vault.storage.catalog import CatalogLister
from s3_vault.storage.client import build_client
from s3_vault.storage.connection import ConnectionTester
from s3_vault.storage.download import DownloadManager
from s3_vault.storage.errors import error_code, to_backup_error
from s3_vault.storage.progress import ProgressCallback
from s3_vault.storage.upload import UploadManager

log = get_logger(__name__)

ClientFactory = Callable[..., Any]


class S3BackupService:
    """Upload, list, download and delete backups with user-supplied keys.

    Build one instance at wiring time and share it. The S3 client is created
    on first use from the current credentials and configuration and reused
    until :meth:`reset`; call ``reset()`` after the user changes keys or
    bucket settings.

    Every method except :meth:`test_connection` raises
    :class:`~s3_vault.core.exceptions.S3BackupError` on failure.
    """

    def __init__(
            self,
            credentials: CredentialProvider,
            settings: ConfigurationProvider,
            files: LocalFileProvider,
            *,
            client_factory: ClientFactory = build_client,
            sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._state: tuple[Any, S3Config] | None = None

        self._tester = ConnectionTester(client_factory=client_factory, sleep=sleep)
        self._catalog = CatalogLister()
        self._uploads = UploadManager(files)
        self._downloads = DownloadManager(files)

    # ──────────────────── Client lifecycle ───────────────

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    def initialize(self) -> Any:
        """Build and cache the client, or return the cached one.

        Concurrent first calls build exactly one client.

        Raises:
            S3BackupError: ``CREDENTIALS_NOT_FOUND`` for missing keys or
                settings; ``NETWORK_ERROR`` if a provider itself fails.
        """
        return self._snapshot()[0]

    def _snapshot(self) -> tuple[Any, S3Config]:
        """Return the cached ``(client, config)`` pair, building it if needed."""
        state = self._state
        if state is not None:
            return state

        with self._lock:
            if self._state is not None:
                return self._state

            log.info("s3_service_initializing")
            try:
                credentials = self._credentials.get_credentials()
                config = self._settings.get_config()
                client = self._client_factory(credentials, config)
            except S3BackupError as exc:
                log.error("s3_service_init_failed", error_kind=exc.kind.value, error=exc.message)
                raise
            except Exception as exc:
                log.error("s3_service_init_failed", error=str(exc))
                raise S3BackupError(
                    BackupErrorKind.NETWORK_ERROR,
                    "Failed to initialize S3 client",
                    cause=exc,
                ) from exc

            # Client and config are published together; readers never see a mixed pair.
            self._state = (client, config)
            log.info("s3_service_initialized", region=config.region, bucket=config.bucket_name)
            return self._state

    def reset(self) -> None:
        """Drop the cached client so the next call rebuilds from current settings."""
        with self._lock:
            self._state = None
        log.info("s3_service_reset")

    def _session(self) -> tuple[Any, str]:
        """Return ``(client, bucket)`` from one consistent snapshot."""
        client, config = self._snapshot()
        if not config.bucket_name:
            raise S3BackupError(
                BackupErrorKind.CREDENTIALS_NOT_FOUND,
                "S3 bucket name not configured",
            )
        return client, config.bucket_name

    # ──────────────────── Operations ─────────────────────

    def test_connection(
            self,
            access_key_id: str,
            secret_access_key: str,
            bucket_name: str,
            region: str,
            endpoint: str | None = None,
            path_style: bool = False,
    ) -> ConnectionTestResult:
        """Check reachability with a throwaway client. Never raises."""
        return self._tester.test(
            access_key_id,
            secret_access_key,
            bucket_name,
            region,
            endpoint=endpoint,
            path_style=path_style,
        )

    def list_backups(self) -> list[BackupObjectMetadata]:
        """Return backups under the backup prefix, newest first."""
        log.info("s3_list_start")
        try:
            client, bucket = self._session()
            backups = self._catalog.list(client, bucket)
        except Exception as exc:
            self._raise("s3_list_failed", exc, BackupErrorKind.NETWORK_ERROR)
        log.info("s3_list_complete", bucket=bucket, count=len(backups))
        return backups

    def upload_backup(
            self,
            local_path: Path | str,
            on_progress: ProgressCallback | None = None,
    ) -> str:
        """Upload a local archive; return its object key."""
        try:
            client, bucket = self._session()
            return self._uploads.upload(client, bucket, Path(local_path), on_progress)
        except Exception as exc:
            self._raise("s3_upload_failed", exc, BackupErrorKind.UPLOAD_FAILED, path=str(local_path))

    def download_backup(
            self,
            key: str,
            on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Download ``key`` to the local download directory; return the file path."""
        try:
            client, bucket = self._session()
            return self._downloads.download(client, bucket, key, on_progress)
        except Exception as exc:
            self._raise("s3_download_failed", exc, BackupErrorKind.DOWNLOAD_FAILED, key=key)

    def delete_backup(self, key: str) -> None:
        """Delete ``key``. Single request, never retried.

        A store that reports the key as absent yields ``DELETE_FAILED``;
        callers should re-list to confirm state rather than retry.
        """
        log.info("s3_delete_start", key=key)
        try:
            client, bucket = self._session()
            client.delete_object(Bucket=bucket, Key=key)
        except Exception as exc:
            self._raise("s3_delete_failed", exc, BackupErrorKind.DELETE_FAILED, key=key)
        log.info("s3_delete_complete", bucket=bucket, key=key)

    # ──────────────────── Helpers ────────────────────────

    @staticmethod
    def _raise(
            event: str,
            exc: Exception,
            default_kind: BackupErrorKind,
            **context: Any,
    ) -> NoReturn:
        """Log ``exc`` and re-raise it as a typed error."""
        error = to_backup_error(exc, default_kind)
        log.error(
            event,
            error_kind=error.kind.value,
            error=str(exc),
            error_code=error_code(exc) or type(exc).__name__,
            **context,
        )
        if isinstance(exc, ClientError):
            headers = exc.response.get("ResponseMetadata", {}).get("HTTPHeaders")
            if headers:
                log.debug(f"{event}_response_headers", headers=headers, **context)
        if error is exc:
            raise error
        raise error from exc
