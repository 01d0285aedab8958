"""Check that a credential/bucket/region combination is reachable and authorised."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from pydantic import SecretStr

from s3_vault.core.exceptions import BackupErrorKind, get_error_message
from s3_vault.core.models import (
    BACKUP_KEY_PREFIX,
    ConnectionTestResult,
    S3Config,
    S3Credentials,
)
from s3_vault.logging import get_logger
from s3_vault.storage.client import CONNECTION_TEST_TIMEOUT, build_client
from s3_vault.storage.errors import error_code, is_network_error, to_backup_error

log = get_logger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAYS = (1.0, 2.0, 4.0)

ClientFactory = Callable[..., Any]


class ConnectionTester:
    """Run a ``MaxKeys=1`` listing against a throwaway client.

    Network-class failures are retried on a fixed ladder; anything else
    (bad keys, missing bucket, denied access) ends the test at once. The
    outcome is always returned as data, never raised.
    """

    def __init__(
            self,
            client_factory: ClientFactory = build_client,
            sleep: Callable[[float], None] = time.sleep,
            max_attempts: int = MAX_ATTEMPTS,
            retry_delays: tuple[float, ...] = RETRY_DELAYS,
    ) -> None:
        self._client_factory = client_factory
        self._sleep = sleep
        self.max_attempts = max_attempts
        self.retry_delays = retry_delays

    def test(
            self,
            access_key_id: str,
            secret_access_key: str,
            bucket_name: str,
            region: str,
            endpoint: str | None = None,
            path_style: bool = False,
    ) -> ConnectionTestResult:
        log.info(
            "s3_connection_test_start",
            bucket=bucket_name,
            region=region,
            endpoint=endpoint or "aws",
            path_style=path_style,
        )

        try:
            credentials = S3Credentials(
                access_key_id=access_key_id,
                secret_access_key=SecretStr(secret_access_key),
            )
            config = S3Config(
                bucket_name=bucket_name,
                region=region,
                custom_endpoint=endpoint,
                force_path_style=path_style,
            )
            client = self._client_factory(
                credentials, config, timeout=CONNECTION_TEST_TIMEOUT
            )
        except Exception as exc:
            return self._failure(exc, attempts=0, bucket=bucket_name)

        for attempt in range(self.max_attempts):
            try:
                client.list_objects_v2(
                    Bucket=config.bucket_name,
                    MaxKeys=1,
                    Prefix=BACKUP_KEY_PREFIX,
                )
            except Exception as exc:
                retryable = is_network_error(exc)
                is_last = attempt == self.max_attempts - 1
                log.warning(
                    "s3_connection_test_attempt_failed",
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    error=str(exc),
                    error_code=error_code(exc) or type(exc).__name__,
                    retryable=retryable,
                )
                if not retryable or is_last:
                    return self._failure(exc, attempts=attempt + 1, bucket=bucket_name)

                delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                log.info("s3_connection_test_retry", attempt=attempt + 1, next_retry_in=delay)
                self._sleep(delay)
                continue

            log.info(
                "s3_connection_test_success",
                bucket=bucket_name,
                region=region,
                attempt=attempt + 1,
            )
            return ConnectionTestResult(success=True, bucket_accessible=True)

        # Only reachable with max_attempts < 1.
        return ConnectionTestResult(
            success=False,
            bucket_accessible=False,
            error=get_error_message(BackupErrorKind.NETWORK_ERROR),
        )

    @staticmethod
    def _failure(exc: BaseException, *, attempts: int, bucket: str) -> ConnectionTestResult:
        error = to_backup_error(exc, BackupErrorKind.NETWORK_ERROR)
        log.error(
            "s3_connection_test_failed",
            bucket=bucket,
            error_kind=error.kind.value,
            error=error.message,
            attempts=attempts,
        )
        return ConnectionTestResult(success=False, bucket_accessible=False, error=error.message)
