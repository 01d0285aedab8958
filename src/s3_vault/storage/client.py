"""Build boto3 S3 clients from bring-your-own-key credentials."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config as BotoConfig

from s3_vault.core.exceptions import BackupErrorKind, S3BackupError
from s3_vault.core.models import S3Config, S3Credentials
from s3_vault.logging import get_logger
from s3_vault.storage.transport import install_date_header_fix

log = get_logger(__name__)

TRANSFER_TIMEOUT = 60.0
CONNECTION_TEST_TIMEOUT = 30.0


def _addressing_style(config: S3Config) -> str:
    # Path style only matters for third-party stores behind a custom endpoint.
    if not config.custom_endpoint:
        return "auto"
    return "path" if config.force_path_style else "virtual"


def build_client(
        credentials: S3Credentials | None,
        config: S3Config,
        *,
        timeout: float = TRANSFER_TIMEOUT,
) -> Any:
    """Create an S3 client with the date-header repair installed.

    Each request is attempted once; retry policy belongs to the callers.

    Raises:
        S3BackupError: ``CREDENTIALS_NOT_FOUND`` if the key pair is missing or
            bucket/region are not configured.
    """
    if credentials is None or not credentials.is_complete:
        raise S3BackupError(BackupErrorKind.CREDENTIALS_NOT_FOUND)
    if not config.is_complete:
        raise S3BackupError(
            BackupErrorKind.CREDENTIALS_NOT_FOUND,
            "S3 configuration incomplete. Please configure bucket name and region.",
        )

    boto_config = BotoConfig(
        region_name=config.region,
        signature_version="s3v4",
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"total_max_attempts": 1, "mode": "standard"},
        inject_host_prefix=False,
        s3={"addressing_style": _addressing_style(config)},
    )

    client_kwargs: dict[str, Any] = {"config": boto_config}
    if config.custom_endpoint:
        client_kwargs["endpoint_url"] = config.custom_endpoint

    # A dedicated session keeps the ambient AWS credential chain out of play.
    session = boto3.Session(
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
        region_name=config.region,
    )
    client = session.client("s3", **client_kwargs)
    install_date_header_fix(client)

    log.debug(
        "s3_client_built",
        region=config.region,
        bucket=config.bucket_name,
        endpoint=config.custom_endpoint or "aws",
        addressing_style=_addressing_style(config),
        timeout=timeout,
    )
    return client
