"""Enumerate backup objects under the fixed key prefix."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from s3_vault.core.models import BACKUP_KEY_PREFIX, BackupObjectMetadata
from s3_vault.logging import get_logger

log = get_logger(__name__)


def _to_metadata(obj: dict[str, Any]) -> BackupObjectMetadata | None:
    """Build a catalog entry, or ``None`` for a partially populated listing row."""
    key = obj.get("Key")
    size = obj.get("Size")
    last_modified = obj.get("LastModified")
    if not key or not isinstance(size, int) or isinstance(size, bool) or last_modified is None:
        return None
    try:
        return BackupObjectMetadata.from_key(key, size, last_modified)
    except ValidationError:
        return None


class CatalogLister:
    """List backups newest first.

    Rows missing a key, size or modification time are dropped rather than
    failing the whole listing.
    """

    def __init__(self, prefix: str = BACKUP_KEY_PREFIX) -> None:
        self.prefix = prefix

    def list(self, client: Any, bucket: str) -> list[BackupObjectMetadata]:
        backups: list[BackupObjectMetadata] = []
        skipped = 0

        paginator = client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=self.prefix):
            for obj in page.get("Contents") or []:
                entry = _to_metadata(obj)
                if entry is None:
                    skipped += 1
                    continue
                backups.append(entry)

        if skipped:
            log.debug("s3_list_skipped_incomplete", bucket=bucket, skipped=skipped)
        if not backups:
            log.info("s3_list_empty", bucket=bucket)
            return []

        backups.sort(key=lambda b: b.last_modified, reverse=True)
        return backups
