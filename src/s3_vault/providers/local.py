"""Local filesystem side of backup transfers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

from s3_vault.logging import get_logger
from s3_vault.providers.base import LocalFileProvider

log = get_logger(__name__)


class LocalFileSystem(LocalFileProvider):
    """Read archives from anywhere on disk; save downloads under ``download_dir``."""

    def __init__(self, download_dir: Path) -> None:
        self.download_dir = download_dir.expanduser().resolve()

    def read_bytes(self, path: Path) -> bytes:
        data = Path(path).expanduser().read_bytes()
        log.debug("local_read_complete", path=str(path), size=len(data))
        return data

    def temp_path(self, file_name: str) -> Path:
        # Object keys may carry a path; only the final segment is used locally.
        name = Path(file_name).name or "backup.json"
        return self.download_dir / name

    def open_write(self, path: Path) -> BinaryIO:
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, "wb")

    def commit(self, partial: Path, final: Path) -> Path:
        os.replace(partial, final)
        log.debug("local_write_complete", path=str(final), size=final.stat().st_size)
        return final

    def discard(self, path: Path) -> None:
        path.unlink(missing_ok=True)
