"""Structured logging for s3-vault: structlog events rendered by stdlib handlers.

Every module logs through :func:`get_logger` with snake_case event names
(``s3_upload_start``, ``date_header_patched``, ...). Output goes to stderr as
coloured console lines or JSON, plus an optional rotating JSON file.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog
from pydantic import SecretStr

from s3_vault.core.models import LogFormat, LoggingConfig

# Event keys containing any of these never reach a handler unredacted.
_SENSITIVE_KEYS = ("password", "secret", "token", "access_key", "authorization", "signature")
_REDACTED = "***REDACTED***"

# SDK and HTTP libraries log request details (including signed URLs) at DEBUG.
_QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "httpx", "httpcore")

_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
_LOG_FILE_BACKUPS = 5


def _redact_sensitive(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        lowered = key.lower()
        if isinstance(value, SecretStr) or any(s in lowered for s in _SENSITIVE_KEYS):
            event_dict[key] = _REDACTED
    return event_dict


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=_LOG_FILE_MAX_BYTES,
        backupCount=_LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def setup_logging(
        level: str = "INFO",
        log_file: Path | None = None,
        log_format: LogFormat = LogFormat.CONSOLE,
) -> None:
    """Route structlog through the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        log_file: Optional JSON log file, rotated at 10 MB with 5 backups.
        log_format: ``console`` for humans, ``json`` for log shippers.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _redact_sensitive,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if log_format == LogFormat.JSON:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(renderer))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stderr_handler)
    if log_file:
        root.addHandler(_file_handler(log_file))
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_config(config: LoggingConfig, *, verbose: bool = False) -> None:
    """Apply a :class:`LoggingConfig`; ``verbose`` forces DEBUG."""
    setup_logging(
        level="DEBUG" if verbose else config.level,
        log_file=config.log_file,
        log_format=config.format,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
