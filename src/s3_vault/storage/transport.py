"""Repair non-conformant date headers before botocore parses a response.

Some S3-compatible servers send ``Date``, ``Last-Modified`` or ``Expires``
values that are not RFC 7231 IMF-fixdate (ISO 8601 strings, bare epoch
numbers, timestamps without a zone). The handler installed here rewrites
them in place to IMF-fixdate; a value that cannot be parsed at all is
replaced with the current time so the request still completes. Object
timestamps in listings come from the XML body and are not affected.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, MutableMapping
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any

from s3_vault.logging import get_logger

log = get_logger(__name__)

DATE_HEADERS = frozenset({"date", "last-modified", "expires"})

_BEFORE_PARSE_EVENT = "before-parse.s3"
_HAS_TIMEZONE = re.compile(r"[zZ]|[+-]\d{2}:?\d{2}$")
_EPOCH_SECONDS_MAX_LEN = 10


def _parse_standard(value: str) -> datetime | None:
    """RFC 7231 / RFC 2822 first, then ISO 8601 carrying an explicit zone."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is not None:
        # "-0000" yields a naive datetime meaning UTC.
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _parse_epoch(value: str) -> datetime | None:
    """Unix time; seconds for up to 10 characters, milliseconds beyond."""
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    seconds = number if len(value) <= _EPOCH_SECONDS_MAX_LEN else number / 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def normalize_date_value(value: str | None) -> str | None:
    """Return ``value`` as an IMF-fixdate string, or ``None`` if unparseable."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    candidates: list[Callable[[], datetime | None]] = [
        lambda: _parse_standard(trimmed),
        lambda: _parse_epoch(trimmed),
    ]
    if not _HAS_TIMEZONE.search(trimmed):
        candidates.append(lambda: _parse_standard(f"{trimmed}Z"))

    for candidate in candidates:
        parsed = candidate()
        if parsed is not None:
            try:
                return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)
            except (OverflowError, ValueError):
                continue
    return None


def fallback_date_value() -> str:
    """Current wall-clock time as IMF-fixdate."""
    return format_datetime(datetime.now(timezone.utc), usegmt=True)


def fix_date_headers(headers: MutableMapping[str, Any]) -> None:
    """Rewrite the date headers of one response in place.

    Matching is case-insensitive; repaired values are stored under the
    lower-case header name.
    """
    for header_key in list(headers.keys()):
        normalized_key = header_key.lower()
        if normalized_key not in DATE_HEADERS:
            continue

        raw_value = headers[header_key]
        if isinstance(raw_value, (list, tuple)):
            raw_value = raw_value[0] if raw_value else None

        value = normalize_date_value(raw_value)
        if value is None:
            value = fallback_date_value()
            log.warning(
                "date_header_patched",
                header=normalized_key,
                raw_value=raw_value,
                fallback_value=value,
            )

        if header_key != normalized_key:
            del headers[header_key]
        headers[normalized_key] = value


def _on_before_parse(response_dict: dict[str, Any] | None = None, **_: Any) -> None:
    if not response_dict:
        return
    headers = response_dict.get("headers")
    if headers is not None:
        fix_date_headers(headers)


def install_date_header_fix(client: Any) -> Any:
    """Register the header repair on every S3 response ``client`` receives."""
    client.meta.events.register(
        _BEFORE_PARSE_EVENT,
        _on_before_parse,
        unique_id="s3-vault-date-header-fix",
    )
    return client
