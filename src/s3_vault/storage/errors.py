"""Normalise botocore/httpx failures into :class:`S3BackupError`.

Structured information is consulted first: the ``Error.Code`` of a
``ClientError`` and the exception class of botocore/httpx transport errors.
Providers that expose neither fall through to substring matching on the
exception class name and code string. Free-form messages are never
matched here.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import httpx
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError

from s3_vault.core.exceptions import BackupErrorKind, S3BackupError

# Structured S3 error codes.
_CODE_KINDS: dict[str, BackupErrorKind] = {
    "NoSuchBucket": BackupErrorKind.BUCKET_NOT_FOUND,
    "InvalidAccessKeyId": BackupErrorKind.INVALID_CREDENTIALS,
    "SignatureDoesNotMatch": BackupErrorKind.INVALID_CREDENTIALS,
    "AccessDenied": BackupErrorKind.PERMISSION_DENIED,
    "AllAccessDisabled": BackupErrorKind.PERMISSION_DENIED,
    "Forbidden": BackupErrorKind.PERMISSION_DENIED,
    "403": BackupErrorKind.PERMISSION_DENIED,
    "RequestTimeout": BackupErrorKind.TIMEOUT,
    "RequestTimeoutException": BackupErrorKind.TIMEOUT,
}

# Transport exception classes. Timeouts come first: botocore's connect
# timeout is also a ConnectionError.
_CLASS_KINDS: tuple[tuple[tuple[type[BaseException], ...], BackupErrorKind], ...] = (
    ((NoCredentialsError, PartialCredentialsError), BackupErrorKind.CREDENTIALS_NOT_FOUND),
    ((ConnectTimeoutError, ReadTimeoutError, httpx.TimeoutException), BackupErrorKind.TIMEOUT),
    ((BotoConnectionError, httpx.NetworkError), BackupErrorKind.NETWORK_ERROR),
)

# Substring fallback, checked in order against "<class name> <code>".
_SUBSTRING_KINDS: tuple[tuple[tuple[str, ...], BackupErrorKind], ...] = (
    (("NoSuchBucket",), BackupErrorKind.BUCKET_NOT_FOUND),
    (("InvalidAccessKeyId", "SignatureDoesNotMatch"), BackupErrorKind.INVALID_CREDENTIALS),
    (("AccessDenied", "Forbidden"), BackupErrorKind.PERMISSION_DENIED),
    (("Timeout", "RequestTimeout"), BackupErrorKind.TIMEOUT),
    (("NetworkingError", "ENOTFOUND"), BackupErrorKind.NETWORK_ERROR),
)

_NETWORK_CLASSES: tuple[type[BaseException], ...] = (
    BotoConnectionError,
    ReadTimeoutError,
    httpx.TransportError,
)
_NETWORK_NAME_FRAGMENTS = ("NetworkingError", "ENOTFOUND", "ETIMEDOUT", "ECONNREFUSED")
_NETWORK_MESSAGE_FRAGMENTS = ("network", "timeout")

_DATE_PARSE_ERROR = re.compile(
    r"invalid rfc7231 date-time value|invalid timestamp", re.IGNORECASE
)


def exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` followed by its causes/contexts, each once."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def error_code(exc: BaseException) -> str:
    """Return the provider error code, or an empty string."""
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return str(getattr(exc, "code", "") or "")


def _name_and_code(exc: BaseException) -> str:
    return f"{type(exc).__name__} {error_code(exc)}"


def classify(exc: BaseException) -> BackupErrorKind | None:
    """Map an exception (or anything in its chain) to a kind, if recognised."""
    chain = list(exception_chain(exc))

    for item in chain:
        if isinstance(item, S3BackupError):
            return item.kind
        code = error_code(item)
        if code in _CODE_KINDS:
            return _CODE_KINDS[code]
        for classes, kind in _CLASS_KINDS:
            if isinstance(item, classes):
                return kind

    for item in chain:
        text = _name_and_code(item)
        for fragments, kind in _SUBSTRING_KINDS:
            if any(fragment in text for fragment in fragments):
                return kind
    return None


def to_backup_error(exc: BaseException, default_kind: BackupErrorKind) -> S3BackupError:
    """Normalise ``exc``. Already-typed errors are returned unchanged."""
    if isinstance(exc, S3BackupError):
        return exc
    kind = classify(exc) or default_kind
    return S3BackupError(kind, cause=exc)


def is_network_error(exc: BaseException) -> bool:
    """Whether a failure looks transient enough to retry a connection test."""
    for item in exception_chain(exc):
        if isinstance(item, _NETWORK_CLASSES):
            return True
        name = _name_and_code(item)
        if any(fragment in name for fragment in _NETWORK_NAME_FRAGMENTS):
            return True
        message = str(item).lower()
        if any(fragment in message for fragment in _NETWORK_MESSAGE_FRAGMENTS):
            return True
    return False


def is_date_parse_error(exc: BaseException) -> bool:
    """Whether the signing/parsing layer rejected a malformed date header."""
    return any(_DATE_PARSE_ERROR.search(str(item)) for item in exception_chain(exc))
