"""Configuration loading and management for s3-vault.

Settings are resolved in this order, later sources winning:
  1. Defaults
  2. Config file (``config.toml`` in the platform config dir)
  3. Environment variables (``S3_VAULT_*``)
  4. CLI flags, applied by the caller through ``S3Config.with_overrides``

Access keys never touch the config file; they come from the environment or
are typed in per command.
"""

from __future__ import annotations

import contextlib
import os
import sys
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import tomli_w

from s3_vault.core.exceptions import ConfigError
from s3_vault.core.models import AppConfig, LogFormat, LoggingConfig, S3Config

# ──────────────────── Paths ──────────────────────────────

_APP_NAME = "s3-vault"

# (macOS, Windows env var + fallback, XDG env var + fallback)
_PLATFORM_BASES: dict[str, tuple[str, tuple[str, ...], str, tuple[str, ...]]] = {
    "config": ("APPDATA", ("AppData", "Roaming"), "XDG_CONFIG_HOME", (".config",)),
    "data": ("LOCALAPPDATA", ("AppData", "Local"), "XDG_DATA_HOME", (".local", "share")),
}


def _platform_dir(kind: str) -> Path:
    """Return the per-user ``config`` or ``data`` directory for s3-vault."""
    win_var, win_default, xdg_var, xdg_default = _PLATFORM_BASES[kind]
    home = Path.home()
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support"
    elif sys.platform == "win32":
        base = Path(os.environ.get(win_var) or home.joinpath(*win_default))
    else:
        base = Path(os.environ.get(xdg_var) or home.joinpath(*xdg_default))
    return base / _APP_NAME


CONFIG_DIR = _platform_dir("config")
DATA_DIR = _platform_dir("data")
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_DIR = DATA_DIR / "logs"
DOWNLOAD_DIR = DATA_DIR / "downloads"

# ──────────────────── Environment ────────────────────────

_ENV_PREFIX = "S3_VAULT_"
_TRUTHY = frozenset({"true", "1", "yes", "on"})


def _flag(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def _log_format(value: str) -> LogFormat:
    try:
        return LogFormat(value.lower())
    except ValueError as exc:
        raise ConfigError(f"Invalid log format in environment: {value}") from exc


# env suffix -> (model field, converter)
_S3_ENV: dict[str, tuple[str, Callable[[str], Any]]] = {
    "BUCKET": ("bucket_name", str),
    "REGION": ("region", str),
    "ENDPOINT_URL": ("custom_endpoint", str),
    "FORCE_PATH_STYLE": ("force_path_style", _flag),
}
_LOGGING_ENV: dict[str, tuple[str, Callable[[str], Any]]] = {
    "LOG_LEVEL": ("level", str.upper),
    "LOG_FILE": ("log_file", Path),
    "LOG_FORMAT": ("format", _log_format),
}


def _env(key: str) -> str | None:
    """Read ``S3_VAULT_<key>``; empty values count as unset."""
    return os.environ.get(f"{_ENV_PREFIX}{key}") or None


def _from_env(mapping: dict[str, tuple[str, Callable[[str], Any]]]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for suffix, (field, convert) in mapping.items():
        raw = _env(suffix)
        if raw is not None:
            values[field] = convert(raw)
    return values


# ──────────────────── TOML file ──────────────────────────


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Return the parsed config file, or ``{}`` when it does not exist."""
    config_path = path or CONFIG_FILE
    if not config_path.is_file():
        return {}
    try:
        return tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc


def save_config_file(config: AppConfig, path: Path | None = None) -> Path:
    """Write bucket addressing and logging settings; owner-only permissions."""
    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    document: dict[str, Any] = {
        "s3": config.s3.model_dump(exclude_none=True),
        "logging": config.logging.model_dump(mode="json", exclude_none=True),
    }
    if config.download_dir:
        document["download_dir"] = str(config.download_dir)

    config_path.write_text(tomli_w.dumps(document), encoding="utf-8")

    # chmod is a no-op on some filesystems (e.g. Windows)
    with contextlib.suppress(OSError):
        config_path.chmod(0o600)

    return config_path


# ──────────────────── Loader ─────────────────────────────


def load_config(config_path: Path | None = None) -> AppConfig:
    """Merge the config file with ``S3_VAULT_*`` environment overrides."""
    raw = load_config_file(config_path)

    s3_values = {**raw.get("s3", {}), **_from_env(_S3_ENV)}
    logging_values = {**raw.get("logging", {}), **_from_env(_LOGGING_ENV)}
    download_dir = _env("DOWNLOAD_DIR") or raw.get("download_dir")

    try:
        return AppConfig(
            s3=S3Config(**s3_values),
            logging=LoggingConfig(**logging_values),
            download_dir=Path(download_dir).expanduser() if download_dir else None,
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def ensure_dirs() -> None:
    """Create the config, data, log and download directories."""
    for directory in (CONFIG_DIR, LOG_DIR, DOWNLOAD_DIR):
        directory.mkdir(parents=True, exist_ok=True)
