"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from s3_vault.core.config import load_config, load_config_file, save_config_file
from s3_vault.core.exceptions import ConfigError
from s3_vault.core.models import AppConfig, LogFormat, S3Config


class TestLoadConfigFile:
    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config_file(tmp_path / "nonexistent.toml")
        assert result == {}

    def test_valid_toml(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text("""
[s3]
bucket_name = "my-backups"
region = "eu-west-1"
custom_endpoint = "https://minio.local:9000"
force_path_style = true
""")
        result = load_config_file(config_path)
        assert result["s3"]["bucket_name"] == "my-backups"
        assert result["s3"]["force_path_style"] is True

    def test_invalid_toml(self, tmp_path: Path) -> None:
        config_path = tmp_path / "bad.toml"
        config_path.write_text("this is not valid [[[toml")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config_file(config_path)


class TestSaveConfigFile:
    def test_save_and_reload(self, tmp_path: Path) -> None:
        config = AppConfig(
            s3=S3Config(
                bucket_name="my-backups",
                region="eu-central-1",
                custom_endpoint="https://s3.example.com",
                force_path_style=True,
            ),
        )

        saved = save_config_file(config, tmp_path / "config.toml")
        assert saved.exists()

        raw = load_config_file(saved)
        assert raw["s3"]["bucket_name"] == "my-backups"
        assert raw["s3"]["custom_endpoint"] == "https://s3.example.com"
        assert raw["logging"]["format"] == "console"

    def test_never_writes_credentials(self, tmp_path: Path) -> None:
        saved = save_config_file(AppConfig(), tmp_path / "config.toml")
        text = saved.read_text()
        assert "secret" not in text
        assert "access_key" not in text

    def test_file_permissions(self, tmp_path: Path) -> None:
        saved = save_config_file(AppConfig(), tmp_path / "config.toml")
        mode = oct(saved.stat().st_mode)[-3:]
        assert mode == "600"


class TestLoadConfig:
    def test_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in (
                "BUCKET", "REGION", "ENDPOINT_URL", "FORCE_PATH_STYLE",
                "LOG_LEVEL", "LOG_FILE", "LOG_FORMAT", "DOWNLOAD_DIR",
        ):
            monkeypatch.delenv(f"S3_VAULT_{var}", raising=False)
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.s3 == S3Config()
        assert config.logging.format == LogFormat.CONSOLE
        assert config.download_dir is None

    def test_env_override_s3(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text('[s3]\nbucket_name = "from-file"\nregion = "us-east-1"\n')
        monkeypatch.setenv("S3_VAULT_BUCKET", "from-env")
        monkeypatch.setenv("S3_VAULT_ENDPOINT_URL", "https://minio.local")
        monkeypatch.setenv("S3_VAULT_FORCE_PATH_STYLE", "yes")

        config = load_config(config_path)
        assert config.s3.bucket_name == "from-env"
        assert config.s3.region == "us-east-1"
        assert config.s3.custom_endpoint == "https://minio.local"
        assert config.s3.force_path_style is True

    def test_env_override_logging(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("S3_VAULT_LOG_LEVEL", "debug")
        monkeypatch.setenv("S3_VAULT_LOG_FORMAT", "json")

        config = load_config(tmp_path / "nonexistent.toml")
        assert config.logging.level == "DEBUG"
        assert config.logging.format == LogFormat.JSON

    def test_invalid_log_format(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("S3_VAULT_LOG_FORMAT", "xml")
        with pytest.raises(ConfigError, match="log format"):
            load_config(tmp_path / "nonexistent.toml")

    def test_download_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("S3_VAULT_DOWNLOAD_DIR", str(tmp_path / "dl"))
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.download_dir == tmp_path / "dl"
