"""Tests for credential, configuration and local file providers."""

from __future__ import annotations

from pathlib import Path

import pytest

from s3_vault.core.models import S3Config
from s3_vault.providers import (
    EnvCredentialProvider,
    FileConfigurationProvider,
    LocalFileSystem,
    StaticConfigurationProvider,
    StaticCredentialProvider,
)
from s3_vault.providers.credentials import ACCESS_KEY_ENV, SECRET_KEY_ENV


class TestLocalFileSystem:
    def test_read_bytes(self, sample_file: Path, files: LocalFileSystem) -> None:
        assert files.read_bytes(sample_file) == sample_file.read_bytes()

    def test_read_missing(self, tmp_path: Path, files: LocalFileSystem) -> None:
        with pytest.raises(FileNotFoundError):
            files.read_bytes(tmp_path / "nonexistent.json")

    def test_temp_path_uses_final_segment(self, files: LocalFileSystem) -> None:
        assert files.temp_path("folder/s3-vault-backup-a.json") == (
            files.download_dir / "s3-vault-backup-a.json"
        )

    def test_temp_path_default_name(self, files: LocalFileSystem) -> None:
        assert files.temp_path("").name == "backup.json"

    def test_write_commit(self, files: LocalFileSystem) -> None:
        final = files.temp_path("out.json")
        partial = final.with_name("out.json.part")

        with files.open_write(partial) as sink:
            sink.write(b"{}")
        assert files.commit(partial, final) == final

        assert final.read_bytes() == b"{}"
        assert not partial.exists()

    def test_commit_replaces_existing(self, files: LocalFileSystem) -> None:
        final = files.temp_path("out.json")
        with files.open_write(final) as sink:
            sink.write(b"old")
        partial = final.with_name("out.json.part")
        with files.open_write(partial) as sink:
            sink.write(b"new")

        files.commit(partial, final)
        assert final.read_bytes() == b"new"

    def test_discard(self, files: LocalFileSystem) -> None:
        path = files.temp_path("gone.json")
        with files.open_write(path) as sink:
            sink.write(b"x")

        files.discard(path)
        assert not path.exists()
        # Discarding twice is a no-op.
        files.discard(path)


class TestCredentialProviders:
    def test_static(self) -> None:
        creds = StaticCredentialProvider("AKIA", "secret").get_credentials()
        assert creds is not None
        assert creds.access_key_id == "AKIA"
        assert creds.secret_access_key.get_secret_value() == "secret"

    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ACCESS_KEY_ENV, "AKIAENV")
        monkeypatch.setenv(SECRET_KEY_ENV, "envsecret")

        creds = EnvCredentialProvider().get_credentials()
        assert creds is not None
        assert creds.access_key_id == "AKIAENV"
        assert creds.is_complete

    @pytest.mark.parametrize("missing", [ACCESS_KEY_ENV, SECRET_KEY_ENV])
    def test_env_incomplete(self, monkeypatch: pytest.MonkeyPatch, missing: str) -> None:
        monkeypatch.setenv(ACCESS_KEY_ENV, "AKIAENV")
        monkeypatch.setenv(SECRET_KEY_ENV, "envsecret")
        monkeypatch.delenv(missing)

        assert EnvCredentialProvider().get_credentials() is None

    def test_env_reread_each_call(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = EnvCredentialProvider()
        monkeypatch.setenv(ACCESS_KEY_ENV, "FIRST")
        monkeypatch.setenv(SECRET_KEY_ENV, "s")
        assert provider.get_credentials().access_key_id == "FIRST"  # type: ignore[union-attr]

        monkeypatch.setenv(ACCESS_KEY_ENV, "SECOND")
        assert provider.get_credentials().access_key_id == "SECOND"  # type: ignore[union-attr]


class TestConfigurationProviders:
    def test_static(self, s3_config: S3Config) -> None:
        assert StaticConfigurationProvider(s3_config).get_config() is s3_config

    def test_file_with_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("BUCKET", "REGION", "ENDPOINT_URL", "FORCE_PATH_STYLE"):
            monkeypatch.delenv(f"S3_VAULT_{var}", raising=False)
        config_path = tmp_path / "config.toml"
        config_path.write_text('[s3]\nbucket_name = "from-file"\nregion = "us-east-1"\n')

        provider = FileConfigurationProvider(config_path, bucket_name="from-flag", region=None)
        config = provider.get_config()

        assert config.bucket_name == "from-flag"
        assert config.region == "us-east-1"

    def test_file_reread(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("S3_VAULT_BUCKET", raising=False)
        config_path = tmp_path / "config.toml"
        config_path.write_text('[s3]\nbucket_name = "one"\n')
        provider = FileConfigurationProvider(config_path)
        assert provider.get_config().bucket_name == "one"

        config_path.write_text('[s3]\nbucket_name = "two"\n')
        assert provider.get_config().bucket_name == "two"
