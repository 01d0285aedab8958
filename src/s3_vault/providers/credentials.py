"""Credential providers backed by memory or the process environment."""

from __future__ import annotations

import os

from pydantic import SecretStr

from s3_vault.core.models import S3Credentials
from s3_vault.providers.base import CredentialProvider

ACCESS_KEY_ENV = "S3_VAULT_ACCESS_KEY_ID"
SECRET_KEY_ENV = "S3_VAULT_SECRET_ACCESS_KEY"


class StaticCredentialProvider(CredentialProvider):
    """Hand out a fixed credential pair, e.g. one typed in on the command line."""

    def __init__(self, access_key_id: str, secret_access_key: str) -> None:
        self._credentials = S3Credentials(
            access_key_id=access_key_id,
            secret_access_key=SecretStr(secret_access_key),
        )

    def get_credentials(self) -> S3Credentials | None:
        return self._credentials


class EnvCredentialProvider(CredentialProvider):
    """Read the key pair from ``S3_VAULT_ACCESS_KEY_ID`` / ``S3_VAULT_SECRET_ACCESS_KEY``.

    Values are read on every call so a rotated key is picked up after the
    service is reset.
    """

    def __init__(
            self,
            access_key_env: str = ACCESS_KEY_ENV,
            secret_key_env: str = SECRET_KEY_ENV,
    ) -> None:
        self.access_key_env = access_key_env
        self.secret_key_env = secret_key_env

    def get_credentials(self) -> S3Credentials | None:
        access_key = os.environ.get(self.access_key_env)
        secret_key = os.environ.get(self.secret_key_env)
        if not access_key or not secret_key:
            return None
        return S3Credentials(
            access_key_id=access_key,
            secret_access_key=SecretStr(secret_key),
        )
