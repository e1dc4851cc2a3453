"""Secret providers backed by the environment, mounted files, or HashiCorp Vault."""

import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests
import structlog

from justadrop.config import Config

logger = structlog.get_logger(__name__)


class SecretProvider(ABC):
    """Read-through cache in front of a secret backend.

    Values are cached per provider instance after the first successful lookup.
    Missing secrets are not cached so that a later mount or rotation is picked up.
    """

    def __init__(self) -> None:
        self._cache: dict[str, str] = {}

    @abstractmethod
    def _load(self, key: str) -> str | None:
        """Fetch a secret from the backend, returning None if it does not exist."""

    def get(self, key: str, default: str | None = None) -> str | None:
        if key in self._cache:
            return self._cache[key]
        value = self._load(key)
        if value is None:
            return default
        self._cache[key] = value
        return value

    async def aget(self, key: str, default: str | None = None) -> str | None:
        if key in self._cache:
            return self._cache[key]
        return await asyncio.to_thread(self.get, key, default)

    def clear_cache(self) -> None:
        self._cache.clear()


class EnvSecretProvider(SecretProvider):
    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        super().__init__()
        self._environ: Mapping[str, str] = environ if environ is not None else os.environ

    def _load(self, key: str) -> str | None:
        value = self._environ.get(key)
        return value or None


class FileSecretProvider(SecretProvider):
    """One file per secret, as mounted by Docker and Kubernetes."""

    def __init__(self, directory: str | Path) -> None:
        super().__init__()
        self._directory = Path(directory)

    def _load(self, key: str) -> str | None:
        path = self._directory / key
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8").strip() or None


class VaultSecretProvider(SecretProvider):
    """Reads every secret from a single HashiCorp Vault KV v2 document."""

    def __init__(self, url: str, token: str, secret_path: str, timeout: float = 5.0) -> None:
        super().__init__()
        self._url = f"{url.rstrip('/')}/v1/{secret_path.strip('/')}"
        self._token = token
        self._timeout = timeout

    def _fetch_document(self) -> dict[str, Any]:
        response = requests.get(self._url, headers={"X-Vault-Token": self._token}, timeout=self._timeout)
        if response.status_code == 404:  # noqa: PLR2004
            return {}
        response.raise_for_status()
        return dict(response.json()["data"]["data"])

    def _load(self, key: str) -> str | None:
        document = self._fetch_document()
        # One round-trip fills the cache for every key in the document
        for name, value in document.items():
            if value is not None:
                self._cache[name] = str(value)
        return self._cache.get(key)


def create_secret_provider(config: Config) -> SecretProvider:
    """Build the provider selected by `config.secrets_backend`."""
    if config.secrets_backend == "file":
        provider: SecretProvider = FileSecretProvider(config.secrets_dir)
    elif config.secrets_backend == "vault":
        if not config.vault_url or not config.vault_token:
            raise ValueError("vault_url and vault_token are required for the vault secrets backend")
        provider = VaultSecretProvider(config.vault_url, config.vault_token, config.vault_secret_path)
    else:
        provider = EnvSecretProvider()
    logger.debug("secret_provider_created", backend=config.secrets_backend)
    return provider
