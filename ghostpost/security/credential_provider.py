"""Lookup of the Ghost Admin API key and the storage credentials.

Keys are dotted ``section.option`` names mirroring the config file, for
example ``ghost.admin_api_key`` or ``storage.secret_access_key``.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from configparser import ConfigParser
from pathlib import Path
from typing import Iterable, Mapping

ENV_PREFIX = "GHOSTPOST_"
SECRETS_FILE_ENV_VAR = "GHOSTPOST_SECRETS"
DEFAULT_SECRETS_FILE = "ghostpost.secrets.ini"


class SecretNotFoundError(KeyError):
    """No provider holds a non-blank value for the requested key."""


class SecretProvider(ABC):
    @abstractmethod
    def get_secret(self, key: str) -> str:
        """Return the value for ``key`` or raise :class:`SecretNotFoundError`."""

    def find_secret(self, key: str) -> str | None:
        try:
            return self.get_secret(key)
        except SecretNotFoundError:
            return None


def _non_blank(value: str | None, key: str) -> str:
    text = (value or "").strip()
    if not text:
        raise SecretNotFoundError(key)
    return text


class EnvSecretProvider(SecretProvider):
    """``ghost.admin_api_key`` is read from ``GHOSTPOST_GHOST_ADMIN_API_KEY``."""

    def __init__(self, prefix: str = ENV_PREFIX, env: Mapping[str, str] | None = None) -> None:
        self._prefix = prefix
        self._env = os.environ if env is None else env

    def variable_name(self, key: str) -> str:
        return f"{self._prefix}{key}".upper().replace(".", "_")

    def get_secret(self, key: str) -> str:
        name = self.variable_name(key)
        return _non_blank(self._env.get(name), name)


class FileSecretProvider(SecretProvider):
    """INI file with ``[ghost]`` and ``[storage]`` sections; a missing file holds nothing."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._parser = ConfigParser(interpolation=None)
        if self._path.is_file():
            self._parser.read(self._path, encoding="utf-8")

    def get_secret(self, key: str) -> str:
        section, _, option = key.partition(".")
        value = self._parser.get(section, option, fallback=None) if section and option else None
        return _non_blank(value, key)


class MappingSecretProvider(SecretProvider):
    """Fixed values, mostly for tests."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = dict(mapping)

    def get_secret(self, key: str) -> str:
        return _non_blank(self._mapping.get(key), key)


class ChainedSecretProvider(SecretProvider):
    """Asks each provider in turn; the first non-blank value wins."""

    def __init__(self, providers: Iterable[SecretProvider]) -> None:
        self._providers = tuple(providers)

    def get_secret(self, key: str) -> str:
        for provider in self._providers:
            value = provider.find_secret(key)
            if value is not None:
                return value
        raise SecretNotFoundError(key)


def default_secret_provider(config_dir: Path, env: Mapping[str, str] | None = None) -> SecretProvider:
    """Environment variables first, then ``GHOSTPOST_SECRETS`` or ``ghostpost.secrets.ini`` beside the config."""
    env = os.environ if env is None else env
    secrets_file = env.get(SECRETS_FILE_ENV_VAR)
    path = Path(secrets_file) if secrets_file else Path(config_dir) / DEFAULT_SECRETS_FILE
    return ChainedSecretProvider([EnvSecretProvider(env=env), FileSecretProvider(path)])


__all__ = [
    "ChainedSecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "MappingSecretProvider",
    "SecretNotFoundError",
    "SecretProvider",
    "default_secret_provider",
]
