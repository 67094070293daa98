"""Helpers for loading configuration from ``ghostpost.toml``."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..security import SecretProvider, default_secret_provider

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "ghostpost.toml"
CONFIG_ENV_VAR = "GHOSTPOST_CONFIG"

POST_STATUSES = ("draft", "published", "scheduled")
POST_VISIBILITIES = ("public", "members", "paid")

_SECRET_KEYS = (
    ("ghost", "admin_api_key"),
    ("storage", "access_key_id"),
    ("storage", "secret_access_key"),
)


@dataclass(slots=True)
class HttpSettings:
    timeout: float = 30.0
    max_attempts: int = 3
    backoff_factor: float = 1.5


@dataclass(slots=True)
class GhostSettings:
    site_url: str = ""
    admin_api_key: str = ""

    @property
    def admin_api_url(self) -> str:
        return f"{self.site_url.strip().rstrip('/')}/ghost/api/admin"

    def is_configured(self) -> bool:
        return bool(self.site_url.strip() and self.admin_api_key.strip())


@dataclass(slots=True)
class PublishSettings:
    default_status: str = "draft"
    default_visibility: str = "public"
    default_author: str = ""
    default_tags: str = ""
    convert_wiki_links: bool = True
    add_source_link: bool = False
    reuse_remote_tags: bool = True


@dataclass(slots=True)
class StorageSettings:
    """Cloudflare R2 bucket used for image uploads."""

    enabled: bool = False
    account_id: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    custom_domain: str = ""
    image_path: str = "images"

    def is_complete(self) -> bool:
        """Uploads are available only when enabled and every credential is filled in."""
        required = (self.account_id, self.access_key_id, self.secret_access_key, self.bucket)
        return self.enabled and all(value.strip() for value in required)

    @property
    def endpoint_url(self) -> str:
        return f"https://{self.account_id.strip()}.r2.cloudflarestorage.com"


@dataclass(slots=True)
class AppConfig:
    vault_path: Path = field(default_factory=Path.cwd)
    debug: bool = False
    ghost: GhostSettings = field(default_factory=GhostSettings)
    publish: PublishSettings = field(default_factory=PublishSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    http: HttpSettings = field(default_factory=HttpSettings)


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit), True
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value), True
    return Path.cwd() / DEFAULT_CONFIG_NAME, False


def _load_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {path}")
        return {}
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "yes", "1", "on"}


def _as_str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _choice(value: Any, allowed: tuple[str, ...], default: str, *, name: str) -> str:
    text = _as_str(value).lower()
    if not text:
        return default
    if text not in allowed:
        LOGGER.warning("Ignoring invalid %s %r; using %r", name, text, default)
        return default
    return text


def _fill_secrets(data: dict[str, Any], secrets: SecretProvider) -> None:
    for section, option in _SECRET_KEYS:
        table = data.setdefault(section, {})
        if _as_str(table.get(option)):
            continue
        value = secrets.find_secret(f"{section}.{option}")
        if value:
            table[option] = value


def _resolve_vault_path(value: Any, *, base: Path) -> Path:
    text = _as_str(value)
    if not text:
        return base
    candidate = Path(text).expanduser()
    return candidate if candidate.is_absolute() else base / candidate


def load_config(
    config_path: str | os.PathLike[str] | None = None,
    *,
    secrets: SecretProvider | None = None,
) -> AppConfig:
    """Load ``ghostpost.toml``; blank secrets are filled from the secret provider chain."""
    path, required = _config_path(config_path)
    data = _load_toml(path, required=required)
    base_dir = path.parent.resolve()

    _fill_secrets(data, secrets or default_secret_provider(base_dir))

    app_section = data.get("app", {})
    ghost_section = data.get("ghost", {})
    publish_section = data.get("publish", {})
    storage_section = data.get("storage", {})
    http_section = data.get("http", {})

    ghost = GhostSettings(
        site_url=_as_str(ghost_section.get("site_url")).rstrip("/"),
        admin_api_key=_as_str(ghost_section.get("admin_api_key")),
    )

    publish = PublishSettings(
        default_status=_choice(
            publish_section.get("default_status"), POST_STATUSES, "draft", name="default_status"
        ),
        default_visibility=_choice(
            publish_section.get("default_visibility"),
            POST_VISIBILITIES,
            "public",
            name="default_visibility",
        ),
        default_author=_as_str(publish_section.get("default_author")),
        default_tags=_as_str(publish_section.get("default_tags")),
        convert_wiki_links=_as_bool(publish_section.get("convert_wiki_links"), True),
        add_source_link=_as_bool(publish_section.get("add_source_link"), False),
        reuse_remote_tags=_as_bool(publish_section.get("reuse_remote_tags"), True),
    )

    storage = StorageSettings(
        enabled=_as_bool(storage_section.get("enabled"), False),
        account_id=_as_str(storage_section.get("account_id")),
        access_key_id=_as_str(storage_section.get("access_key_id")),
        secret_access_key=_as_str(storage_section.get("secret_access_key")),
        bucket=_as_str(storage_section.get("bucket")),
        custom_domain=_as_str(storage_section.get("custom_domain")).strip("/"),
        image_path=_as_str(storage_section.get("image_path")) or "images",
    )

    http = HttpSettings(
        timeout=float(http_section.get("timeout", 30)),
        max_attempts=max(1, int(http_section.get("max_attempts", 3))),
        backoff_factor=float(http_section.get("backoff_factor", 1.5)),
    )

    return AppConfig(
        vault_path=_resolve_vault_path(app_section.get("vault_path"), base=base_dir),
        debug=_as_bool(app_section.get("debug"), False),
        ghost=ghost,
        publish=publish,
        storage=storage,
        http=http,
    )
