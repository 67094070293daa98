"""Settings package exports."""

from .loader import (
    POST_STATUSES,
    POST_VISIBILITIES,
    AppConfig,
    GhostSettings,
    HttpSettings,
    PublishSettings,
    StorageSettings,
    load_config,
)

__all__ = [
    "POST_STATUSES",
    "POST_VISIBILITIES",
    "AppConfig",
    "GhostSettings",
    "HttpSettings",
    "PublishSettings",
    "StorageSettings",
    "load_config",
]
