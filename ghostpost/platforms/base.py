"""Base contracts for remote storage and user notification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Protocol


class StorageError(RuntimeError):
    """Raised when an object storage request fails."""


@dataclass(slots=True)
class MediaUploadResult:
    """Represents the outcome of a single media upload."""

    source_path: str
    remote_url: str
    object_key: str
    order: int
    caption: str = ""


class ObjectStore(Protocol):
    """Stores binary objects and exposes them under a public URL."""

    def is_configured(self) -> bool:
        """Return True when every credential needed for uploads is present."""

    def upload(
        self,
        key: str,
        body: bytes,
        *,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        """Store ``body`` under ``key`` and return its public URL."""

    def check_connection(self) -> bool:
        """Return True when the bucket is reachable with the configured credentials."""


class Notifier(Protocol):
    """Shows short messages to the person running the publish."""

    def notify(self, message: str, *, level: int = logging.INFO) -> None:
        """Report ``message``."""
