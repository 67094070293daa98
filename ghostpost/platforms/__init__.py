"""Platform integration package."""

from __future__ import annotations

from .base import MediaUploadResult, Notifier, ObjectStore, StorageError

__all__ = [
    "MediaUploadResult",
    "Notifier",
    "ObjectStore",
    "StorageError",
]
