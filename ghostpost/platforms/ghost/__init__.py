"""Ghost platform adapters."""

from __future__ import annotations

from .api import GhostApiClient, GhostApiError, GhostValidationError
from .credentials import GhostAdminKey, GhostTokenSigner
from .models import (
    EmptyContentError,
    EmptyTitleError,
    GhostPost,
    GhostTag,
    PostValidationError,
    clean_post_data,
    normalize_timestamp,
    prune_empty,
)

__all__ = [
    "EmptyContentError",
    "EmptyTitleError",
    "GhostAdminKey",
    "GhostApiClient",
    "GhostApiError",
    "GhostPost",
    "GhostTag",
    "GhostTokenSigner",
    "GhostValidationError",
    "PostValidationError",
    "clean_post_data",
    "normalize_timestamp",
    "prune_empty",
]
