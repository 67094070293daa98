"""Cloudflare R2 adapters."""

from __future__ import annotations

from .storage import R2Storage

__all__ = ["R2Storage"]
