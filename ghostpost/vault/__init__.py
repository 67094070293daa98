"""Vault access: file graph contract, filesystem vault and reference resolution."""

from __future__ import annotations

from .base import FileGraph, VaultFile
from .local import LocalVault
from .resolver import ReferenceResolver

__all__ = [
    "FileGraph",
    "LocalVault",
    "ReferenceResolver",
    "VaultFile",
]
