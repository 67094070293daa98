"""Filesystem-backed vault."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Sequence

from .base import VaultFile

_SKIP_DIRS = {".obsidian", ".git", ".trash"}


def _normalize(path: str) -> str | None:
    cleaned = path.replace("\\", "/").strip().lstrip("/")
    if not cleaned:
        return None
    normalized = posixpath.normpath(cleaned)
    if normalized == "." or normalized.startswith("../") or normalized == "..":
        return None
    return normalized


class LocalVault:
    """Indexes a directory tree and resolves links the way Obsidian does.

    The index is built lazily on first use; call :meth:`refresh` after adding
    files on disk.
    """

    def __init__(self, root: Path, *, name: str | None = None) -> None:
        self._root = Path(root).resolve()
        self._name = name or self._root.name
        self._index: dict[str, VaultFile] | None = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def name(self) -> str:
        return self._name

    def refresh(self) -> None:
        self._index = None

    def file_for(self, path: Path) -> VaultFile | None:
        """Return the vault file for an on-disk path (absolute or relative to the cwd)."""
        try:
            relative = Path(path).resolve().relative_to(self._root)
        except ValueError:
            return None
        return self.get_by_exact_path(relative.as_posix())

    def get_by_exact_path(self, path: str) -> VaultFile | None:
        normalized = _normalize(path)
        if normalized is None:
            return None
        return self._files().get(normalized)

    def resolve_link_path(self, link: str, context_path: str) -> VaultFile | None:
        target = link.split("#", 1)[0].strip()
        if not target:
            return None
        names = [target]
        if "." not in target.rsplit("/", 1)[-1]:
            names.append(f"{target}.md")

        files = self._files()
        if "/" in target.strip("/"):
            folder = posixpath.dirname(context_path)
            for name in names:
                relative = _normalize(posixpath.join(folder, name))
                if relative and relative in files:
                    return files[relative]
            for name in names:
                exact = _normalize(name)
                if exact and exact in files:
                    return files[exact]
            for name in names:
                suffix = "/" + name.strip("/")
                matches = [file for path, file in files.items() if path.endswith(suffix)]
                if matches:
                    return min(matches, key=lambda item: (len(item.path), item.path))
            return None

        for name in names:
            matches = [file for file in files.values() if file.name == name]
            if not matches:
                continue
            folder = posixpath.dirname(context_path)
            for match in matches:
                if match.parent == folder:
                    return match
            return min(matches, key=lambda item: (len(item.path), item.path))
        return None

    def list_files(self) -> Sequence[VaultFile]:
        return list(self._files().values())

    def read_text(self, file: VaultFile) -> str:
        return (self._root / file.path).read_text(encoding="utf-8")

    def read_binary(self, file: VaultFile) -> bytes:
        return (self._root / file.path).read_bytes()

    def write_text(self, file: VaultFile, data: str) -> None:
        (self._root / file.path).write_text(data, encoding="utf-8")

    def _files(self) -> dict[str, VaultFile]:
        if self._index is None:
            index: dict[str, VaultFile] = {}
            for path in sorted(self._root.rglob("*")):
                if not path.is_file():
                    continue
                relative = path.relative_to(self._root)
                if any(part in _SKIP_DIRS for part in relative.parts[:-1]):
                    continue
                key = relative.as_posix()
                index[key] = VaultFile(key)
            self._index = index
        return self._index
