"""Resolve link and embed targets against a vault."""

from __future__ import annotations

from .base import FileGraph, VaultFile

# Extensions tried, in order, for embeds written without one (``![[diagram]]``).
COMPLETION_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp", "svg", "bmp")


class ReferenceResolver:
    """Locates the file a link or embed points to.

    Lookup order, first hit wins:

    1. exact vault path
    2. link resolution relative to the current note
    3. link resolution from the vault root
    4. steps 1-2 again with each image extension appended
    5. case-insensitive match on file name, then full path, then path substring
    """

    def __init__(self, graph: FileGraph) -> None:
        self._graph = graph

    def resolve(self, target: str, current: VaultFile | None = None) -> VaultFile | None:
        target = target.strip()
        if not target:
            return None

        found = self._direct(target, current)
        if found is not None:
            return found

        root = self._graph.resolve_link_path(target, "")
        if root is not None:
            return root

        for extension in COMPLETION_EXTENSIONS:
            found = self._direct(f"{target}.{extension}", current)
            if found is not None:
                return found

        return self._fuzzy(target)

    def _direct(self, target: str, current: VaultFile | None) -> VaultFile | None:
        exact = self._graph.get_by_exact_path(target)
        if exact is not None:
            return exact
        if current is not None:
            return self._graph.resolve_link_path(target, current.path)
        return None

    def _fuzzy(self, target: str) -> VaultFile | None:
        needle = target.lower()
        files = self._graph.list_files()
        for file in files:
            if file.name.lower() == needle:
                return file
        for file in files:
            if file.path.lower() == needle:
                return file
        for file in files:
            if needle in file.path.lower():
                return file
        return None
