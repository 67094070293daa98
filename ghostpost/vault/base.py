"""File graph contracts used by the resolver and the publishing services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True, slots=True)
class VaultFile:
    """A file in the vault, identified by its vault-relative POSIX path."""

    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def basename(self) -> str:
        name = self.name
        stem, dot, _ = name.rpartition(".")
        return stem if dot and stem else name

    @property
    def extension(self) -> str:
        name = self.name
        stem, dot, ext = name.rpartition(".")
        return ext.lower() if dot and stem else ""

    @property
    def parent(self) -> str:
        return self.path.rpartition("/")[0]


class FileGraph(Protocol):
    """Read/write access to the notes and attachments of a vault."""

    @property
    def name(self) -> str:
        """Human readable vault name."""

    def get_by_exact_path(self, path: str) -> VaultFile | None:
        """Return the file stored at exactly ``path``."""

    def resolve_link_path(self, link: str, context_path: str) -> VaultFile | None:
        """Resolve a link the way the note editor would from ``context_path``."""

    def list_files(self) -> Sequence[VaultFile]:
        """Return every file in a stable order."""

    def read_text(self, file: VaultFile) -> str:
        """Return the file decoded as UTF-8."""

    def read_binary(self, file: VaultFile) -> bytes:
        """Return the raw file contents."""

    def write_text(self, file: VaultFile, data: str) -> None:
        """Replace the file contents."""
