"""Wiring of vault, storage, Ghost client and services for one invocation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..core import HttpClient
from ..platforms import Notifier
from ..platforms.ghost import GhostApiClient
from ..platforms.r2 import R2Storage
from ..services import ContentRenderer, GhostPublishWorkflow, ImageProcessor, PostBuilder
from ..settings import AppConfig
from ..utils.logging import LogNotifier, get_logger
from ..vault import LocalVault, ReferenceResolver, VaultFile

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class PublishContext:
    """Components shared by the CLI commands."""

    config: AppConfig
    vault: LocalVault
    workflow: GhostPublishWorkflow
    storage: R2Storage
    ghost: GhostApiClient | None


def build_ghost_client(config: AppConfig) -> GhostApiClient:
    http = HttpClient(http_settings=config.http)
    return GhostApiClient(config.ghost, http)


def build_context(
    config: AppConfig,
    *,
    vault_path: Path | None = None,
    with_ghost: bool = True,
    notifier: Notifier | None = None,
) -> PublishContext:
    vault = LocalVault(vault_path or config.vault_path)
    notifier = notifier or LogNotifier()
    resolver = ReferenceResolver(vault)
    storage = R2Storage(config.storage)

    ghost: GhostApiClient | None = None
    if with_ghost and config.ghost.is_configured():
        ghost = build_ghost_client(config)

    workflow = GhostPublishWorkflow(
        vault,
        settings=config.publish,
        image_processor=ImageProcessor(
            resolver,
            vault,
            storage,
            image_path=config.storage.image_path,
            notifier=notifier,
        ),
        renderer=ContentRenderer(
            resolver,
            vault,
            convert_wiki_links=config.publish.convert_wiki_links,
            add_source_link=config.publish.add_source_link,
            notifier=notifier,
        ),
        post_builder=PostBuilder(config.publish),
        client=ghost,
        notifier=notifier,
    )
    LOGGER.debug(
        "Publishing context ready",
        extra={
            "event": "app.context",
            "vault": str(vault.root),
            "storage": storage.is_configured(),
            "ghost": ghost is not None,
        },
    )
    return PublishContext(config=config, vault=vault, workflow=workflow, storage=storage, ghost=ghost)


def locate_note(vault: LocalVault, note: str) -> VaultFile:
    """Find ``note`` as a filesystem path or as a vault-relative path."""
    found = vault.file_for(Path(note))
    if found is None:
        found = vault.get_by_exact_path(note)
    if found is None:
        raise FileNotFoundError(f"Note not found in vault {vault.root}: {note}")
    return found
