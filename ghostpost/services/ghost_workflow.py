"""Workflow for publishing a note to Ghost."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from ghostpost.platforms import Notifier
from ghostpost.platforms.ghost import GhostApiClient, GhostApiError, GhostPost, clean_post_data
from ghostpost.services.front_matter import split_front_matter
from ghostpost.services.images import ImageProcessor
from ghostpost.services.note_models import ImageProcessingOptions, ImageProcessingResult, PublishResult
from ghostpost.services.post_builder import PostBuilder
from ghostpost.services.renderer import ContentRenderer
from ghostpost.settings import PublishSettings
from ghostpost.utils import LogNotifier
from ghostpost.vault import FileGraph, VaultFile

LOGGER = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
DRY_RUN = "dry-run"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


@dataclass(slots=True)
class ReconcileOutcome:
    action: str
    post: dict[str, Any]
    payload: dict[str, Any]


class PublishReconciler:
    """Creates the post, or updates it when one with the same slug already exists."""

    def __init__(self, client: GhostApiClient, settings: PublishSettings) -> None:
        self._client = client
        self._settings = settings

    def prepare_payload(self, post: GhostPost) -> dict[str, Any]:
        return clean_post_data(
            post.to_payload(),
            default_status=self._settings.default_status,
            default_visibility=self._settings.default_visibility,
        )

    def reconcile(self, post: GhostPost) -> ReconcileOutcome:
        payload = self.prepare_payload(post)
        identifier = payload.get("slug") or payload["title"]

        existing = self._client.find_post(identifier)
        if existing and existing.get("id"):
            if existing.get("updated_at"):
                payload["updated_at"] = existing["updated_at"]
            LOGGER.info("Updating Ghost post %s (%s)", existing["id"], identifier)
            remote = self._client.update_post(existing["id"], payload)
            return ReconcileOutcome(action=UPDATED, post=remote, payload=payload)

        LOGGER.info("Creating Ghost post %s", identifier)
        remote = self._client.create_post(payload)
        return ReconcileOutcome(action=CREATED, post=remote, payload=payload)


class GhostPublishWorkflow:
    """Coordinates front matter parsing, image upload, rendering and reconciliation."""

    def __init__(
        self,
        graph: FileGraph,
        *,
        settings: PublishSettings,
        image_processor: ImageProcessor,
        renderer: ContentRenderer,
        post_builder: PostBuilder,
        client: GhostApiClient | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._graph = graph
        self._settings = settings
        self._image_processor = image_processor
        self._renderer = renderer
        self._post_builder = post_builder
        self._client = client
        self._reconciler = PublishReconciler(client, settings) if client is not None else None
        self._notifier = notifier or LogNotifier()

    def publish(self, note: VaultFile, *, dry_run: bool = False) -> PublishResult:
        if not dry_run and self._reconciler is None:
            raise RuntimeError("Ghost site URL and Admin API key must be configured to publish")

        document = split_front_matter(self._graph.read_text(note))
        title = document.metadata.title or note.basename

        options = ImageProcessingOptions(upload_enabled=not dry_run, replace_in_place=False)
        attempted: dict[str, str | None] = {}
        images = self._image_processor.process(document.body, note, title, options, attempted=attempted)
        uploads = list(images.uploads)

        def embedded_images(body: str, source: VaultFile) -> str:
            inlined = self._image_processor.process(body, source, title, options, attempted=attempted)
            uploads.extend(inlined.uploads)
            return inlined.content

        html = self._renderer.render(images.content, note, embedded_images=embedded_images)
        if uploads:
            self._notifier.notify(f"Uploaded {_plural(len(uploads), 'image')} to storage")

        existing_tags: list[dict[str, Any]] = []
        if self._client is not None and self._settings.reuse_remote_tags and not dry_run:
            existing_tags = self._client.list_tags()

        post = self._post_builder.build(note.basename, document.metadata, html, existing_tags)

        if dry_run or self._reconciler is None:
            payload = clean_post_data(
                post.to_payload(),
                default_status=self._settings.default_status,
                default_visibility=self._settings.default_visibility,
            )
            return PublishResult(action=DRY_RUN, post_id="", url="", payload=payload, note=note)

        LOGGER.debug("Prepared Ghost post: %s", json.dumps(post.to_payload(), ensure_ascii=False))
        outcome = self._reconciler.reconcile(post)
        post_id = str(outcome.post.get("id", ""))
        if not post_id:
            raise GhostApiError("Ghost did not return a post id", details={"keys": sorted(outcome.post)})

        if outcome.action == UPDATED:
            self._notifier.notify(f'Post "{post.title}" updated successfully on Ghost')
        else:
            self._notifier.notify(f'Post "{post.title}" published to Ghost')

        return PublishResult(
            action=outcome.action,
            post_id=post_id,
            url=str(outcome.post.get("url", "")),
            payload=outcome.payload,
            note=note,
            uploads=uploads,
        )

    def upload_images(self, note: VaultFile) -> ImageProcessingResult:
        """Upload the note's local images and rewrite the note to point at them."""
        raw = self._graph.read_text(note)
        if not self._image_processor.upload_available:
            self._notifier.notify("Enable storage and fill in all credentials first", level=logging.WARNING)
            return ImageProcessingResult(content=raw, uploaded_count=0)

        document = split_front_matter(raw)
        front = raw[: len(raw) - len(document.body)]
        title = document.metadata.title or note.basename

        result = self._image_processor.process(
            document.body,
            note,
            title,
            ImageProcessingOptions(upload_enabled=True, replace_in_place=True),
        )
        result.content = front + result.content

        if result.uploaded_count > 0:
            self._graph.write_text(note, result.content)
            self._notifier.notify(f"Replaced {_plural(result.uploaded_count, 'image')} with storage URLs")
        else:
            self._notifier.notify("No local images were uploaded")
        return result
