"""Discover local images in a note, upload them once and rewrite references."""

from __future__ import annotations

import html
import logging
import posixpath
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable
from urllib.parse import unquote

from ghostpost.platforms import MediaUploadResult, Notifier, ObjectStore, StorageError
from ghostpost.services.note_models import ImageProcessingOptions, ImageProcessingResult
from ghostpost.utils import LogNotifier, guess_mime_type, is_image_extension
from ghostpost.vault import FileGraph, ReferenceResolver, VaultFile

LOGGER = logging.getLogger(__name__)

EMBED_PATTERN = re.compile(r"!\[\[([^\]]+?)\]\]")
MARKDOWN_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
HEADING_PATTERN = re.compile(r"^#+\s+(.*)", re.MULTILINE)

_REMOTE_SOURCE = re.compile(r"^(https?:|data:)", re.IGNORECASE)
_SIZE_HINT = re.compile(r"^\d+(x\d+)?$")
_LINK_TITLE = re.compile(r"""^(.*?)\s+(?:"([^"]*)"|'([^']*)')$""")
_KEY_UNSAFE = re.compile(r"[^a-z0-9\-_.]")


@dataclass(slots=True)
class ImageReference:
    """One image-like token found in the original body."""

    start: int
    end: int
    target: str
    label: str
    embed: bool


@dataclass(slots=True)
class _Heading:
    position: int
    text: str


def find_image_references(body: str) -> list[ImageReference]:
    """Embeds first, then markdown images, each in document order."""
    references: list[ImageReference] = []
    taken: list[tuple[int, int]] = []

    for match in EMBED_PATTERN.finditer(body):
        target, _, label = match.group(1).partition("|")
        references.append(ImageReference(match.start(), match.end(), target.strip(), label.strip(), True))
        taken.append(match.span())

    for match in MARKDOWN_IMAGE_PATTERN.finditer(body):
        if any(start < match.end() and match.start() < end for start, end in taken):
            continue
        source, title = _split_link_destination(match.group(2))
        label = match.group(1).strip() or title
        references.append(ImageReference(match.start(), match.end(), source, label, False))

    return references


def _split_link_destination(raw: str) -> tuple[str, str]:
    text = raw.strip()
    if text.startswith("<"):
        closing = text.find(">")
        if closing != -1:
            return text[1:closing].strip(), _strip_title(text[closing + 1 :])
    titled = _LINK_TITLE.match(text)
    if titled:
        return titled.group(1).strip(), (titled.group(2) or titled.group(3) or "").strip()
    return text, ""


def _strip_title(rest: str) -> str:
    rest = rest.strip()
    if len(rest) >= 2 and rest[0] == rest[-1] and rest[0] in "\"'":
        return rest[1:-1].strip()
    return ""


def key_slug(value: str) -> str:
    """Slug used in object keys; keeps dots and underscores, drops the extension."""
    text = value.lower()
    text = re.sub(r"\.[^/.]+$", "", text)
    text = _KEY_UNSAFE.sub("-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def normalize_prefix(path: str) -> str:
    return re.sub(r"/+", "/", path.strip()).strip("/")


def figure_html(url: str, caption: str) -> str:
    text = html.escape(caption, quote=True)
    return f'<figure><img src="{html.escape(url, quote=True)}" alt="{text}"><figcaption>{text}</figcaption></figure>'


class ImageProcessor:
    """Rewrites image references in a markdown body.

    Every distinct file is uploaded at most once per ``attempted`` cache,
    which is one call to :meth:`process` unless the caller shares it; a failed
    upload also counts as that file's attempt.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        graph: FileGraph,
        store: ObjectStore | None,
        *,
        image_path: str = "images",
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        self._resolver = resolver
        self._graph = graph
        self._store = store
        self._prefix = normalize_prefix(image_path)
        self._notifier = notifier or LogNotifier()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._token_factory = token_factory or (lambda: secrets.token_hex(3))

    @property
    def upload_available(self) -> bool:
        return self._store is not None and self._store.is_configured()

    def process(
        self,
        body: str,
        note: VaultFile | None,
        title: str,
        options: ImageProcessingOptions | None = None,
        *,
        attempted: dict[str, str | None] | None = None,
    ) -> ImageProcessingResult:
        """Rewrite the image references in ``body``.

        ``attempted`` maps vault paths to their uploaded URL (``None`` after a
        failure); pass the same dict to several calls to share it across one run.
        """
        options = options or ImageProcessingOptions()
        attempted = {} if attempted is None else attempted
        upload_active = options.upload_enabled and self.upload_available
        headings = [
            _Heading(match.start(), match.group(1).strip()) for match in HEADING_PATTERN.finditer(body)
        ]

        uploads: list[MediaUploadResult] = []
        failed: list[str] = []
        edits: list[tuple[int, int, str]] = []

        for reference in find_image_references(body):
            target = reference.target
            if not target or _REMOTE_SOURCE.match(target):
                continue

            file = self._resolver.resolve(target, note)
            if file is None and not reference.embed and unquote(target) != target:
                file = self._resolver.resolve(unquote(target), note)
            if file is None:
                if options.replace_in_place:
                    continue
                if reference.embed and not is_image_extension(posixpath.splitext(target)[1]):
                    # Probably a note embed; the renderer reports it if it is missing too.
                    continue
                LOGGER.warning("Image not found: %s", target)
                edits.append((reference.start, reference.end, f"*[Image not found: {target}]*"))
                continue

            if not is_image_extension(file.extension):
                continue

            heading = self._heading_for(headings, reference.start, title)
            caption = reference.label
            if reference.embed and _SIZE_HINT.match(caption):
                caption = ""
            caption = caption or f"{heading} image"

            url: str | None = None
            if upload_active:
                if file.path not in attempted:
                    attempted[file.path] = self._upload(file, heading, caption, len(attempted) + 1, uploads)
                    if attempted[file.path] is None:
                        failed.append(file.path)
                url = attempted[file.path]

            if url:
                replacement = figure_html(url, caption)
            else:
                fallback = file.path if options.replace_in_place else target
                if " " in fallback:
                    fallback = f"<{fallback}>"
                replacement = f"![{caption}]({fallback})"
            edits.append((reference.start, reference.end, replacement))

        content = body
        for start, end, replacement in sorted(edits, key=lambda edit: edit[0], reverse=True):
            content = content[:start] + replacement + content[end:]

        return ImageProcessingResult(
            content=content,
            uploaded_count=len(uploads),
            uploads=uploads,
            failed=failed,
        )

    def build_object_key(self, heading: str, extension: str, counter: int) -> str:
        base = key_slug(heading) or "image"
        stamp = self._clock().astimezone(UTC).strftime("%Y%m%d%H%M%S")
        name = f"{base}-{counter}-{stamp}-{self._token_factory()}.{extension}"
        return f"{self._prefix}/{name}" if self._prefix else name

    @staticmethod
    def _heading_for(headings: list[_Heading], position: int, title: str) -> str:
        current = title
        for heading in headings:
            if heading.position >= position:
                break
            current = heading.text
        return current

    def _upload(
        self,
        file: VaultFile,
        heading: str,
        caption: str,
        counter: int,
        uploads: list[MediaUploadResult],
    ) -> str | None:
        assert self._store is not None
        key = self.build_object_key(heading, file.extension, counter)
        try:
            body = self._graph.read_binary(file)
            url = self._store.upload(
                key,
                body,
                content_type=guess_mime_type(file.extension),
                metadata={"caption": caption} if caption else None,
            )
        except (StorageError, OSError) as exc:
            LOGGER.error("Failed to upload %s: %s", file.path, exc)
            self._notifier.notify(f"Failed to upload image {file.name}: {exc}", level=logging.WARNING)
            return None

        uploads.append(
            MediaUploadResult(
                source_path=file.path,
                remote_url=url,
                object_key=key,
                order=counter,
                caption=caption,
            )
        )
        return url
