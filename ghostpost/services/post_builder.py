"""Assemble a Ghost post from note metadata, rendered HTML and defaults."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from ghostpost.platforms.ghost import EmptyContentError, EmptyTitleError, GhostPost, GhostTag
from ghostpost.platforms.ghost.models import AuthorRef, parse_timestamp
from ghostpost.services.note_models import OPTIONAL_TEXT_FIELDS, PostMetadata
from ghostpost.settings import POST_STATUSES, POST_VISIBILITIES, PublishSettings
from ghostpost.utils import slugify, split_list

LOGGER = logging.getLogger(__name__)


class PostBuilder:
    """Builds the :class:`GhostPost` for a note."""

    def __init__(self, settings: PublishSettings) -> None:
        self._settings = settings

    def build(
        self,
        basename: str,
        metadata: PostMetadata,
        html: str,
        existing_tags: Sequence[Mapping[str, Any]] = (),
    ) -> GhostPost:
        """
        Builds the post.

        Args:
            basename: File name of the note without extension, used when the
                      front matter has no title.
            metadata: Parsed front matter.
            html: Rendered post body.
            existing_tags: Tags already known to Ghost; matching names reuse
                           their canonical name and slug.

        Returns:
            The post ready to be cleaned and sent.
        """
        title = (metadata.title or basename or "").strip()
        if not title:
            raise EmptyTitleError("Post title cannot be empty")
        if not html.strip():
            raise EmptyContentError("Post content cannot be empty")

        status = metadata.status if metadata.status in POST_STATUSES else self._settings.default_status
        visibility = (
            metadata.visibility
            if metadata.visibility in POST_VISIBILITIES
            else self._settings.default_visibility
        )

        published_at = None
        if metadata.published_at and parse_timestamp(metadata.published_at) is not None:
            published_at = metadata.published_at.strip()
        elif metadata.published_at:
            LOGGER.warning("Ignoring unparseable published_at %r", metadata.published_at)

        optional: dict[str, str] = {}
        for name in OPTIONAL_TEXT_FIELDS:
            value = getattr(metadata, name)
            if isinstance(value, str) and value.strip():
                optional[name] = value.strip()

        return GhostPost(
            title=title,
            html=html,
            status=status,
            slug=(metadata.slug or "").strip() or slugify(title),
            visibility=visibility,
            featured=bool(metadata.featured),
            published_at=published_at,
            tags=self.collect_tags(metadata.tags or [], existing_tags),
            authors=self.author_references(),
            optional=optional,
        )

    def collect_tags(
        self,
        note_tags: Iterable[str],
        existing_tags: Sequence[Mapping[str, Any]] = (),
    ) -> list[GhostTag]:
        """Merge note tags with the default tags, case-insensitively, first seen wins."""
        known = {
            str(tag.get("name", "")).lower(): tag for tag in existing_tags if tag.get("name")
        }
        tags: list[GhostTag] = []
        seen: set[str] = set()
        for value in [*note_tags, *split_list(self._settings.default_tags)]:
            clean = str(value).strip()
            key = clean.lower()
            if not clean or key in seen:
                continue
            seen.add(key)
            remote = known.get(key)
            if remote is not None:
                tags.append(GhostTag(name=str(remote["name"]), slug=remote.get("slug") or slugify(clean)))
            else:
                tags.append(GhostTag(name=clean, slug=slugify(clean) or None))
        return tags

    def author_references(self) -> list[AuthorRef]:
        authors: list[AuthorRef] = []
        for author in split_list(self._settings.default_author):
            if "@" in author:
                authors.append(author)
            else:
                authors.append({"slug": slugify(author)})
        return authors
