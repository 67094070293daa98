"""Data models for the note publishing workflow."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from ghostpost.platforms import MediaUploadResult
from ghostpost.vault import VaultFile

# Free-text front-matter keys copied to the post when non-blank.
OPTIONAL_TEXT_FIELDS = (
    "excerpt",
    "feature_image",
    "meta_title",
    "meta_description",
    "og_title",
    "og_description",
    "og_image",
    "twitter_title",
    "twitter_description",
    "twitter_image",
    "custom_excerpt",
    "codeinjection_head",
    "codeinjection_foot",
)


@dataclass(slots=True)
class PostMetadata:
    """Front-matter fields understood by the publisher.

    ``None`` means "not provided"; an empty string is treated the same way
    when the post is assembled.
    """

    title: str | None = None
    slug: str | None = None
    status: str | None = None
    visibility: str | None = None
    featured: bool | None = None
    published_at: str | None = None
    tags: list[str] | None = None
    excerpt: str | None = None
    feature_image: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    twitter_image: str | None = None
    custom_excerpt: str | None = None
    codeinjection_head: str | None = None
    codeinjection_foot: str | None = None

    def provided(self) -> dict[str, Any]:
        """Return only the fields that were set, in declaration order."""
        values: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                values[item.name] = value
        return values

    def is_empty(self) -> bool:
        return not self.provided()


@dataclass(slots=True)
class NoteDocument:
    metadata: PostMetadata
    body: str


@dataclass(slots=True)
class ImageProcessingOptions:
    upload_enabled: bool = True
    replace_in_place: bool = False


@dataclass(slots=True)
class ImageProcessingResult:
    content: str
    uploaded_count: int
    uploads: list[MediaUploadResult] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PublishResult:
    """Outcome of a publishing attempt."""

    action: str
    post_id: str
    url: str
    payload: dict[str, Any]
    note: VaultFile
    uploads: list[MediaUploadResult] = field(default_factory=list)
