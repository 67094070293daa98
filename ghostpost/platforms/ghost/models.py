"""Ghost post schema and payload normalisation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Mapping, Union

from ...settings import POST_STATUSES, POST_VISIBILITIES

LOGGER = logging.getLogger(__name__)

CONTENT_FIELDS = ("html", "lexical", "mobiledoc")
DATE_FIELDS = ("published_at",)

AuthorRef = Union[str, dict[str, str]]


class PostValidationError(ValueError):
    """Raised when a post is missing data Ghost requires."""


class EmptyTitleError(PostValidationError):
    """The post title is blank."""


class EmptyContentError(PostValidationError):
    """The rendered post body is blank."""


@dataclass(slots=True)
class GhostTag:
    name: str
    slug: str | None = None

    def as_dict(self) -> dict[str, str]:
        data = {"name": self.name}
        if self.slug:
            data["slug"] = self.slug
        return data


@dataclass(slots=True)
class GhostPost:
    """A post as sent to the Ghost Admin API.

    ``optional`` holds the free-text fields (excerpt, SEO and social fields,
    code injection) that were actually provided; absent keys are never sent.
    """

    title: str
    html: str
    status: str
    slug: str | None = None
    visibility: str | None = None
    featured: bool = False
    published_at: str | None = None
    updated_at: str | None = None
    tags: list[GhostTag] = field(default_factory=list)
    authors: list[AuthorRef] = field(default_factory=list)
    optional: dict[str, str] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "html": self.html,
            "status": self.status,
            "slug": self.slug,
            "visibility": self.visibility,
            "featured": self.featured,
            "published_at": self.published_at,
            "updated_at": self.updated_at,
            "tags": [tag.as_dict() for tag in self.tags],
            "authors": list(self.authors),
        }
        payload.update(self.optional)
        return prune_empty(payload)


def prune_empty(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop ``None``, empty strings and empty collections."""
    return {
        key: value
        for key, value in data.items()
        if value is not None and value != "" and not (isinstance(value, (list, tuple, dict)) and not value)
    }


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def normalize_timestamp(value: Any) -> str | None:
    """``2024-01-05`` -> ``2024-01-05T00:00:00.000Z``; ``None`` when unparseable."""
    parsed = parse_timestamp(value)
    return format_timestamp(parsed) if parsed is not None else None


def clean_post_data(
    payload: Mapping[str, Any],
    *,
    default_status: str = "draft",
    default_visibility: str = "public",
) -> dict[str, Any]:
    """Prune empty fields, validate required ones and normalise enums and dates."""
    clean = prune_empty(payload)

    if not str(clean.get("title", "")).strip():
        raise EmptyTitleError("Post title is required")

    if not any(str(clean.get(name, "")).strip() for name in CONTENT_FIELDS):
        raise EmptyContentError("Post content (html, lexical or mobiledoc) is required")

    if clean.get("status") not in POST_STATUSES:
        clean["status"] = default_status

    if "visibility" in clean and clean["visibility"] not in POST_VISIBILITIES:
        clean["visibility"] = default_visibility

    for name in DATE_FIELDS:
        if name not in clean:
            continue
        normalized = normalize_timestamp(clean[name])
        if normalized is None:
            LOGGER.warning("Dropping unparseable %s value %r", name, clean[name])
            del clean[name]
        else:
            clean[name] = normalized

    return clean
