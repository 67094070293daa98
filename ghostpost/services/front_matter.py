"""Split a note into its YAML front matter and markdown body."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Mapping

import yaml

from ghostpost.services.note_models import OPTIONAL_TEXT_FIELDS, NoteDocument, PostMetadata
from ghostpost.settings import POST_STATUSES, POST_VISIBILITIES
from ghostpost.utils import split_list

LOGGER = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_TRUTHY = {"true", "yes", "1"}
_BOOL_TAG = "tag:yaml.org,2002:bool"


class FrontMatterLoader(yaml.SafeLoader):
    """Safe loader that only reads ``true``/``false`` as booleans, as YAML 1.2 does.

    ``yes``, ``no``, ``on`` and ``off`` stay strings, so ``title: Yes`` is kept as written.
    """


FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
FrontMatterLoader.add_implicit_resolver(
    _BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)


def split_front_matter(text: str) -> NoteDocument:
    """Return the parsed metadata and the body that follows the block.

    Text without a leading ``---`` block, or whose block is not valid YAML,
    comes back unchanged as the body with empty metadata.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return NoteDocument(metadata=PostMetadata(), body=text)

    try:
        raw = yaml.load(match.group(1) or "", Loader=FrontMatterLoader)
    except yaml.YAMLError as exc:
        LOGGER.warning("Failed to parse front matter as YAML: %s", exc)
        return NoteDocument(metadata=PostMetadata(), body=text)

    if not isinstance(raw, Mapping):
        raw = {}
    return NoteDocument(metadata=parse_metadata(raw), body=text[match.end():])


def parse_metadata(raw: Mapping[str, Any]) -> PostMetadata:
    """Coerce a decoded front-matter mapping; unknown keys and bad values are dropped."""
    metadata = PostMetadata()

    for name in ("title", "slug", "published_at", *OPTIONAL_TEXT_FIELDS):
        text = _as_text(raw.get(name))
        if text:
            setattr(metadata, name, text)

    status = _as_text(raw.get("status")).lower()
    if status in POST_STATUSES:
        metadata.status = status
    elif status:
        LOGGER.debug("Ignoring unknown status %r", status)

    visibility = _as_text(raw.get("visibility")).lower()
    if visibility in POST_VISIBILITIES:
        metadata.visibility = visibility
    elif visibility:
        LOGGER.debug("Ignoring unknown visibility %r", visibility)

    if raw.get("featured") is not None:
        metadata.featured = parse_bool(raw["featured"])

    tags = _as_list(raw.get("tags"))
    if tags:
        metadata.tags = tags

    return metadata


def compose_document(metadata: PostMetadata, body: str) -> str:
    """Serialise ``metadata`` as a front-matter block in front of ``body``."""
    data = metadata.provided()
    if not data:
        return body
    block = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{block}---\n{body}"


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (list, dict)):
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value).strip().strip("\"'").strip()


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [_as_text(item) for item in value]
        return [item for item in items if item]
    return split_list(_as_text(value))
