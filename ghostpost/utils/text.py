"""Text helpers shared by the publishing services."""

from __future__ import annotations

import re

import inflection

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
_QUOTES = "'\""


def slugify(value: str) -> str:
    """Return a URL-safe slug: lowercase ASCII letters, digits and single hyphens."""
    text = inflection.transliterate(str(value)).lower()
    text = _NON_SLUG_CHARS.sub("", text)
    text = _WHITESPACE.sub("-", text.strip())
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


def split_list(value: str | None) -> list[str]:
    """Split a comma separated setting such as ``"a, b"`` or ``"[a, b]"``."""
    if not value:
        return []
    trimmed = value.strip()
    if trimmed.startswith("[") and trimmed.endswith("]"):
        trimmed = trimmed[1:-1]
    items = (item.strip().strip(_QUOTES).strip() for item in trimmed.split(","))
    return [item for item in items if item]


__all__ = ["slugify", "split_list"]
