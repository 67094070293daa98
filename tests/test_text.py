from __future__ import annotations

import re

import pytest

from ghostpost.utils import guess_mime_type, is_image_extension, slugify, split_list


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Hello World!", "hello-world"),
        ("  Multiple   spaces -- here ", "multiple-spaces-here"),
        ("Café au Lait", "cafe-au-lait"),
        ("2024: A Year", "2024-a-year"),
        ("!!!", ""),
    ],
)
def test_slugify(value: str, expected: str) -> None:
    assert slugify(value) == expected


def test_slugify_is_idempotent() -> None:
    for value in ("Hello World!", "Ünïcode Tïtle", "a--b__c"):
        slug = slugify(value)
        assert slugify(slug) == slug
        assert re.fullmatch(r"[a-z0-9]+(-[a-z0-9]+)*|", slug)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("a, b ,c", ["a", "b", "c"]),
        ("[AI, 'Tools']", ["AI", "Tools"]),
        (" , ,", []),
        ("", []),
        (None, []),
    ],
)
def test_split_list(value, expected) -> None:
    assert split_list(value) == expected


def test_media_helpers() -> None:
    assert is_image_extension("PNG")
    assert is_image_extension(".webp")
    assert not is_image_extension("md")
    assert guess_mime_type("jpg") == "image/jpeg"
    assert guess_mime_type("xyz") == "application/octet-stream"
