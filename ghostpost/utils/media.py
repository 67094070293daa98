"""Image extension and MIME type helpers."""

from __future__ import annotations

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "tiff", "tif", "ico")

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "ico": "image/x-icon",
}


def is_image_extension(extension: str) -> bool:
    return extension.lower().lstrip(".") in IMAGE_EXTENSIONS


def guess_mime_type(extension: str) -> str:
    return _MIME_TYPES.get(extension.lower().lstrip("."), "application/octet-stream")


__all__ = ["IMAGE_EXTENSIONS", "guess_mime_type", "is_image_extension"]
