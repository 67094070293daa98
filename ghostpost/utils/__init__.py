"""Utility exports."""

from .logging import LogNotifier, configure_logging, get_logger
from .media import IMAGE_EXTENSIONS, guess_mime_type, is_image_extension
from .text import slugify, split_list

__all__ = [
    "IMAGE_EXTENSIONS",
    "LogNotifier",
    "configure_logging",
    "get_logger",
    "guess_mime_type",
    "is_image_extension",
    "slugify",
    "split_list",
]
