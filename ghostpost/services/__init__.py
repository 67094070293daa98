"""Note publishing services."""

from __future__ import annotations

from .front_matter import compose_document, parse_metadata, split_front_matter
from .ghost_workflow import GhostPublishWorkflow, PublishReconciler
from .images import ImageProcessor
from .note_models import (
    ImageProcessingOptions,
    ImageProcessingResult,
    NoteDocument,
    PostMetadata,
    PublishResult,
)
from .post_builder import PostBuilder
from .renderer import ContentRenderer

__all__ = [
    "ContentRenderer",
    "GhostPublishWorkflow",
    "ImageProcessingOptions",
    "ImageProcessingResult",
    "ImageProcessor",
    "NoteDocument",
    "PostBuilder",
    "PostMetadata",
    "PublishReconciler",
    "PublishResult",
    "compose_document",
    "parse_metadata",
    "split_front_matter",
]
