"""Publish Obsidian-style notes to Ghost, relocating local images to R2."""

__version__ = "0.1.0"
