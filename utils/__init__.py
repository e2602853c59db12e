"""Shared utility helpers for coursefinder."""

from .logging import configure_logger
from .slugs import normalize_text, slugify, text_variants, title_case_slug

__all__ = [
    "configure_logger",
    "normalize_text",
    "slugify",
    "text_variants",
    "title_case_slug",
]
