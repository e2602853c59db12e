"""Text canonicalization shared by slug derivation and keyword matching."""

from __future__ import annotations

import re
import unicodedata
from typing import Any, List

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_PUNCTUATION = re.compile(r"[.,]")
_WHITESPACE = re.compile(r"\s+")


def slugify(value: Any) -> str:
    """Return the canonical slug for ``value``.

    Runs of anything outside ``[a-z0-9]`` collapse to a single hyphen and
    hyphens are trimmed from both ends. ``None`` and strings without ASCII
    alphanumerics produce ``""``. Accented letters act as separators rather
    than being transliterated, so ``"Café"`` becomes ``"caf"``.
    """

    if value is None:
        return ""
    lowered = str(value).strip().lower()
    return _NON_SLUG_CHARS.sub("-", lowered).strip("-")


def normalize_text(value: Any) -> str:
    """Lowercase, strip accents and punctuation, and collapse whitespace."""

    if value is None:
        return ""
    text = unicodedata.normalize("NFD", str(value).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _PUNCTUATION.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def text_variants(value: str) -> List[str]:
    """Return spellings a stored field might use for ``value``.

    Covers the raw value plus normalized, title-cased, upper-cased, hyphenated,
    underscored and compact forms. Order is stable and duplicates are dropped.
    """

    normalized = normalize_text(value)
    if not normalized:
        return []
    words = normalized.split(" ")
    candidates = [
        value.strip(),
        normalized,
        " ".join(word[:1].upper() + word[1:] for word in words),
        " ".join(word.upper() for word in words),
        "-".join(words),
        "_".join(words),
        "".join(words),
    ]
    variants: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def title_case_slug(slug: str) -> str:
    """Turn ``"new-delhi"`` into ``"New Delhi"``."""

    return " ".join(
        part[:1].upper() + part[1:].lower() for part in slug.split("-") if part
    )
