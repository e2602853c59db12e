"""Unit tests for :mod:`utils.slugs`."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# pylint: disable=wrong-import-position

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from utils.slugs import normalize_text, slugify, text_variants, title_case_slug


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Top 10 MBA Colleges", "top-10-mba-colleges"),
        ("  Best Colleges 2025  ", "best-colleges-2025"),
        ("B.Tech -- Admissions!!", "b-tech-admissions"),
        ("already-a-slug", "already-a-slug"),
        ("---", ""),
        ("", ""),
        (None, ""),
        (2025, "2025"),
    ],
)
def test_slugify_examples(value, expected):
    assert slugify(value) == expected


def test_slugify_is_idempotent():
    samples = [
        "Top 10 MBA Colleges",
        "  IIT (Bombay) - Mumbai ",
        "Café & Résumé",
        "___x___",
        "a--b",
    ]
    for sample in samples:
        once = slugify(sample)
        assert slugify(once) == once


def test_slugify_output_alphabet():
    slug = slugify("  Hello, World!  Ünïcode 42 ")
    assert slug == slug.strip("-")
    assert "--" not in slug
    assert all(ch.isdigit() or "a" <= ch <= "z" or ch == "-" for ch in slug)


def test_slugify_treats_accents_as_separators():
    assert slugify("Café") == "caf"
    assert slugify("São Paulo") == "s-o-paulo"


def test_normalize_text_strips_accents_and_punctuation():
    assert normalize_text("  São   Paulo, Brazil. ") == "sao paulo brazil"
    assert normalize_text(None) == ""


def test_text_variants_are_ordered_and_unique():
    variants = text_variants("new delhi")
    assert variants == [
        "new delhi",
        "New Delhi",
        "NEW DELHI",
        "new-delhi",
        "new_delhi",
        "newdelhi",
    ]
    assert text_variants("   ") == []


def test_title_case_slug():
    assert title_case_slug("new-delhi") == "New Delhi"
    assert title_case_slug("BANGLADESH") == "Bangladesh"
    assert title_case_slug("") == ""
