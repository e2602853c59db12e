"""MBBS college listings filtered by city or country.

Unlike the resolver this returns every matching college: candidates come from
field-equality queries over several spellings of the location, optionally
widened by a capped scan with fuzzy location matching, and are kept only if
their free text looks like an MBBS/medical college.
"""

# pylint: disable=duplicate-code

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config import config
from store import DocumentStore, Entity
from utils.logging import configure_logger
from utils.slugs import normalize_text, text_variants, title_case_slug

LOG_FILE = Path(config.LOG_DIR) / "mbbs.log"
logger = configure_logger(__name__, LOG_FILE)

COLLEGES_COLLECTION = "colleges"

CITY = "city"
COUNTRY = "country"

LOCATION_FIELDS = {
    CITY: ("city", "cityName", "location.city"),
    COUNTRY: ("country", "countryName", "location.country"),
}

CITY_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "bangalore": ("Bengaluru", "Bangalore Urban"),
    "bengaluru": ("Bangalore",),
    "delhi ncr": ("Delhi", "New Delhi", "NCR Delhi", "National Capital Region"),
    "delhi": ("Delhi NCR", "New Delhi", "NCR Delhi"),
}

_COUNTRY_QUALIFIERS = re.compile(
    r"\b(republic|federation|kingdom|state|people's|people|democratic|arab|socialist)\b"
)
_HTML_SUFFIX = re.compile(r"\.html$", re.IGNORECASE)
_CITY_PREFIX = re.compile(r"^colleges-?", re.IGNORECASE)

MBBS_KEYWORDS = (
    "mbbs",
    "m.b.b.s",
    "bachelor of medicine",
    "bachelor of surgery",
    "medicine and surgery",
    "medical degree",
    "medical course",
    "medical program",
)
MEDICAL_COLLEGE_KEYWORDS = (
    "medical college",
    "medical university",
    "medical institute",
    "medical school",
    "college of medicine",
    "school of medicine",
    "institute of medical",
    "medicine",
)
TEXT_FIELDS = (
    "course",
    "stream",
    "branch",
    "program",
    "discipline",
    "courseType",
    "category",
    "collegeCategory",
    "collegeType",
    "institutionType",
    "collegeName",
    "name",
    "description",
    "about",
    "overview",
    "admissionEligibility",
    "eligibility",
    "admissionProcess",
    "tags",
    "courses",
    "coursesOffered",
    "programs",
    "ugPrograms",
    "pgPrograms",
    "departments",
    "offerings",
    "specializations",
    "faculties",
    "streams",
    "medicalCourses",
    "medicalPrograms",
    "degreePrograms",
)


def parse_location_slug(path: str) -> Tuple[str, str]:
    """Split an MBBS listing path into ``(location_type, display_value)``.

    ``abroad/bangladesh.html`` -> ``("country", "Bangladesh")`` and
    ``colleges-new-delhi`` -> ``("city", "New Delhi")``.
    """

    cleaned = _HTML_SUFFIX.sub("", path.strip().strip("/"))
    if cleaned.lower().startswith("abroad/"):
        country = cleaned.split("/", 1)[1].strip()
        if country:
            return COUNTRY, title_case_slug(country)
    city = _CITY_PREFIX.sub("", cleaned).strip()
    return CITY, title_case_slug(city)


def city_variants(city: str) -> List[str]:
    variants = text_variants(city)
    for synonym in CITY_SYNONYMS.get(normalize_text(city), ()):
        variants.extend(v for v in text_variants(synonym) if v not in variants)
    return variants


def country_variants(country: str) -> List[str]:
    variants = text_variants(country)
    normalized = normalize_text(country)
    cleaned = re.sub(r"\s+", " ", _COUNTRY_QUALIFIERS.sub("", normalized)).strip()
    if cleaned and cleaned != normalized:
        variants.extend(v for v in text_variants(cleaned) if v not in variants)
    return variants


def location_variants(location_type: str, value: str) -> List[str]:
    if location_type == COUNTRY:
        return country_variants(value)
    return city_variants(value)


def gather_text(value: Any, depth: int = 0) -> List[str]:
    """Flatten strings and numbers out of nested lists/dicts (max depth 3)."""

    if value is None or value == "" or depth > 3:
        return []
    if isinstance(value, (str, int, float)):
        return [str(value)]
    if isinstance(value, (list, tuple)):
        return [text for item in value for text in gather_text(item, depth + 1)]
    if isinstance(value, Mapping):
        return [text for item in value.values() for text in gather_text(item, depth + 1)]
    return []


def is_mbbs_college(college: Mapping[str, Any]) -> bool:
    """Heuristic keyword check for colleges offering MBBS."""

    texts = [
        text.lower()
        for field in TEXT_FIELDS
        for text in gather_text(college.get(field))
    ]
    if any(keyword in text for text in texts for keyword in MBBS_KEYWORDS):
        return True
    name = str(college.get("collegeName") or college.get("name") or "").lower()
    if any(keyword in name for keyword in MEDICAL_COLLEGE_KEYWORDS):
        return True
    streams = college.get("streams")
    if isinstance(streams, list):
        return any(
            "mbbs" in str(stream).lower() or "medicine" in str(stream).lower()
            for stream in streams
        )
    return False


def _nested(document: Mapping[str, Any], dotted: str) -> Any:
    current: Any = document
    for part in dotted.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def matches_location(
    college: Mapping[str, Any], location_type: str, value: str
) -> bool:
    """Fuzzy location match used by the broad scan. Blank fields never match."""

    wanted = normalize_text(value)
    if not wanted:
        return False
    variants = {normalize_text(v) for v in location_variants(location_type, value)}
    variants.discard("")
    values = [
        normalize_text(_nested(college, field))
        for field in LOCATION_FIELDS[location_type]
    ]
    values = [candidate for candidate in values if candidate]
    if any(
        candidate in variants or wanted in candidate or candidate in wanted
        for candidate in values
    ):
        return True
    address = college.get("address") or college.get("location")
    address_text = normalize_text(" ".join(gather_text(address)))
    if not address_text:
        return False
    return wanted in address_text or any(v in address_text for v in variants)


def college_name(college: Mapping[str, Any]) -> str:
    return str(college.get("name") or college.get("collegeName") or "Unnamed College")


def _collect(
    found: Dict[str, Entity], candidates: Iterable[Entity]
) -> None:
    for candidate in candidates:
        if candidate["id"] not in found and is_mbbs_college(candidate):
            found[candidate["id"]] = candidate


async def filter_mbbs_colleges(
    store: DocumentStore,
    location_type: str,
    value: str,
    *,
    query_limit: Optional[int] = None,
    scan_limit: Optional[int] = None,
) -> List[Entity]:
    """Return MBBS colleges located in the given city or country, sorted by name."""

    if location_type not in LOCATION_FIELDS:
        raise ValueError(f"Unsupported location type: {location_type}")
    if not value or not value.strip():
        return []
    query_limit = query_limit or config.MBBS_QUERY_LIMIT
    scan_limit = scan_limit or config.MBBS_SCAN_LIMIT

    found: Dict[str, Entity] = {}
    for variant in location_variants(location_type, value):
        for field in LOCATION_FIELDS[location_type]:
            _collect(
                found,
                await store.query(COLLEGES_COLLECTION, field, variant, limit=query_limit),
            )
    logger.info(
        "MBBS %s=%s: %d colleges from field queries", location_type, value, len(found)
    )

    if location_type == COUNTRY or not found:
        broad = await store.get_all(COLLEGES_COLLECTION, limit=scan_limit)
        _collect(
            found,
            (
                college
                for college in broad
                if matches_location(college, location_type, value)
            ),
        )
        logger.info(
            "MBBS %s=%s: %d colleges after scanning %d documents",
            location_type,
            value,
            len(found),
            len(broad),
        )

    return sorted(found.values(), key=lambda college: college_name(college).lower())
