"""Entity kinds and the per-kind rules used to derive slugs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from utils.slugs import slugify


class UnknownKind(KeyError):
    """Raised when an entity kind name is not registered."""


@dataclass(frozen=True)
class EntityKind:
    """Where a kind of entity lives and how its display name is chosen.

    ``collections`` are searched in order. ``name_fields`` is the ordered
    preference list used for display names and generated slugs. When
    ``qualifier_field`` is set, its value is appended to the name (and used
    with ``qualifier_placeholder`` when no name exists), which is how job and
    internship links have always been built.
    """

    name: str
    label: str
    collections: Tuple[str, ...]
    detail_prefix: str
    listing_path: str
    name_fields: Tuple[str, ...]
    qualifier_field: Optional[str] = None
    qualifier_placeholder: str = ""
    composite_ids: bool = False
    redirect_to_canonical: bool = False

    @property
    def primary_collection(self) -> str:
        return self.collections[0]

    def detail_path(self, identifier: str) -> str:
        return f"{self.detail_prefix}/{identifier}"


KINDS: Dict[str, EntityKind] = {
    kind.name: kind
    for kind in (
        EntityKind(
            name="articles",
            label="Article",
            collections=("articles", "news"),
            detail_prefix="/articles",
            listing_path="/articles",
            name_fields=("title", "name", "heading"),
        ),
        EntityKind(
            name="news",
            label="News",
            collections=("news",),
            detail_prefix="/news",
            listing_path="/news",
            name_fields=("title", "name", "heading"),
        ),
        EntityKind(
            name="jobs",
            label="Job",
            collections=("jobs", "job"),
            detail_prefix="/job",
            listing_path="/jobs",
            name_fields=("title", "name", "position"),
            qualifier_field="company",
            qualifier_placeholder="job",
        ),
        EntityKind(
            name="internships",
            label="Internship",
            collections=("internships",),
            detail_prefix="/internship",
            listing_path="/internships",
            name_fields=("title", "name", "position"),
            qualifier_field="company",
            qualifier_placeholder="internship",
        ),
        EntityKind(
            name="scholarships",
            label="Scholarship",
            collections=("scholarships", "scholarship"),
            detail_prefix="/scholarship",
            listing_path="/scholarships",
            name_fields=("title", "name"),
        ),
        EntityKind(
            name="exams",
            label="Exam",
            collections=("exams", "keamExams"),
            detail_prefix="/exam",
            listing_path="/exams",
            name_fields=("name", "examName", "title", "shortName"),
        ),
        EntityKind(
            name="colleges",
            label="College",
            collections=("colleges", "courses"),
            detail_prefix="/colleges",
            listing_path="/colleges",
            name_fields=("name", "collegeName", "instituteName", "universityName"),
            composite_ids=True,
            redirect_to_canonical=True,
        ),
        EntityKind(
            name="courses",
            label="Course",
            collections=("courses",),
            detail_prefix="/course",
            listing_path="/courses",
            name_fields=("courseName", "name", "title"),
        ),
    )
}


def get_kind(name: str) -> EntityKind:
    """Return the registered kind called ``name``."""

    try:
        return KINDS[name]
    except KeyError as exc:
        raise UnknownKind(name) from exc


def _usable_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def display_name(entity: Mapping[str, Any], kind: EntityKind) -> str:
    """Return the first usable name field, qualified where the kind asks."""

    base = None
    for field in kind.name_fields:
        base = _usable_text(entity.get(field))
        if base:
            break
    if not kind.qualifier_field:
        return base or ""

    qualifier = _usable_text(entity.get(kind.qualifier_field))
    if not base and qualifier:
        base = f"{qualifier} {kind.qualifier_placeholder}".strip()
    if base and qualifier:
        return f"{base} {qualifier}"
    return base or qualifier or ""


def stored_slug(entity: Mapping[str, Any]) -> str:
    """Return the explicitly authored slug, trimmed, or ``""``."""

    value = entity.get("slug")
    if isinstance(value, str):
        return value.strip()
    return ""


def derive_slug(entity: Mapping[str, Any], kind: EntityKind) -> str:
    """Return the slug links use for ``entity``.

    A stored ``slug`` wins; otherwise the display name is canonicalized.
    Entities without a usable name get ``""``.
    """

    explicit = stored_slug(entity)
    if explicit:
        return explicit
    return slugify(display_name(entity, kind))


NESTED_ENTRY_FIELDS = (
    "topColleges",
    "relatedColleges",
    "colleges",
    "collegeList",
    "popularColleges",
    "featuredColleges",
    "campuses",
    "locations",
    "centers",
    "centres",
)
ENTRY_NAME_FIELDS = ("name", "collegeName", "college", "institute", "university", "title")
PARENT_NAME_FIELDS = (
    "instituteName",
    "universityName",
    "collegeName",
    "courseProvider",
    "courseName",
)


def listed_entries(document: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Return the mappings listed under the document's nested entry fields."""

    entries: List[Mapping[str, Any]] = []
    for field_name in NESTED_ENTRY_FIELDS:
        value = document.get(field_name)
        if isinstance(value, list):
            entries.extend(entry for entry in value if isinstance(entry, dict))
    return entries


def nested_entries(document: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Return entries listed inside ``document`` (or the document itself)."""

    return listed_entries(document) or [document]


def entry_name(entry: Mapping[str, Any], parent: Mapping[str, Any]) -> str:
    for field in ENTRY_NAME_FIELDS:
        value = _usable_text(entry.get(field))
        if value:
            return value
    for field in PARENT_NAME_FIELDS:
        value = _usable_text(parent.get(field))
        if value:
            return value
    return ""


def merge_entry(
    parent: Mapping[str, Any], entry: Mapping[str, Any], position: int
) -> Dict[str, Any]:
    """Build the record a listing page shows for ``parent``'s entry ``position``.

    Entry fields override the parent's; the parent's own slug is never
    inherited. The record's id is ``{parentId}-{position}``.
    """

    merged: Dict[str, Any] = {
        key: value for key, value in parent.items() if key != "slug"
    }
    merged.update(entry)
    merged["id"] = f"{parent['id']}-{position}"
    merged["sourceId"] = parent["id"]
    name = entry_name(entry, parent)
    if name:
        merged["name"] = name
    slug = stored_slug(entry) or slugify(name)
    if slug:
        merged["slug"] = slug
    else:
        merged.pop("slug", None)
    return merged


def slug_candidates(
    document: Mapping[str, Any], kind: EntityKind
) -> List[Tuple[str, Dict[str, Any]]]:
    """Return ``(slug, record)`` pairs a generated-slug lookup can match.

    The document itself comes first. Kinds with composite ids also expose
    every listed entry, in listing order. Records without a slug are skipped.
    """

    candidates: List[Tuple[str, Dict[str, Any]]] = []
    own = derive_slug(document, kind)
    if own:
        candidates.append((own, dict(document)))
    if kind.composite_ids:
        for position, entry in enumerate(listed_entries(document)):
            record = merge_entry(document, entry, position)
            if record.get("slug"):
                candidates.append((record["slug"], record))
    return candidates
