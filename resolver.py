"""Resolve a URL identifier to exactly one stored entity.

Tiers are tried strictly in order and each runs only after the previous one
missed:

1. primary key lookup in each collection of the kind,
2. stored ``slug`` field query in each collection,
3. generated slug comparison over each collection (scan or cached index),
   including entries listed inside documents for kinds with composite ids,
4. composite listing ids (``{docId}-{n}``) for kinds that mint them.

The first entity found wins; no ranking is applied. Resolution never writes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, List, Optional, Union

from config import config
from entity_kinds import (
    EntityKind,
    derive_slug,
    get_kind,
    merge_entry,
    nested_entries,
    slug_candidates,
)
from slug_index import SlugIndex
from store import DocumentStore, Entity, StoreUnavailable
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "resolver.log"
logger = configure_logger(__name__, LOG_FILE)

TIER_PRIMARY_KEY = "primary_key"
TIER_STORED_SLUG = "stored_slug"
TIER_GENERATED_SLUG = "generated_slug"
TIER_COMPOSITE_ID = "composite_id"

FOUND = "found"
NOT_FOUND = "not_found"
INCOMPLETE = "incomplete"

POLICY_CONTINUE = "continue"
POLICY_ABORT = "abort"

COMPOSITE_ID_PATTERN = re.compile(r"^(?P<base>.+)-(?P<position>\d+)$")


@dataclass
class TierError:
    """A store failure swallowed while trying one tier."""

    tier: str
    collection: str
    message: str


@dataclass
class Resolution:
    """Outcome of resolving one identifier."""

    kind: EntityKind
    identifier: str
    status: str = NOT_FOUND
    entity: Optional[Entity] = None
    collection: Optional[str] = None
    tier: Optional[str] = None
    errors: List[TierError] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status == FOUND

    @property
    def canonical_slug(self) -> str:
        if self.entity is None:
            return ""
        return derive_slug(self.entity, self.kind)


def _finish(
    result: Resolution, entity: Entity, collection: str, tier: str
) -> Resolution:
    result.status = FOUND
    result.entity = entity
    result.collection = collection
    result.tier = tier
    logger.info(
        "Resolved %s %r via %s in %s (id=%s)",
        result.kind.name,
        result.identifier,
        tier,
        collection,
        entity.get("id"),
    )
    return result


async def _guarded(
    result: Resolution,
    policy: str,
    tier: str,
    collection: str,
    operation: Awaitable[Any],
) -> Any:
    """Await a store operation, applying the store error policy."""

    try:
        return await operation
    except StoreUnavailable as exc:
        if policy == POLICY_ABORT:
            logger.error(
                "%s lookup in %s failed for %r, aborting: %s",
                tier,
                collection,
                result.identifier,
                exc,
            )
            raise
        logger.warning(
            "%s lookup in %s failed for %r, trying next tier: %s",
            tier,
            collection,
            result.identifier,
            exc,
        )
        result.errors.append(TierError(tier, collection, str(exc)))
        return None


async def scan_generated_slug(
    store: DocumentStore,
    kind: EntityKind,
    collection: str,
    identifier: str,
    scan_limit: Optional[int] = None,
) -> Optional[Entity]:
    """Return the first record in ``collection`` whose generated slug matches.

    For kinds with composite ids, entries listed inside a document are
    candidates too, right after the document itself.
    """

    documents = await store.get_all(collection, limit=scan_limit or None)
    if scan_limit and len(documents) >= scan_limit:
        logger.warning(
            "Generated slug scan of %s capped at %d documents", collection, scan_limit
        )
    matches = [
        record
        for document in documents
        for slug, record in slug_candidates(document, kind)
        if slug == identifier
    ]
    if len(matches) > 1:
        logger.warning(
            "Ambiguous slug %r in %s: %d matches, using id=%s",
            identifier,
            collection,
            len(matches),
            matches[0].get("id"),
        )
    return matches[0] if matches else None


async def _lookup_indexed(
    store: DocumentStore, kind: EntityKind, identifier: str, index: SlugIndex
) -> Optional[tuple[str, Entity]]:
    """Return ``(collection, entity)`` via the slug index.

    Raises ``LookupError`` when the index points at a record that no longer
    carries the slug, so the caller can fall back to a live scan.
    """

    locations = await index.lookup(store, kind, identifier)
    if not locations:
        return None
    if len(locations) > 1:
        logger.warning(
            "Ambiguous slug %r for %s: %d indexed matches, using %s",
            identifier,
            kind.name,
            len(locations),
            locations[0],
        )
    collection, record_id = locations[0]
    entity = await store.get(collection, record_id)
    if entity is None and kind.composite_ids:
        entity = await find_composite(store, collection, record_id)
    if entity is None or derive_slug(entity, kind) != identifier:
        index.invalidate(kind)
        raise LookupError(f"stale slug index entry {collection}/{record_id}")
    return collection, entity


async def find_composite(
    store: DocumentStore, collection: str, identifier: str
) -> Optional[Entity]:
    """Resolve ``{docId}-{n}`` ids minted by listing pages for nested entries."""

    match = COMPOSITE_ID_PATTERN.match(identifier)
    if not match:
        return None
    base_id = match.group("base")
    parent = await store.get(collection, base_id)
    if parent is None:
        return None
    entries = nested_entries(parent)
    position = int(match.group("position"))
    if position >= len(entries):
        return parent
    merged = merge_entry(parent, entries[position], position)
    merged["id"] = identifier
    logger.debug("Composite id %s matched entry %d of %s", identifier, position, base_id)
    return merged


async def resolve(
    store: DocumentStore,
    kind: Union[EntityKind, str],
    identifier: str,
    *,
    policy: Optional[str] = None,
    scan_limit: Optional[int] = None,
    index: Optional[SlugIndex] = None,
) -> Resolution:
    """Resolve ``identifier`` to one entity of ``kind``.

    ``policy`` decides what a ``StoreUnavailable`` does: ``"continue"`` records
    it and tries the next tier (the result becomes ``incomplete`` if nothing
    is found), ``"abort"`` re-raises it immediately.
    """

    if isinstance(kind, str):
        kind = get_kind(kind)
    policy = policy or config.STORE_ERROR_POLICY
    if scan_limit is None:
        scan_limit = config.GENERATED_SLUG_SCAN_LIMIT
    result = Resolution(kind=kind, identifier=identifier)
    if not identifier or not identifier.strip():
        logger.info("Empty identifier for %s", kind.name)
        return result

    for collection in kind.collections:
        entity = await _guarded(
            result, policy, TIER_PRIMARY_KEY, collection, store.get(collection, identifier)
        )
        if entity:
            return _finish(result, entity, collection, TIER_PRIMARY_KEY)

        matches = await _guarded(
            result,
            policy,
            TIER_STORED_SLUG,
            collection,
            store.query(collection, "slug", identifier, limit=1),
        )
        if matches:
            return _finish(result, matches[0], collection, TIER_STORED_SLUG)

    scanned = False
    if index is not None:
        errors_before = len(result.errors)
        try:
            hit = await _guarded(
                result,
                policy,
                TIER_GENERATED_SLUG,
                "*",
                _lookup_indexed(store, kind, identifier, index),
            )
        except LookupError as exc:
            logger.info("Falling back to a live scan: %s", exc)
            hit = None
        else:
            scanned = len(result.errors) == errors_before
        if hit:
            collection, entity = hit
            return _finish(result, entity, collection, TIER_GENERATED_SLUG)

    if not scanned:
        for collection in kind.collections:
            entity = await _guarded(
                result,
                policy,
                TIER_GENERATED_SLUG,
                collection,
                scan_generated_slug(store, kind, collection, identifier, scan_limit),
            )
            if entity:
                return _finish(result, entity, collection, TIER_GENERATED_SLUG)

    if kind.composite_ids:
        for collection in kind.collections:
            entity = await _guarded(
                result,
                policy,
                TIER_COMPOSITE_ID,
                collection,
                find_composite(store, collection, identifier),
            )
            if entity:
                return _finish(result, entity, collection, TIER_COMPOSITE_ID)

    result.status = INCOMPLETE if result.errors else NOT_FOUND
    logger.info(
        "No %s matched %r (status=%s, tier errors=%d)",
        kind.name,
        identifier,
        result.status,
        len(result.errors),
    )
    return result
