"""Cached generated-slug index so Tier 3 lookups avoid a scan per request."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from config import config
from entity_kinds import EntityKind, derive_slug, slug_candidates
from store import DocumentStore
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "slug_index.log"
logger = configure_logger(__name__, LOG_FILE)

Location = Tuple[str, str]


@dataclass
class KindIndex:
    """Generated slug -> ``(collection, id)`` locations, in store order."""

    built_at: float
    locations: Dict[str, List[Location]] = field(default_factory=dict)
    documents: int = 0
    unslugged: int = 0

    def collisions(self) -> Dict[str, List[Location]]:
        return {
            slug: hits for slug, hits in self.locations.items() if len(hits) > 1
        }


async def build_kind_index(
    store: DocumentStore,
    kind: EntityKind,
    scan_limit: Optional[int] = None,
    clock: Callable[[], float] = time.monotonic,
) -> KindIndex:
    """Scan every collection of ``kind`` and index the generated slugs.

    Listed entries of composite-id kinds are indexed under their
    ``{docId}-{n}`` ids. Store errors propagate; a half-built index is never
    published.
    """

    index = KindIndex(built_at=clock())
    for collection in kind.collections:
        documents = await store.get_all(collection, limit=scan_limit or None)
        for document in documents:
            if not derive_slug(document, kind):
                index.unslugged += 1
            for slug, record in slug_candidates(document, kind):
                index.locations.setdefault(slug, []).append((collection, record["id"]))
        index.documents += len(documents)
    logger.info(
        "Indexed %d %s documents into %d slugs",
        index.documents,
        kind.name,
        len(index.locations),
    )
    collisions = index.collisions()
    if collisions:
        logger.warning(
            "%d ambiguous %s slugs, first match wins: %s",
            len(collisions),
            kind.name,
            sorted(collisions)[:10],
        )
    return index


class SlugIndex:
    """Per-kind indexes reused until ``ttl_seconds`` have passed.

    Concurrent callers that find a kind stale share one rebuild.
    """

    def __init__(
        self,
        ttl_seconds: float,
        scan_limit: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.scan_limit = scan_limit
        self._clock = clock
        self._kinds: Dict[str, KindIndex] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def refresh_interval(self) -> float:
        """Seconds between background rebuilds: half the TTL."""
        return self.ttl_seconds / 2

    def is_fresh(self, kind: EntityKind) -> bool:
        index = self._kinds.get(kind.name)
        return bool(index and self._clock() - index.built_at < self.ttl_seconds)

    def _lock(self, kind: EntityKind) -> asyncio.Lock:
        return self._locks.setdefault(kind.name, asyncio.Lock())

    async def _build(self, store: DocumentStore, kind: EntityKind) -> KindIndex:
        index = await build_kind_index(store, kind, self.scan_limit, self._clock)
        self._kinds[kind.name] = index
        return index

    async def refresh(self, store: DocumentStore, kind: EntityKind) -> KindIndex:
        """Rebuild ``kind`` now, even if its index is still fresh."""

        async with self._lock(kind):
            return await self._build(store, kind)

    async def refresh_all(
        self, store: DocumentStore, kinds: Iterable[EntityKind]
    ) -> None:
        for kind in kinds:
            await self.refresh(store, kind)

    async def current(self, store: DocumentStore, kind: EntityKind) -> KindIndex:
        """Return a fresh index for ``kind``, building it at most once at a time."""

        if self.is_fresh(kind):
            return self._kinds[kind.name]
        async with self._lock(kind):
            if self.is_fresh(kind):
                return self._kinds[kind.name]
            return await self._build(store, kind)

    async def lookup(
        self, store: DocumentStore, kind: EntityKind, slug: str
    ) -> List[Location]:
        """Return the indexed locations for ``slug``, rebuilding when stale."""

        index = await self.current(store, kind)
        return list(index.locations.get(slug, []))

    def invalidate(self, kind: Optional[EntityKind] = None) -> None:
        if kind is None:
            self._kinds.clear()
        else:
            self._kinds.pop(kind.name, None)

    def collisions(self, kind: EntityKind) -> Dict[str, List[Location]]:
        index = self._kinds.get(kind.name)
        return index.collisions() if index else {}


async def keep_index_fresh(
    index: SlugIndex, store: DocumentStore, kinds: Iterable[EntityKind]
) -> None:
    """Rebuild every kind's index on a fixed schedule instead of per request."""

    kinds = list(kinds)
    while True:
        try:
            await index.refresh_all(store, kinds)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Background slug index refresh failed")
        await asyncio.sleep(index.refresh_interval)


_shared_index: Optional[SlugIndex] = None


def get_slug_index() -> Optional[SlugIndex]:
    """Return the process-wide index, or ``None`` when indexing is disabled."""

    global _shared_index  # pylint: disable=global-statement
    if config.SLUG_INDEX_TTL_SECONDS <= 0:
        return None
    if _shared_index is None:
        _shared_index = SlugIndex(
            config.SLUG_INDEX_TTL_SECONDS,
            scan_limit=config.GENERATED_SLUG_SCAN_LIMIT,
        )
    return _shared_index
