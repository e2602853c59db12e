"""Document store collaborators used by the resolver and lead capture."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional, Protocol

from config import config

Entity = Dict[str, Any]


class StoreError(Exception):
    """Base class for document store failures."""


class StoreUnavailable(StoreError):
    """Raised when the store cannot complete an operation (I/O, network, quota)."""


class DocumentStore(Protocol):
    """Read/append operations the service needs from a document database.

    Every returned entity is a plain dict containing the stored fields plus
    the primary key under ``"id"``.
    """

    async def get(self, collection: str, key: str) -> Optional[Entity]:
        ...

    async def query(
        self, collection: str, field: str, value: Any, limit: int = 1
    ) -> List[Entity]:
        ...

    async def get_all(
        self, collection: str, limit: Optional[int] = None
    ) -> List[Entity]:
        ...

    async def add(self, collection: str, fields: Dict[str, Any]) -> str:
        ...


def create_store(backend: Optional[str] = None) -> DocumentStore:
    """Build the configured store backend."""

    backend = backend or config.STORE_BACKEND
    if backend == "firestore":
        from store.firestore_store import (  # pylint: disable=import-outside-toplevel
            FirestoreDocumentStore,
        )

        return FirestoreDocumentStore.from_config()
    if backend == "yaml":
        from store.yaml_store import (  # pylint: disable=import-outside-toplevel
            YamlDocumentStore,
        )

        return YamlDocumentStore(config.COLLECTIONS_PATH)
    raise ValueError(f"Unsupported store backend: {backend}")


@lru_cache(maxsize=1)
def get_store() -> DocumentStore:
    """Return the process-wide store (FastAPI dependency)."""

    return create_store()


__all__ = [
    "DocumentStore",
    "Entity",
    "StoreError",
    "StoreUnavailable",
    "create_store",
    "get_store",
]
