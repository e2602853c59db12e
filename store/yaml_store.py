"""Document store backed by one YAML file per collection."""

# pylint: disable=duplicate-code

from __future__ import annotations

import asyncio
import secrets
import string
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config import config
from store import Entity, StoreUnavailable
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "store.log"
logger = configure_logger(__name__, LOG_FILE)

_ID_ALPHABET = string.ascii_letters + string.digits
_MISSING = object()


def new_document_id(length: int = 20) -> str:
    """Return a random id shaped like the ones Firestore assigns."""

    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def lookup_field(document: Dict[str, Any], field: str) -> Any:
    """Return the value at a dotted ``field`` path, or a sentinel when absent."""

    current: Any = document
    for part in field.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def collection_file(root: Path, collection: str) -> Path:
    """Map ``collection`` (``"courses/abc/comments"`` allowed) to its YAML file."""

    parts = [part for part in collection.split("/") if part]
    if not parts or any(part in {".", ".."} for part in parts):
        raise ValueError(f"Invalid collection path: {collection!r}")
    return root.joinpath(*parts[:-1], f"{parts[-1]}.yaml")


class YamlDocumentStore:
    """Async document store reading and appending YAML lists.

    Each collection file holds a list of mappings with an ``id`` key; list
    order is the collection's natural iteration order.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()
        self._write_lock = threading.Lock()

    def _read(self, collection: str) -> List[Entity]:
        path = collection_file(self.root, collection)
        if not path.exists():
            logger.debug("%s does not exist", path)
            return []
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or []
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Failed to read %s: %s", path, exc)
            raise StoreUnavailable(f"Could not read collection {collection}") from exc
        if not isinstance(data, list):
            raise StoreUnavailable(f"Collection {collection} is not a list")
        documents = []
        for item in data:
            if isinstance(item, dict) and item.get("id") is not None:
                document = dict(item)
                document["id"] = str(document["id"])
                documents.append(document)
        logger.debug("Loaded %d documents from %s", len(documents), path)
        return documents

    def _append(self, collection: str, fields: Dict[str, Any]) -> str:
        path = collection_file(self.root, collection)
        with self._write_lock:
            documents = self._read(collection)
            doc_id = new_document_id()
            documents.append({"id": doc_id, **fields})
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "w", encoding="utf-8") as handle:
                    yaml.dump(documents, handle, sort_keys=False, allow_unicode=True)
            except OSError as exc:
                logger.error("Failed to write %s: %s", path, exc)
                raise StoreUnavailable(
                    f"Could not write collection {collection}"
                ) from exc
        logger.info("Appended %s to %s", doc_id, collection)
        return doc_id

    async def get(self, collection: str, key: str) -> Optional[Entity]:
        documents = await asyncio.to_thread(self._read, collection)
        for document in documents:
            if document["id"] == key:
                return document
        return None

    async def query(
        self, collection: str, field: str, value: Any, limit: int = 1
    ) -> List[Entity]:
        documents = await asyncio.to_thread(self._read, collection)
        matches = [doc for doc in documents if lookup_field(doc, field) == value]
        return matches[:limit]

    async def get_all(
        self, collection: str, limit: Optional[int] = None
    ) -> List[Entity]:
        documents = await asyncio.to_thread(self._read, collection)
        return documents[:limit] if limit else documents

    async def add(self, collection: str, fields: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self._append, collection, fields)
