"""Document store backed by Google Cloud Firestore."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2.service_account import Credentials

from config import config
from store import Entity, StoreUnavailable
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "store.log"
logger = configure_logger(__name__, LOG_FILE)


def _to_entity(snapshot) -> Entity:
    return {**(snapshot.to_dict() or {}), "id": snapshot.id}


class FirestoreDocumentStore:
    """Async Firestore access with Google API errors mapped to ``StoreUnavailable``."""

    def __init__(self, client: firestore.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls) -> "FirestoreDocumentStore":
        credentials = None
        if config.GOOGLE_CREDENTIALS_PATH:
            credentials = Credentials.from_service_account_file(
                config.GOOGLE_CREDENTIALS_PATH
            )
        client = firestore.AsyncClient(
            project=config.FIRESTORE_PROJECT_ID, credentials=credentials
        )
        logger.info("Firestore store ready for project=%s", client.project)
        return cls(client)

    async def get(self, collection: str, key: str) -> Optional[Entity]:
        try:
            snapshot = await self._client.collection(collection).document(key).get()
        except google_exceptions.GoogleAPIError as exc:
            logger.error("get %s/%s failed: %s", collection, key, exc)
            raise StoreUnavailable(f"get {collection}/{key} failed") from exc
        if not snapshot.exists:
            return None
        return _to_entity(snapshot)

    async def query(
        self, collection: str, field: str, value: Any, limit: int = 1
    ) -> List[Entity]:
        query = (
            self._client.collection(collection)
            .where(filter=FieldFilter(field, "==", value))
            .limit(limit)
        )
        try:
            return [_to_entity(snapshot) async for snapshot in query.stream()]
        except google_exceptions.GoogleAPIError as exc:
            logger.error("query %s where %s failed: %s", collection, field, exc)
            raise StoreUnavailable(f"query on {collection}.{field} failed") from exc

    async def get_all(
        self, collection: str, limit: Optional[int] = None
    ) -> List[Entity]:
        query = self._client.collection(collection)
        if limit:
            query = query.limit(limit)
        try:
            return [_to_entity(snapshot) async for snapshot in query.stream()]
        except google_exceptions.GoogleAPIError as exc:
            logger.error("scan of %s failed: %s", collection, exc)
            raise StoreUnavailable(f"scan of {collection} failed") from exc

    async def add(self, collection: str, fields: Dict[str, Any]) -> str:
        try:
            _, reference = await self._client.collection(collection).add(fields)
        except google_exceptions.GoogleAPIError as exc:
            logger.error("add to %s failed: %s", collection, exc)
            raise StoreUnavailable(f"add to {collection} failed") from exc
        return reference.id
