"""Tests for the Firestore backend using an in-memory stand-in for the client."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
from google.api_core import exceptions as google_exceptions

# pylint: disable=wrong-import-position, too-few-public-methods

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from store import StoreUnavailable
from store.firestore_store import FirestoreDocumentStore


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeQuery:
    def __init__(self, documents, fail=False):
        self.documents = documents
        self.fail = fail

    def where(self, filter):  # pylint: disable=redefined-builtin
        field, value = filter.field_path, filter.value
        return FakeQuery(
            {k: v for k, v in self.documents.items() if v.get(field) == value},
            self.fail,
        )

    def limit(self, count):
        return FakeQuery(dict(list(self.documents.items())[:count]), self.fail)

    async def stream(self):
        if self.fail:
            raise google_exceptions.ServiceUnavailable("backend down")
        for doc_id, data in self.documents.items():
            yield FakeSnapshot(doc_id, data)


class FakeDocument:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    async def get(self):
        if self.collection.fail:
            raise google_exceptions.DeadlineExceeded("slow")
        return FakeSnapshot(self.id, self.collection.documents.get(self.id))


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocument(self, doc_id)

    async def add(self, fields):
        doc_id = f"gen{len(self.documents)}"
        self.documents[doc_id] = fields
        return None, FakeDocument(self, doc_id)


class FakeClient:
    def __init__(self, collections, fail=False):
        self.collections = collections
        self.fail = fail

    def collection(self, name):
        return FakeCollection(self.collections.setdefault(name, {}), self.fail)


def test_reads_map_snapshots_to_entities():
    client = FakeClient(
        {"news": {"n1": {"title": "Results", "slug": "results"}, "n2": {"title": "Dates"}}}
    )
    store = FirestoreDocumentStore(client)

    assert asyncio.run(store.get("news", "n1")) == {
        "title": "Results",
        "slug": "results",
        "id": "n1",
    }
    assert asyncio.run(store.get("news", "missing")) is None
    assert asyncio.run(store.query("news", "slug", "results")) == [
        {"title": "Results", "slug": "results", "id": "n1"}
    ]
    assert [doc["id"] for doc in asyncio.run(store.get_all("news"))] == ["n1", "n2"]
    assert len(asyncio.run(store.get_all("news", limit=1))) == 1


def test_add_returns_new_id():
    collections = {}
    store = FirestoreDocumentStore(FakeClient(collections))
    doc_id = asyncio.run(store.add("admissions", {"name": "Asha"}))
    assert collections["admissions"][doc_id] == {"name": "Asha"}


def test_google_errors_become_store_unavailable():
    store = FirestoreDocumentStore(FakeClient({"news": {"n1": {}}}, fail=True))
    with pytest.raises(StoreUnavailable):
        asyncio.run(store.get("news", "n1"))
    with pytest.raises(StoreUnavailable):
        asyncio.run(store.query("news", "slug", "x"))
    with pytest.raises(StoreUnavailable):
        asyncio.run(store.get_all("news"))
