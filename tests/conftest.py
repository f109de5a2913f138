"""Pytest configuration and fixtures for the test suite."""

from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, Generator, List, Mapping, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


def _matches(doc: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict):
            for op, operand in condition.items():
                if value is None:
                    return False
                if op == "$gte" and not value >= operand:
                    return False
                if op == "$lte" and not value <= operand:
                    return False
        elif value != condition:
            return False
    return True


class InMemoryCursor:
    """Async cursor over a snapshot of documents, supporting sort()."""

    def __init__(self, docs: List[Dict[str, Any]], error: Optional[Exception] = None) -> None:
        self._docs = docs
        self._error = error

    def sort(self, key: str, direction: int) -> "InMemoryCursor":
        self._docs = sorted(self._docs, key=lambda d: d[key], reverse=direction == -1)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        if self._error is not None:
            raise self._error
        for doc in self._docs:
            yield dict(doc)


class InMemoryDatabase:
    def __init__(self) -> None:
        self.error: Optional[Exception] = None

    async def command(self, name: str) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        return {"ok": 1.0}


class InMemoryCollection:
    """Implements the subset of the motor collection API used by the service."""

    name = "expenses"

    def __init__(self) -> None:
        self.docs: List[Dict[str, Any]] = []
        self.database = InMemoryDatabase()
        self.error: Optional[Exception] = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def find(self, query: Optional[Mapping[str, Any]] = None) -> InMemoryCursor:
        query = query or {}
        return InMemoryCursor([d for d in self.docs if _matches(d, query)], self.error)

    async def insert_one(self, document: Mapping[str, Any]):
        self._check()
        stored = dict(document)
        stored["_id"] = ObjectId()
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    async def update_one(self, query: Mapping[str, Any], update: Mapping[str, Any]):
        self._check()
        for doc in self.docs:
            if _matches(doc, query):
                changes = update.get("$set", {})
                modified = any(doc.get(k) != v for k, v in changes.items())
                doc.update(changes)
                return SimpleNamespace(matched_count=1, modified_count=int(modified))
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query: Mapping[str, Any]):
        self._check()
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def seed(self, **fields: Any) -> ObjectId:
        doc = {"category": "Others", **fields}
        if isinstance(doc.get("date"), str):
            doc["date"] = datetime.fromisoformat(doc["date"])
        doc["_id"] = ObjectId()
        self.docs.append(doc)
        return doc["_id"]


@pytest.fixture
def collection() -> InMemoryCollection:
    return InMemoryCollection()


@pytest.fixture
def settings() -> Settings:
    return Settings(mongodb_uri=None, allowed_origins=("http://localhost:3000",))


@pytest.fixture
def client(settings: Settings, collection: InMemoryCollection) -> Generator[TestClient, None, None]:
    """Test client backed by the in-memory collection; the lifespan opens no connection."""
    app = create_app(settings, collection=collection)
    with TestClient(app) as test_client:
        yield test_client
