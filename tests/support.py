"""
Shared helpers for service and endpoint tests.

- In-memory stand-in for the Motor collection calls the services make
- Canned users and a TestClient with scoped dependency overrides
"""

import copy
import io
import re
from contextlib import contextmanager
from types import SimpleNamespace

from bson import ObjectId
from fastapi import UploadFile
from fastapi.testclient import TestClient

from utils.time_utils import utcnow
from workisready.api.dependencies import (
    get_current_user,
    get_home_service,
    get_provider_service,
    get_task_service,
    get_update_request_service,
    get_user_service,
)
from workisready.main import app

USER = {
    "_id": ObjectId(),
    "name": "Kofi Boateng",
    "email": "kofi@example.com",
    "role": "user",
    "user_type": "client",
    "is_verified": True,
    "created_at": utcnow(),
}

ADMIN = {**USER, "_id": ObjectId(), "name": "Site Admin", "email": "admin@example.com", "role": "admin"}

SERVICE_DEPENDENCIES = {
    "tasks": get_task_service,
    "providers": get_provider_service,
    "update_requests": get_update_request_service,
    "users": get_user_service,
    "home": get_home_service,
}


def _provide(value):
    return lambda: value


@contextmanager
def api_client(user=None, **services):
    """
    Yields a TestClient with the given fakes installed.

    Args:
        user: Raw user document returned for authenticated routes
        services: Fakes keyed like SERVICE_DEPENDENCIES
    """
    if user is not None:
        app.dependency_overrides[get_current_user] = _provide(user)
    for name, service in services.items():
        app.dependency_overrides[SERVICE_DEPENDENCIES[name]] = _provide(service)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def upload(name: str, content: bytes = b"data") -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=name)


# ============================================================
# IN-MEMORY COLLECTION
# ============================================================

def _candidates(document, key):
    head, _, rest = key.partition(".")
    value = document.get(head)
    if rest:
        if isinstance(value, list):
            return [item.get(rest) for item in value if isinstance(item, dict)]
        return [value.get(rest)] if isinstance(value, dict) else []
    if isinstance(value, list):
        return value + [value]
    return [value]


def _matches(document, query):
    for key, condition in (query or {}).items():
        if key == "$or":
            if not any(_matches(document, branch) for branch in condition):
                return False
            continue
        candidates = _candidates(document, key)
        if isinstance(condition, dict) and all(op.startswith("$") for op in condition):
            if "$regex" in condition:
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not any(isinstance(value, str) and re.search(condition["$regex"], value, flags) for value in candidates):
                    return False
            for op, operand in condition.items():
                if op == "$ne" and operand in candidates:
                    return False
                if op == "$in" and not any(value in operand for value in candidates):
                    return False
                if op == "$nin" and any(value in operand for value in candidates):
                    return False
                if op == "$gt" and not any(value is not None and value > operand for value in candidates):
                    return False
        elif condition not in candidates:
            return False
    return True


def _apply(document, update, inserting=False):
    for key, value in update.get("$set", {}).items():
        document[key] = value
    for key in update.get("$unset", {}):
        document.pop(key, None)
    for key, value in update.get("$push", {}).items():
        document.setdefault(key, []).append(value)
    if inserting:
        document.update(update.get("$setOnInsert", {}))


class FakeCursor:
    def __init__(self, documents):
        self.documents = documents

    def sort(self, key, direction=1):
        keys = key if isinstance(key, list) else [(key, direction)]
        for field, order in reversed(keys):
            self.documents.sort(key=lambda doc: (doc.get(field) is None, doc.get(field)), reverse=order < 0)
        return self

    def skip(self, count):
        self.documents = self.documents[count:]
        return self

    def limit(self, count):
        self.documents = self.documents[:count]
        return self

    async def to_list(self, length=None):
        return self.documents if length is None else self.documents[:length]

    def __aiter__(self):
        self._iter = iter(self.documents)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Just enough of AsyncIOMotorCollection for the service tests."""

    def __init__(self, documents=None):
        self.documents = [copy.deepcopy(doc) for doc in documents or []]

    def _first(self, query):
        return next((doc for doc in self.documents if _matches(doc, query)), None)

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query=None, projection=None):
        found = self._first(query)
        return copy.deepcopy(found) if found else None

    def find(self, query=None, projection=None):
        return FakeCursor([copy.deepcopy(doc) for doc in self.documents if _matches(doc, query)])

    async def count_documents(self, query):
        return sum(1 for doc in self.documents if _matches(doc, query))

    async def find_one_and_update(self, query, update, return_document=None, upsert=False):
        found = self._first(query)
        if found is None:
            return None
        _apply(found, update)
        return copy.deepcopy(found)

    async def update_one(self, query, update, upsert=False):
        found = self._first(query)
        if found is None:
            if upsert:
                document = {key: value for key, value in query.items() if not isinstance(value, dict)}
                _apply(document, update, inserting=True)
                await self.insert_one(document)
            return SimpleNamespace(matched_count=0, modified_count=0)
        _apply(found, update)
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def update_many(self, query, update):
        matched = [doc for doc in self.documents if _matches(doc, query)]
        for doc in matched:
            _apply(doc, update)
        return SimpleNamespace(matched_count=len(matched), modified_count=len(matched))

    async def delete_one(self, query):
        found = self._first(query)
        if found is not None:
            self.documents.remove(found)
        return SimpleNamespace(deleted_count=int(found is not None))

    async def delete_many(self, query):
        matched = [doc for doc in self.documents if _matches(doc, query)]
        for doc in matched:
            self.documents.remove(doc)
        return SimpleNamespace(deleted_count=len(matched))
