"""
FinEase Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests must never reach MongoDB Atlas or Firebase.
How:   An in-memory FakeCollection implements the slice of the async pymongo
       collection API the service uses; a FakeVerifier maps test tokens to
       identities. Both are swapped into the app via dependency_overrides.

Fixture Hierarchy:
    fake_collection     empty in-memory collection
    alice / bob         verified identities
    verifier            FakeVerifier knowing "alice-token" and "bob-token"
    gateway             FakeGateway serving fake_collection
    test_app            FastAPI app with verifier + gateway overridden
    test_client         HTTPX AsyncClient bound to test_app
    auth_headers        Authorization headers for alice
"""

import copy
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

# Override settings for testing BEFORE any finease imports
os.environ["MONGODB_URI"] = "mongodb://localhost:27017/?serverSelectionTimeoutMS=100"
os.environ["FIREBASE_SERVICE_ACCOUNT_BASE64"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MONGO_CONNECT_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from finease.exceptions import InvalidCredential, StoreUnavailable
from finease.services.identity_base import IdentityVerifier, VerifiedIdentity


# ══════════════════════════════════════════════════════════════════════════
# In-memory Fakes
# ══════════════════════════════════════════════════════════════════════════

def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class FakeCursor:
    """Mimics AsyncCursor: sort() is chainable and synchronous, to_list() is awaited."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._documents if length is None else self._documents[:length]


class FakeCollection:
    """
    Minimal stand-in for pymongo's AsyncCollection.

    Records every call in `calls` so tests can assert the store was
    (or was not) touched.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.calls: List[str] = []

    def seed(self, **fields: Any) -> ObjectId:
        document = copy.deepcopy(fields)
        document.setdefault("_id", ObjectId())
        self.documents.append(document)
        return document["_id"]

    def by_id(self, object_id: ObjectId) -> Optional[Dict[str, Any]]:
        return next((d for d in self.documents if d["_id"] == object_id), None)

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        self.calls.append("find")
        return FakeCursor([copy.deepcopy(d) for d in self.documents if _matches(d, query)])

    async def find_one(self, query: Dict[str, Any], projection: Optional[Dict[str, Any]] = None):
        self.calls.append("find_one")
        for document in self.documents:
            if _matches(document, query):
                found = copy.deepcopy(document)
                if projection:
                    found = {k: v for k, v in found.items() if k == "_id" or k in projection}
                return found
        return None

    async def insert_one(self, document: Dict[str, Any]):
        self.calls.append("insert_one")
        # pymongo adds the generated _id to the caller's dict
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(acknowledged=True, inserted_id=document["_id"])

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]):
        self.calls.append("update_one")
        for document in self.documents:
            if _matches(document, query):
                changes = update["$set"]
                modified = any(document.get(k) != v for k, v in changes.items())
                document.update(copy.deepcopy(changes))
                return SimpleNamespace(acknowledged=True, matched_count=1, modified_count=int(modified))
        return SimpleNamespace(acknowledged=True, matched_count=0, modified_count=0)

    async def delete_one(self, query: Dict[str, Any]):
        self.calls.append("delete_one")
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return SimpleNamespace(acknowledged=True, deleted_count=1)
        return SimpleNamespace(acknowledged=True, deleted_count=0)


class FakeVerifier(IdentityVerifier):
    """Accepts only the tokens it was given; everything else is InvalidCredential."""

    def __init__(self, identities: Dict[str, VerifiedIdentity]):
        self.identities = identities
        self.verified: List[str] = []

    async def verify_token(self, token: str) -> VerifiedIdentity:
        self.verified.append(token)
        if token not in self.identities:
            raise InvalidCredential(context={"reason": "unknown test token"})
        return self.identities[token]

    async def health_check(self) -> bool:
        return True


class FakeGateway:
    """Serves a FakeCollection, or raises StoreUnavailable when `available` is False."""

    def __init__(self, collection: FakeCollection, available: bool = True):
        self.collection = collection
        self.available = available
        self.connects = 0

    async def get_collection(self) -> FakeCollection:
        self.connects += 1
        if not self.available:
            raise StoreUnavailable(context={"reason": "test"})
        return self.collection

    async def ping(self) -> bool:
        return self.available


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def alice() -> VerifiedIdentity:
    return VerifiedIdentity(uid="uid-alice", email="real@x.com", claims={"email": "real@x.com"})


@pytest.fixture
def bob() -> VerifiedIdentity:
    return VerifiedIdentity(uid="uid-bob", email="other@x.com", claims={"email": "other@x.com"})


@pytest.fixture
def verifier(alice, bob) -> FakeVerifier:
    return FakeVerifier({"alice-token": alice, "bob-token": bob})


@pytest.fixture
def gateway(fake_collection) -> FakeGateway:
    return FakeGateway(fake_collection)


@pytest.fixture
def test_app(verifier, gateway):
    """A fresh app per test with external services replaced by fakes."""
    from finease.database import get_store_gateway
    from finease.dependencies import get_identity_verifier
    from finease.main import create_app

    app = create_app()
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    app.dependency_overrides[get_store_gateway] = lambda: gateway
    return app


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False: the catch-all handler's 500 response is
    returned to the test instead of the original exception being re-raised.
    """
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer bob-token"}
