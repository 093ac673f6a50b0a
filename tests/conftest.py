import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import PyMongoError

from app.main import app
from app.core.config import settings
from app.core.security import create_access_token, hash_password
from app.db import mongo
from app.models.quotation import new_quotation_document
from app.models.user import new_user_document
from app.services.email_service import get_email_service
from utils import time_utils

PASSWORD = "secret123"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db(monkeypatch):
    """Fresh in-memory database patched into app.db.mongo."""
    client = AsyncMongoMockClient()
    database = client["printquote_test"]
    monkeypatch.setattr(mongo, "_client", client)
    monkeypatch.setattr(mongo, "_database", database)
    return database


@pytest.fixture
def storage(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_ROOT", str(tmp_path))
    return tmp_path


@pytest.fixture
def outbox(monkeypatch):
    """Captures outgoing email instead of sending it."""
    sent = []

    async def fake_send(to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})

    monkeypatch.setattr(get_email_service(), "send", fake_send)
    return sent


@pytest.fixture
def client(db, storage, outbox):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", hours=4, verified=True, email=None, name="Test User"):
        counter["n"] += 1
        document = new_user_document(
            name=name,
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(PASSWORD),
            role=role,
            hours_balance=hours,
            now=time_utils.utcnow(),
            is_verified=verified,
        )
        result = run(db.users.insert_one(document))
        document["_id"] = result.inserted_id
        return document

    return _make


@pytest.fixture
def make_quotation(db):
    def _make(owner, status="requested", required_hour=None, **extra):
        document = new_quotation_document(
            user_id=owner["_id"],
            fields={"project_name": "Bracket", "description": "Wall bracket for a shelf"},
            file_path="/uploads/2024/1/1/bracket_1.stl",
            file_type="STL",
            file_size=10,
            now=time_utils.utcnow(),
        )
        document.update({"status": status, "required_hour": required_hour})
        document.update(extra)
        result = run(db.quotations.insert_one(document))
        document["_id"] = result.inserted_id
        return document

    return _make


@pytest.fixture
def auth():
    """Returns request headers carrying a valid token for a user."""
    def _headers(user):
        token = create_access_token(str(user["_id"]), user["role"])
        return {"Authorization": f"Bearer {token}"}

    return _headers


class FailingCollection:
    """Delegates to a real collection except for one method, which raises."""

    def __init__(self, collection, method):
        self._collection = collection
        self._method = method

    def __getattr__(self, name):
        if name == self._method:
            async def fail(*args, **kwargs):
                raise PyMongoError(f"{name} failed")
            return fail
        return getattr(self._collection, name)


@pytest.fixture
def fail_writes(monkeypatch):
    """Makes `method` raise on the collection a module gets from `getter`."""
    def _patch(module, getter, method):
        real = getattr(module, getter)
        monkeypatch.setattr(module, getter, lambda: FailingCollection(real(), method))

    return _patch
