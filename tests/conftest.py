import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from helpdesk.db import Database
from helpdesk.dependencies import get_database
from helpdesk.main import app


@pytest.fixture
def database():
    return Database("mongodb://localhost:27017", "helpdesk_test", client=AsyncMongoMockClient())


@pytest.fixture
def db(database):
    return asyncio.run(database.connect())


@pytest.fixture
def client(database):
    app.dependency_overrides[get_database] = lambda: database
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client, db):
    """Register a user through the API, then set its role directly in the store."""

    def _make(email, role="user", password="secret1", name=None):
        r = client.post(
            "/auth/register",
            json={"email": email, "password": password, "name": name or email.split("@")[0]},
        )
        assert r.status_code == 201, r.text
        # Keep requests explicit: every test passes its own bearer header
        client.cookies.clear()
        body = r.json()
        if role != "user":
            asyncio.run(db["users"].update_one({"email": email}, {"$set": {"role": role}}))
        return {
            "id": body["user"]["_id"],
            "email": email,
            "token": body["token"],
            "headers": auth_headers(body["token"]),
        }

    return _make


@pytest.fixture
def make_ticket(client):
    def _make(owner, **fields):
        payload = {"title": "Printer jam", "description": "Tray 2 is stuck", "category": "Hardware"}
        payload.update(fields)
        r = client.post("/tickets", json=payload, headers=owner["headers"])
        assert r.status_code == 201, r.text
        return r.json()["ticket"]

    return _make
