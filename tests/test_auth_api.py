import asyncio

from helpdesk.config import TOKEN_COOKIE_NAME
from helpdesk.services import users as users_service

from conftest import auth_headers


def register(client, email="a@x.com", password="secret1", name="A"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name})


def test_register_creates_plain_user(client):
    r = register(client)

    assert r.status_code == 201
    user = r.json()["user"]
    assert user["email"] == "a@x.com"
    assert user["role"] == "user"
    assert "password" not in user
    assert r.json()["token"]
    assert TOKEN_COOKIE_NAME in r.cookies


def test_register_normalizes_email(client, db):
    register(client, email="  Mixed@Example.COM ")
    stored = asyncio.run(db["users"].find_one({"email": "mixed@example.com"}))
    assert stored is not None
    assert stored["password"] != "secret1"


def test_register_rejects_duplicate_email(client):
    assert register(client).status_code == 201
    r = register(client, email="A@x.com")
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"


def test_register_validation_errors(client):
    r = client.post("/auth/register", json={"email": "not-an-email", "password": "123", "name": ""})
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "Validation error"
    fields = {e["loc"][-1] for e in body["errors"]}
    assert fields == {"email", "password", "name"}


def test_login(client):
    register(client)
    client.cookies.clear()

    r = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"
    assert r.json()["user"]["email"] == "a@x.com"
    assert TOKEN_COOKIE_NAME in r.cookies


def test_login_bad_credentials(client):
    register(client)
    client.cookies.clear()

    r = client.post("/auth/login", json={"email": "a@x.com", "password": "wrong"})
    assert r.status_code == 401
    r = client.post("/auth/login", json={"email": "nobody@x.com", "password": "secret1"})
    assert r.status_code == 401


def test_me_requires_session(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers=auth_headers("garbage")).status_code == 401


def test_me_with_bearer(client, make_user):
    user = make_user("a@x.com")
    r = client.get("/auth/me", headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["user"]["_id"] == user["id"]


def test_cookie_wins_over_bearer(client, make_user):
    a = make_user("a@x.com")
    b = make_user("b@x.com")

    client.cookies.set(TOKEN_COOKIE_NAME, a["token"])
    r = client.get("/auth/me", headers=b["headers"])
    assert r.json()["user"]["_id"] == a["id"]

    # A bad cookie is not rescued by a good header
    client.cookies.set(TOKEN_COOKIE_NAME, "garbage")
    assert client.get("/auth/me", headers=b["headers"]).status_code == 401


def test_token_for_deleted_user_is_rejected(client, db, make_user):
    user = make_user("a@x.com")
    asyncio.run(db["users"].delete_one({"email": "a@x.com"}))
    assert client.get("/auth/me", headers=user["headers"]).status_code == 401


def test_logout_clears_cookie(client):
    register(client)
    assert client.get("/auth/me").status_code == 200

    r = client.post("/auth/logout")
    assert r.status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_role_check_on_user_listing(client, make_user):
    user = make_user("u@x.com")
    agent = make_user("agent@x.com", role="agent")
    admin = make_user("admin@x.com", role="admin")

    assert client.get("/users").status_code == 401
    assert client.get("/users", headers=user["headers"]).status_code == 403

    for staff in (agent, admin):
        r = client.get("/users", headers=staff["headers"])
        assert r.status_code == 200
        emails = [u["email"] for u in r.json()["users"]]
        assert emails == ["admin@x.com", "agent@x.com", "u@x.com"]

def test_register_ignores_client_supplied_role(client, db):
    r = client.post(
        "/auth/register",
        json={"email": "sneaky@x.com", "password": "secret1", "name": "S", "role": "admin"},
    )
    assert r.status_code == 201
    assert r.json()["user"]["role"] == "user"
    stored = asyncio.run(db["users"].find_one({"email": "sneaky@x.com"}))
    assert stored["role"] == "user"


def test_login_with_malformed_email_is_unauthorized(client):
    register(client)
    client.cookies.clear()

    r = client.post("/auth/login", json={"email": "not-an-email", "password": "secret1"})
    assert r.status_code == 401
    r = client.post("/auth/login", json={"email": "  A@X.com ", "password": "secret1"})
    assert r.status_code == 200


def test_duplicate_registration_skips_hashing(client, monkeypatch):
    assert register(client).status_code == 201

    calls = []
    real_hash = users_service.get_password_hash

    def counting_hash(password):
        calls.append(password)
        return real_hash(password)

    monkeypatch.setattr(users_service, "get_password_hash", counting_hash)
    r = register(client, email="A@x.com")
    assert r.status_code == 400
    assert calls == []
