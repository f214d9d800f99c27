import asyncio

import pytest

from helpdesk.create_admin import create_admin
from helpdesk.services.users import authenticate_user, create_user, get_user_by_email
from helpdesk.update_user_role import RoleUpdateError, update_user_role


def run(coro):
    return asyncio.run(coro)


def test_create_admin_from_scratch(db):
    user = run(create_admin(db, "Boss@Example.com", "admin123", "Boss"))

    assert user["email"] == "boss@example.com"
    assert user["role"] == "admin"
    assert run(authenticate_user(db, "boss@example.com", "admin123")) is not None


def test_create_admin_promotes_existing_user(db):
    run(create_user(db, {"email": "a@x.com", "password": "secret1", "name": "A"}))

    user = run(create_admin(db, "a@x.com", "newpass1", "Admin A"))

    assert user["role"] == "admin"
    assert user["name"] == "Admin A"
    assert run(authenticate_user(db, "a@x.com", "secret1")) is None
    assert run(authenticate_user(db, "a@x.com", "newpass1")) is not None


def test_update_user_role(db):
    run(create_user(db, {"email": "a@x.com", "password": "secret1", "name": "A"}))
    before = run(get_user_by_email(db, "a@x.com"))

    user = run(update_user_role(db, "a@x.com", "agent"))

    assert user["role"] == "agent"
    # Role changes leave the stored hash alone
    assert user["password"] == before["password"]


def test_update_user_role_rejects_unknown_role(db):
    with pytest.raises(RoleUpdateError):
        run(update_user_role(db, "a@x.com", "superuser"))


def test_update_user_role_rejects_missing_user(db):
    with pytest.raises(RoleUpdateError):
        run(update_user_role(db, "ghost@x.com", "admin"))
