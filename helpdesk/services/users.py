import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from helpdesk.auth import get_password_hash, verify_password
from helpdesk.models import Role

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(Exception):
    """Raised when creating a user whose email is already taken."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


def prepare_user(data: dict) -> dict:
    """
    Build the document for a new user.

    The plaintext password is replaced by its hash here and nowhere else on
    the create path.
    """
    now = datetime.utcnow()
    return {
        "email": normalize_email(data["email"]),
        "password": get_password_hash(data["password"]),
        "name": data["name"].strip(),
        "role": data.get("role") or Role.USER.value,
        "created_at": now,
        "updated_at": now,
    }


def prepare_user_changes(changes: dict) -> dict:
    """Build a ``$set`` document, hashing the password only if it is being changed."""
    update = dict(changes)
    if "password" in update:
        update["password"] = get_password_hash(update["password"])
    if "email" in update:
        update["email"] = normalize_email(update["email"])
    if "name" in update:
        update["name"] = update["name"].strip()
    update["updated_at"] = datetime.utcnow()
    return update


def public_user(user: dict) -> dict:
    return {
        "_id": str(user["_id"]),
        "email": user["email"],
        "name": user["name"],
        "role": user["role"],
        "created_at": user.get("created_at"),
        "updated_at": user.get("updated_at"),
    }


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return await db["users"].find_one({"email": normalize_email(email)})


async def get_user_by_id(db: AsyncIOMotorDatabase, user_id) -> Optional[dict]:
    try:
        oid = user_id if isinstance(user_id, ObjectId) else ObjectId(user_id)
    except (InvalidId, TypeError):
        return None
    return await db["users"].find_one({"_id": oid})


async def create_user(db: AsyncIOMotorDatabase, data: dict) -> dict:
    email = normalize_email(data["email"])
    if await db["users"].find_one({"email": email}):
        raise EmailAlreadyRegistered(email)

    user = prepare_user(data)
    try:
        result = await db["users"].insert_one(user)
    except DuplicateKeyError:
        raise EmailAlreadyRegistered(user["email"])
    user["_id"] = result.inserted_id
    logger.info("Registered user %s (%s)", user["_id"], user["email"])
    return user


async def update_user(db: AsyncIOMotorDatabase, user_id: ObjectId, changes: dict) -> Optional[dict]:
    return await db["users"].find_one_and_update(
        {"_id": user_id},
        {"$set": prepare_user_changes(changes)},
        return_document=ReturnDocument.AFTER,
    )


async def authenticate_user(db: AsyncIOMotorDatabase, email: str, password: str) -> Optional[dict]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.get("password")):
        return None
    return user
