import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi.exceptions import RequestValidationError
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from helpdesk.models import TicketStatus
from helpdesk.services.policy import TICKET_SORT

logger = logging.getLogger(__name__)

# Projection used when embedding users into tickets
USER_SUMMARY = {"name": 1, "email": 1}


def parse_object_id(value: str, loc: tuple) -> ObjectId:
    """Convert a client-supplied id, answering a validation error when it is malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise RequestValidationError(
            [{"loc": loc, "msg": "Invalid id", "type": "object_id", "input": value}]
        ) from None


# -----------------------------
# Helper: Convert ObjectId to string (recursive for nested dicts/lists)
# -----------------------------
def serialize_ticket(ticket):
    if not ticket:
        return None

    def serialize(obj):
        if isinstance(obj, dict):
            return {k: serialize(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [serialize(i) for i in obj]
        elif isinstance(obj, ObjectId):
            return str(obj)
        else:
            return obj

    return serialize(ticket)


async def populate_ticket(db: AsyncIOMotorDatabase, ticket: dict) -> dict:
    """Replace creator and assignee ids with {_id, name, email}."""
    populated = dict(ticket)
    for field in ("created_by", "assigned_to"):
        user_id = ticket.get(field)
        if user_id is None:
            continue
        user = await db["users"].find_one({"_id": user_id}, USER_SUMMARY)
        populated[field] = user or {"_id": user_id}
    return populated


async def list_tickets(db: AsyncIOMotorDatabase, query: dict) -> List[dict]:
    cursor = db["tickets"].find(query, sort=TICKET_SORT)
    return [await populate_ticket(db, t) async for t in cursor]


async def get_ticket(db: AsyncIOMotorDatabase, ticket_id: str) -> Optional[dict]:
    try:
        oid = ObjectId(ticket_id)
    except (InvalidId, TypeError):
        return None
    return await db["tickets"].find_one({"_id": oid})


async def create_ticket(db: AsyncIOMotorDatabase, user: dict, data: dict) -> dict:
    now = datetime.utcnow()
    assigned_to = data.get("assigned_to")
    ticket = {
        "title": data["title"],
        "description": data["description"],
        "status": TicketStatus.OPEN.value,
        "priority": data["priority"],
        "category": data["category"],
        "created_by": user["_id"],
        "assigned_to": parse_object_id(assigned_to, ("body", "assignedTo")) if assigned_to else None,
        "created_at": now,
        "updated_at": now,
    }
    result = await db["tickets"].insert_one(ticket)
    ticket["_id"] = result.inserted_id
    logger.info("Ticket %s created by %s", ticket["_id"], user["_id"])
    return ticket


async def update_ticket(db: AsyncIOMotorDatabase, ticket: dict, changes: dict) -> dict:
    update = dict(changes)
    if "assigned_to" in update and update["assigned_to"] is not None:
        update["assigned_to"] = parse_object_id(update["assigned_to"], ("body", "assignedTo"))
    update["updated_at"] = datetime.utcnow()
    return await db["tickets"].find_one_and_update(
        {"_id": ticket["_id"]},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )


async def delete_ticket(db: AsyncIOMotorDatabase, ticket: dict) -> None:
    await db["tickets"].delete_one({"_id": ticket["_id"]})
