# helpdesk/routers/tickets.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from helpdesk.dependencies import get_db, require_auth
from helpdesk.models import STAFF_ROLES, TicketPriority, TicketStatus
from helpdesk.schemas.ticket import TicketCreate, TicketUpdate
from helpdesk.services import policy
from helpdesk.services.tickets import (
    create_ticket,
    delete_ticket,
    get_ticket,
    list_tickets,
    parse_object_id,
    populate_ticket,
    serialize_ticket,
    update_ticket,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


async def load_ticket(db: AsyncIOMotorDatabase, ticket_id: str) -> dict:
    ticket = await get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


# -----------------------------
# LIST Tickets
# -----------------------------
@router.get("")
async def get_tickets(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_auth),
    status: Optional[TicketStatus] = Query(None),
    priority: Optional[TicketPriority] = Query(None),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    created_by: Optional[str] = Query(None, alias="createdBy"),
):
    # Plain users are pinned to their own tickets, so their id filters are never read
    if current_user.get("role") not in STAFF_ROLES:
        assigned_to = created_by = None

    query = policy.build_ticket_filter(
        current_user,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=parse_object_id(assigned_to, ("query", "assignedTo")) if assigned_to else None,
        created_by=parse_object_id(created_by, ("query", "createdBy")) if created_by else None,
    )
    tickets = await list_tickets(db, query)
    return {"tickets": [serialize_ticket(t) for t in tickets]}


# -----------------------------
# CREATE Ticket
# -----------------------------
@router.post("", status_code=201)
async def post_ticket(
    data: TicketCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_auth),
):
    ticket = await create_ticket(db, current_user, policy.mask_update(current_user, data.model_dump()))
    ticket = await populate_ticket(db, ticket)
    return {"message": "Ticket created successfully", "ticket": serialize_ticket(ticket)}


# -----------------------------
# GET Ticket Detail
# -----------------------------
@router.get("/{ticket_id}")
async def get_ticket_detail(
    ticket_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_auth),
):
    ticket = await load_ticket(db, ticket_id)
    policy.ensure_can_view(current_user, ticket)
    ticket = await populate_ticket(db, ticket)
    return {"ticket": serialize_ticket(ticket)}


# -----------------------------
# UPDATE Ticket
# -----------------------------
@router.put("/{ticket_id}")
async def put_ticket(
    ticket_id: str,
    data: TicketUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_auth),
):
    ticket = await load_ticket(db, ticket_id)

    # Ownership first, then strip what the role may not change
    policy.ensure_can_modify(current_user, ticket)
    changes = policy.mask_update(current_user, data.changes())

    if "status" in changes:
        policy.check_status_transition(ticket["status"], changes["status"])

    updated = await update_ticket(db, ticket, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    logger.info("Ticket %s updated by %s: %s", ticket["_id"], current_user["_id"], sorted(changes))

    updated = await populate_ticket(db, updated)
    return {"message": "Ticket updated successfully", "ticket": serialize_ticket(updated)}


# -----------------------------
# DELETE Ticket
# -----------------------------
@router.delete("/{ticket_id}")
async def remove_ticket(
    ticket_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_auth),
):
    ticket = await load_ticket(db, ticket_id)
    policy.ensure_can_delete(current_user, ticket)

    await delete_ticket(db, ticket)
    logger.info("Ticket %s deleted by %s", ticket["_id"], current_user["_id"])
    return {"message": "Ticket deleted successfully"}
