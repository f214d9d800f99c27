"""
Ticket access policy.

Who may list, read, change and delete tickets, decided from the requester's
role and the ticket's creator. Nothing here touches the database: the read
rule produces a Mongo filter, the write rules check or trim a payload.
"""

from typing import Optional

from bson import ObjectId
from pymongo import DESCENDING

from helpdesk.config import ENFORCE_STATUS_FLOW
from helpdesk.models import Role, STAFF_ROLES, TicketStatus

# Newest first
TICKET_SORT = [("created_at", DESCENDING)]

# Fields only agents and admins may change
STAFF_ONLY_FIELDS = ("status", "assigned_to")

STATUS_FLOW = {
    TicketStatus.OPEN.value: {TicketStatus.IN_PROGRESS.value, TicketStatus.CLOSED.value},
    TicketStatus.IN_PROGRESS.value: {TicketStatus.RESOLVED.value, TicketStatus.OPEN.value},
    TicketStatus.RESOLVED.value: {TicketStatus.CLOSED.value, TicketStatus.OPEN.value},
    TicketStatus.CLOSED.value: {TicketStatus.OPEN.value},
}


class TicketPermissionError(Exception):
    """The requester is authenticated but may not touch this ticket."""


class InvalidStatusTransition(ValueError):
    def __init__(self, current: str, new: str):
        super().__init__(f"Cannot move ticket from '{current}' to '{new}'")
        self.current = current
        self.new = new


def is_creator(user: dict, ticket: dict) -> bool:
    return ticket.get("created_by") == user["_id"]


def build_ticket_filter(
    user: dict,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[ObjectId] = None,
    created_by: Optional[ObjectId] = None,
) -> dict:
    """
    Build the listing query for ``user``.

    Plain users are pinned to their own tickets whatever they ask for. Staff
    may filter by creator and assignee; an agent who names no assignee gets
    the work queue: tickets assigned to them plus unassigned ones.
    """
    role = user.get("role", Role.USER.value)
    query = {}

    if role == Role.USER.value:
        query["created_by"] = user["_id"]
    elif created_by is not None:
        query["created_by"] = created_by

    if assigned_to is not None and role in STAFF_ROLES:
        query["assigned_to"] = assigned_to
    elif role == Role.AGENT.value and assigned_to is None:
        query["$or"] = [{"assigned_to": user["_id"]}, {"assigned_to": None}]

    if status:
        query["status"] = status
    if priority:
        query["priority"] = priority

    return query


def can_view_ticket(user: dict, ticket: dict) -> bool:
    return user.get("role") in STAFF_ROLES or is_creator(user, ticket)


def ensure_can_view(user: dict, ticket: dict) -> None:
    if not can_view_ticket(user, ticket):
        raise TicketPermissionError("Forbidden")


def ensure_can_modify(user: dict, ticket: dict) -> None:
    if user.get("role") not in STAFF_ROLES and not is_creator(user, ticket):
        raise TicketPermissionError("Forbidden")


def ensure_can_delete(user: dict, ticket: dict) -> None:
    if user.get("role") != Role.ADMIN.value and not is_creator(user, ticket):
        raise TicketPermissionError("Admins or ticket owner only")


def mask_update(user: dict, changes: dict) -> dict:
    """Drop the fields the requester's role may not change."""
    if user.get("role") in STAFF_ROLES:
        return dict(changes)
    return {k: v for k, v in changes.items() if k not in STAFF_ONLY_FIELDS}


def check_status_transition(current: str, new: str, enforce: bool = ENFORCE_STATUS_FLOW) -> None:
    if not enforce or current == new:
        return
    if new not in STATUS_FLOW.get(current, set()):
        raise InvalidStatusTransition(current, new)
