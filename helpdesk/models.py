from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    AGENT = "agent"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


STAFF_ROLES = {Role.AGENT.value, Role.ADMIN.value}
