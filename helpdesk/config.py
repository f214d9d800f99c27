# helpdesk/config.py
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "change-me-in-production"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# MongoDB
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "helpdesk")

# JWT settings
JWT_SECRET = os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", 7))

# Session cookie
TOKEN_COOKIE_NAME = os.getenv("TOKEN_COOKIE_NAME", "token")
COOKIE_SECURE = _flag("COOKIE_SECURE", "false")

# Tickets
ENFORCE_STATUS_FLOW = _flag("ENFORCE_STATUS_FLOW", "true")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ROLES = ("user", "admin", "agent")
DEFAULT_ROLE = "user"
