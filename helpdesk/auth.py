# helpdesk/auth.py
import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from helpdesk.config import (
    ACCESS_TOKEN_EXPIRE_DAYS,
    DEFAULT_JWT_SECRET,
    JWT_ALGORITHM,
    JWT_SECRET,
)

logger = logging.getLogger(__name__)

if JWT_SECRET == DEFAULT_JWT_SECRET:
    logger.warning("JWT_SECRET is not set, using the development default")

# Use argon2 for password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# Hash password
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# Verify password
def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        return False


# Create JWT token
def create_access_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token carrying the user's id, email and role."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user["_id"]),
        "email": user["email"],
        "role": user["role"],
        "exp": expire,
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


# Verify JWT token
def verify_token(token: Optional[str]) -> Optional[dict]:
    """
    Decode a session token.

    Every failure (empty, malformed, wrongly signed, expired) collapses to
    None so callers only have to decide whether to deny access.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload
