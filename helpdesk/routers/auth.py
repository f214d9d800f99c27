# helpdesk/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from helpdesk.auth import create_access_token
from helpdesk.config import ACCESS_TOKEN_EXPIRE_DAYS, COOKIE_SECURE, TOKEN_COOKIE_NAME
from helpdesk.dependencies import get_db, require_auth, require_role
from helpdesk.models import Role
from helpdesk.schemas.user import UserCreate, UserLogin
from helpdesk.services.users import (
    EmailAlreadyRegistered,
    authenticate_user,
    create_user,
    public_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
users_router = APIRouter(prefix="/users", tags=["Users"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


# -------------------------
# Register Route
# -------------------------
@router.post("/register", status_code=201)
async def register(user: UserCreate, response: Response, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        created = await create_user(db, user.model_dump())
    except EmailAlreadyRegistered:
        raise HTTPException(status_code=400, detail="Email already registered")

    token = create_access_token(created)
    set_session_cookie(response, token)
    return {"message": "User registered successfully", "user": public_user(created), "token": token}


# -------------------------
# Login Route
# -------------------------
@router.post("/login")
async def login(credentials: UserLogin, response: Response, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        logger.info("Failed login for %s", credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token = create_access_token(user)
    set_session_cookie(response, token)
    logger.info("User %s logged in", user["_id"])
    return {"user": public_user(user), "token": token, "token_type": "bearer"}


# -------------------------
# Logout Route
# -------------------------
@router.post("/logout")
async def logout(response: Response):
    # The token stays valid until it expires; only the cookie goes away
    response.delete_cookie(TOKEN_COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="lax")
    return {"message": "Logged out successfully"}


@router.get("/me")
async def read_me(current_user: dict = Depends(require_auth)):
    return {"user": public_user(current_user)}


# -------------------------
# Staff: list users (for picking assignees)
# -------------------------
@users_router.get("")
async def get_users(
    db: AsyncIOMotorDatabase = Depends(get_db),
    current_user: dict = Depends(require_role(Role.ADMIN.value, Role.AGENT.value)),
):
    users = []
    cursor = db["users"].find({}, sort=[("email", ASCENDING)])
    async for user in cursor:
        users.append(public_user(user))
    return {"users": users}
