# helpdesk/dependencies.py
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param
from motor.motor_asyncio import AsyncIOMotorDatabase

from helpdesk.auth import verify_token
from helpdesk.config import TOKEN_COOKIE_NAME
from helpdesk.db import Database, database
from helpdesk.services.users import get_user_by_id

logger = logging.getLogger(__name__)


async def get_database() -> Database:
    return database


async def get_db(handle: Database = Depends(get_database)) -> AsyncIOMotorDatabase:
    return await handle.connect()


# -------------------------
# Session Resolver
# -------------------------
def get_session_token(request: Request) -> Optional[str]:
    """Cookie first, then ``Authorization: Bearer``."""
    token = request.cookies.get(TOKEN_COOKIE_NAME)
    if token:
        return token
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() == "bearer" and param:
        return param
    return None


async def resolve_session(request: Request, db: AsyncIOMotorDatabase) -> Optional[dict]:
    payload = verify_token(get_session_token(request))
    if payload is None:
        return None
    return await get_user_by_id(db, payload["sub"])


# -------------------------
# Access Pipeline
# -------------------------
@dataclass
class RequestContext:
    request: Request
    db: AsyncIOMotorDatabase
    user: Optional[dict] = None


Check = Callable[[RequestContext], Awaitable[RequestContext]]


class AccessPipeline:
    """
    Dependency running an ordered list of checks before a route.

    Each check gets the context and either returns it (possibly with more
    filled in) or raises ``HTTPException`` to answer the request itself.
    The route receives the resolved user.
    """

    def __init__(self, *checks: Check):
        self.checks = checks

    async def __call__(self, request: Request, db: AsyncIOMotorDatabase = Depends(get_db)) -> Optional[dict]:
        ctx = RequestContext(request=request, db=db)
        for check in self.checks:
            ctx = await check(ctx)
        return ctx.user


async def authenticated(ctx: RequestContext) -> RequestContext:
    user = await resolve_session(ctx.request, ctx.db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return RequestContext(request=ctx.request, db=ctx.db, user=user)


def has_role(*roles: str) -> Check:
    allowed = set(roles)

    async def check(ctx: RequestContext) -> RequestContext:
        if ctx.user is None or ctx.user.get("role") not in allowed:
            logger.info("Role check failed for %s", ctx.user and ctx.user.get("email"))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return ctx

    return check


require_auth = AccessPipeline(authenticated)


def require_role(*roles: str) -> AccessPipeline:
    return AccessPipeline(authenticated, has_role(*roles))
