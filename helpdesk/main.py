# helpdesk/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from helpdesk.config import LOG_LEVEL
from helpdesk.db import Database, database
from helpdesk.dependencies import get_database
from helpdesk.routers import auth, tickets
from helpdesk.services.policy import InvalidStatusTransition, TicketPermissionError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "helpdesk"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s API", SERVICE_NAME)
    yield
    database.close()


# -------------------------
# Initialize FastAPI App
# -------------------------
app = FastAPI(title="Helpdesk Ticketing API", lifespan=lifespan)


# -------------------------
# Error Handlers
# -------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(InvalidStatusTransition)
async def status_transition_handler(request: Request, exc: InvalidStatusTransition):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(TicketPermissionError)
async def permission_error_handler(request: Request, exc: TicketPermissionError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc) or "Forbidden"})


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# -------------------------
# Root Route
# -------------------------
@app.get("/")
def read_root():
    return {"message": "Welcome to the Helpdesk Ticketing API!"}


# -------------------------
# Health Route
# -------------------------
@app.get("/health")
async def health(handle: Database = Depends(get_database)):
    timestamp = datetime.utcnow().isoformat()
    try:
        await handle.ping()
    except Exception:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": "Database connection failed", "timestamp": timestamp},
        )
    return {"status": "healthy", "timestamp": timestamp, "service": SERVICE_NAME}


# -------------------------
# Include Routers
# -------------------------
app.include_router(auth.router)
app.include_router(auth.users_router)
app.include_router(tickets.router)
