# helpdesk/db.py
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from helpdesk.config import MONGODB_DB, MONGODB_URI

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the Motor client for the process.

    Nothing touches the network until ``connect()`` is awaited. ``connect()``
    may be called on every request; the client is created and the indexes
    are built only the first time.
    """

    def __init__(self, uri: str, name: str, client: Optional[AsyncIOMotorClient] = None):
        self.uri = uri
        self.name = name
        self._client = client
        self._db: Optional[AsyncIOMotorDatabase] = None

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            self._client = AsyncIOMotorClient(self.uri)
        return self._client

    @property
    def connected(self) -> bool:
        return self._db is not None

    async def connect(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            db = self.client[self.name]
            await ensure_indexes(db)
            logger.info("Connected to MongoDB database %r", self.name)
            self._db = db
        return self._db

    async def ping(self) -> None:
        await self.client.admin.command("ping")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["users"].create_index("email", unique=True)
    await db["tickets"].create_index([("created_by", ASCENDING), ("status", ASCENDING)])
    await db["tickets"].create_index([("assigned_to", ASCENDING), ("status", ASCENDING)])


# Process-wide handle, injected through helpdesk.dependencies
database = Database(MONGODB_URI, MONGODB_DB)
