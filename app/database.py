# app/database.py
import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from app.errors import StoreConnectionError

logger = logging.getLogger(__name__)

DRIVERS_COLLECTION = "drivers"


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


async def init_db(db: AsyncIOMotorDatabase) -> None:
    await db[DRIVERS_COLLECTION].create_index([("plateNumber", ASCENDING)], unique=True)
    logger.info("Database initialized: %s", db.name)


async def insert_sample_data(db: AsyncIOMotorDatabase) -> bool:
    if await db[DRIVERS_COLLECTION].count_documents({}) > 0:
        logger.info("Sample data already exists. Skipping insertion.")
        return False

    drivers = [
        {
            "driverName": "Budi Santoso",
            "plateNumber": "B 7012 TGA",
            "kirExpiration": datetime(2025, 3, 1, tzinfo=timezone.utc),
            "busYear": 2018,
        },
        {
            "driverName": "Siti Rahmawati",
            "plateNumber": "D 7455 AB",
            "kirExpiration": datetime(2025, 9, 15, tzinfo=timezone.utc),
            "busYear": 2020,
        },
        {
            "driverName": "Agus Wijaya",
            "plateNumber": "L 7890 UZ",
            "kirExpiration": datetime(2026, 1, 31, tzinfo=timezone.utc),
            "busYear": 2016,
        },
    ]
    await db[DRIVERS_COLLECTION].insert_many(drivers)
    logger.info("Inserted %d sample drivers", len(drivers))
    return True


class ConnectionManager:
    """Lazily connects to MongoDB once per process and shares the handle.

    Concurrent first callers await the same in-flight attempt. A failed
    attempt is forgotten so the next call starts over.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        client_factory: Callable[..., AsyncIOMotorClient] = AsyncIOMotorClient,
        initializer: Optional[Callable[[AsyncIOMotorDatabase], Awaitable[None]]] = init_db,
        timeout_ms: int = 5000,
    ):
        self._uri = uri
        self._db_name = db_name
        self._client_factory = client_factory
        self._initializer = initializer
        self._timeout_ms = timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None
        self._pending: Optional[asyncio.Task] = None
        self.state = ConnectionState.UNINITIALIZED

    async def get_connection(self) -> AsyncIOMotorDatabase:
        if self.state is ConnectionState.READY:
            return self._db

        if self._pending is None:
            self.state = ConnectionState.CONNECTING
            self._pending = asyncio.ensure_future(self._connect())

        return await asyncio.shield(self._pending)

    async def _connect(self) -> AsyncIOMotorDatabase:
        logger.info("Connecting to MongoDB database %s", self._db_name)
        client = None
        try:
            client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                tz_aware=True,
            )
            await client.admin.command("ping")
            db = client[self._db_name]
            if self._initializer is not None:
                await self._initializer(db)
        except asyncio.CancelledError:
            if client is not None:
                client.close()
            self._pending = None
            self.state = ConnectionState.UNINITIALIZED
            raise
        except Exception as e:
            logger.error("MongoDB connection failed: %s", e)
            if client is not None:
                client.close()
            self._pending = None
            self.state = ConnectionState.FAILED
            raise StoreConnectionError("Database unavailable", str(e)) from e

        self._client = client
        self._db = db
        self._pending = None
        self.state = ConnectionState.READY
        logger.info("Connected to MongoDB: %s", self._db_name)
        return db

    async def close(self) -> None:
        pending = self._pending
        if pending is not None:
            pending.cancel()
            await asyncio.gather(pending, return_exceptions=True)
            self._pending = None
        if self._client:
            self._client.close()
            logger.info("Closed MongoDB connection")
        self._client = None
        self._db = None
        self.state = ConnectionState.UNINITIALIZED


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connections
