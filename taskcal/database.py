"""
TASKCAL Core API - Database Module

Motor (async MongoDB driver) connection lifecycle and index setup for the
task collection that backs the calendar.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from taskcal.config import settings

logger = logging.getLogger(__name__)

TASKS_COLLECTION = "tasks"


class Database:
    """Holds the single Motor client used by the service."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self, uri: str | None = None, name: str | None = None) -> None:
        self.client = AsyncIOMotorClient(uri or settings.MONGODB_URI)
        self.db = self.client[name or settings.MONGODB_DATABASE]
        logger.info(f"Connected to MongoDB database '{self.db.name}'")

    async def ensure_indexes(self) -> None:
        """Create the indexes calendar range queries rely on."""
        tasks = self.get_database()[TASKS_COLLECTION]
        # Range queries are always owner-scoped and bounded on due
        await tasks.create_index([("owner_id", 1), ("due", 1)])
        await tasks.create_index([("owner_id", 1), ("status", 1)])

    async def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.db


# Singleton database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get the database instance."""
    return database.get_database()
