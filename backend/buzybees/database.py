"""
MongoDB Database Connection Management
Uses Motor for async MongoDB operations
"""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure
import logging

from buzybees.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls) -> None:
        """Establish connection to MongoDB"""
        settings = get_settings()
        try:
            cls.client = AsyncIOMotorClient(
                settings.MONGO_URL,
                maxPoolSize=50,
                minPoolSize=10,
                serverSelectionTimeoutMS=5000
            )
            # Verify connection
            await cls.client.admin.command("ping")
            cls.db = cls.client[settings.DB_NAME]
            logger.info(f"Connected to MongoDB: {settings.DB_NAME}")

            await cls._create_indexes()

        except ConnectionFailure as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    @classmethod
    async def disconnect(cls) -> None:
        """Close MongoDB connection"""
        if cls.client:
            cls.client.close()
            logger.info("Disconnected from MongoDB")

    @classmethod
    async def _create_indexes(cls) -> None:
        """Create database indexes for the booking collections"""
        if cls.db is None:
            return

        # Catalog
        await cls.db.services.create_index("service_id", unique=True)
        await cls.db.services.create_index([("provider_id", 1), ("name", 1)], unique=True)

        # Staff
        await cls.db.staff.create_index("staff_id", unique=True)
        await cls.db.staff.create_index("provider_id")

        # Discounts
        await cls.db.discounts.create_index([("provider_id", 1), ("is_active", 1)])

        # Bookings
        await cls.db.bookings.create_index("booking_id", unique=True)
        await cls.db.bookings.create_index([("provider_id", 1), ("status", 1)])
        await cls.db.bookings.create_index([("provider_id", 1), ("booking_date", 1)])

        # Invoice dispatch record
        await cls.db.invoice_dispatches.create_index(
            [("provider_id", 1), ("booking_id", 1)], unique=True
        )

        logger.info("Database indexes created")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return cls.db


def get_database() -> AsyncIOMotorDatabase:
    """Dependency injection for database access"""
    return Database.get_db()
