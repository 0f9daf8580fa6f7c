import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from decisionfindr.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

client: AsyncIOMotorClient | None = None
db: AsyncIOMotorDatabase | None = None


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """Create the indexes the repositories rely on."""
    await database["users"].create_index("email", unique=True)
    await database["kv_store"].create_index("updated_at")


async def connect_to_mongo() -> None:
    global client, db
    client = AsyncIOMotorClient(settings.mongodb_url)
    db = client[settings.mongodb_db_name]
    await ensure_indexes(db)
    logger.info(f"Connected to MongoDB database {settings.mongodb_db_name}")


async def close_mongo_connection() -> None:
    global client, db
    if client:
        client.close()
        client = None
        db = None
        logger.info("MongoDB connection closed")


def get_database() -> AsyncIOMotorDatabase:
    if db is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo first.")
    return db
