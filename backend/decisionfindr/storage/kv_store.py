"""MongoDB-backed durable key-value store."""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from decisionfindr.core.interfaces import IKeyValueStore

logger = logging.getLogger(__name__)


class MongoKeyValueStore(IKeyValueStore):
    """Stores JSON text under string keys, one document per key.

    A write replaces the whole value. A stored value may be text that does
    not parse.
    """

    COLLECTION = "kv_store"

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[self.COLLECTION]

    async def get(self, key: str) -> Any | None:
        doc = await self._collection.find_one({"_id": key})
        if not doc:
            return None

        raw = doc.get("value")
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed stored value for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        await self._collection.replace_one(
            {"_id": key},
            {
                "_id": key,
                "value": json.dumps(value),
                "updated_at": datetime.now(timezone.utc),
            },
            upsert=True,
        )

    async def remove(self, key: str) -> bool:
        result = await self._collection.delete_one({"_id": key})
        return result.deleted_count > 0

    async def keys(self, prefix: str = "") -> list[str]:
        query: dict[str, Any] = {}
        if prefix:
            query["_id"] = {"$regex": f"^{re.escape(prefix)}"}

        cursor = self._collection.find(query, {"_id": 1})
        return [doc["_id"] for doc in await cursor.to_list(length=None)]


def get_kv_store(db: AsyncIOMotorDatabase) -> MongoKeyValueStore:
    """Build a store bound to the given database."""
    return MongoKeyValueStore(db)
