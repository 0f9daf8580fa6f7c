from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from decisionfindr.core.interfaces import IUserRepository


class UserRepository(IUserRepository):
    """MongoDB user repository."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db["users"]

    async def create(self, user_data: dict[str, Any]) -> dict[str, Any]:
        result = await self._collection.insert_one(user_data)
        user_data["_id"] = result.inserted_id
        return user_data

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        return await self._collection.find_one({"email": email})

    async def get_by_id(self, user_id: str) -> dict[str, Any] | None:
        try:
            return await self._collection.find_one({"_id": ObjectId(user_id)})
        except (InvalidId, TypeError):
            return None

    async def count(self) -> int:
        return await self._collection.count_documents({})

    async def get_all_users(self) -> list[dict[str, Any]]:
        cursor = self._collection.find({})
        return await cursor.to_list(length=None)

    async def update(self, user_id: str, update_data: dict[str, Any]) -> dict[str, Any] | None:
        """Set fields on a user. Returns the updated user or None."""
        try:
            object_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None

        return await self._collection.find_one_and_update(
            {"_id": object_id},
            {"$set": {**update_data, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )

    async def update_preferences(
        self,
        user_id: str,
        preferences: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Merge preference values into the user's stored preferences."""
        return await self.update(
            user_id,
            {f"preferences.{key}": value for key, value in preferences.items()},
        )

    async def update_subscription(
        self,
        user_id: str,
        subscription: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Replace the user's subscription."""
        return await self.update(user_id, {"subscription": subscription})
