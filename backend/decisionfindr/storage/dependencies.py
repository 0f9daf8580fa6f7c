from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from decisionfindr.auth.dependencies import get_current_user_id
from decisionfindr.core.interfaces import IKeyValueStore
from decisionfindr.database import get_database
from decisionfindr.storage.kv_store import get_kv_store
from decisionfindr.storage.migration import get_legacy_migrator
from decisionfindr.storage.user_store import UserScopedStore


def get_kv_store_dep(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)],
) -> IKeyValueStore:
    """Dependency injection for the durable key-value store."""
    return get_kv_store(db)


async def get_user_store(
    user_id: Annotated[str, Depends(get_current_user_id)],
    kv: Annotated[IKeyValueStore, Depends(get_kv_store_dep)],
) -> UserScopedStore:
    """Storage handle scoped to the signed-in user.

    Legacy un-namespaced keys are folded into the user's namespace on the
    first request of each user.
    """
    await get_legacy_migrator().ensure_migrated(kv, user_id)
    return UserScopedStore(kv, user_id)
