"""User-scoped view over the durable key-value store."""

import logging
from typing import Any

from decisionfindr.core.interfaces import IKeyValueStore
from decisionfindr.storage.keys import StorageFeature, key_for, prefix_for

logger = logging.getLogger(__name__)


class UserScopedStore:
    """Reads and writes one user's namespaced keys.

    Without a user id every read reports absent and every write is skipped,
    so callers never touch another account's data or a shared key.
    """

    def __init__(self, kv: IKeyValueStore, user_id: str | None) -> None:
        self._kv = kv
        self._user_id = user_id or None

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def key_for(self, feature: StorageFeature, qualifier: str | None = None) -> str | None:
        if self._user_id is None:
            return None
        return key_for(feature, self._user_id, qualifier)

    async def get(self, feature: StorageFeature, qualifier: str | None = None) -> Any | None:
        key = self.key_for(feature, qualifier)
        if key is None:
            return None
        return await self._kv.get(key)

    async def set(
        self,
        feature: StorageFeature,
        value: Any,
        qualifier: str | None = None,
    ) -> None:
        key = self.key_for(feature, qualifier)
        if key is None:
            logger.debug(f"Skipping write to {feature.value}: no user")
            return
        await self._kv.set(key, value)

    async def remove(self, feature: StorageFeature, qualifier: str | None = None) -> bool:
        key = self.key_for(feature, qualifier)
        if key is None:
            return False
        return await self._kv.remove(key)

    async def qualifiers(self, feature: StorageFeature) -> list[str]:
        """List the qualifiers stored for a multi-entry feature."""
        if self._user_id is None:
            return []
        prefix = prefix_for(feature, self._user_id)
        return [key[len(prefix):] for key in await self._kv.keys(prefix)]

    async def remove_all(self, feature: StorageFeature) -> int:
        """Delete every qualified entry of a feature. Returns the count."""
        removed = 0
        for qualifier in await self.qualifiers(feature):
            if await self.remove(feature, qualifier):
                removed += 1
        return removed
