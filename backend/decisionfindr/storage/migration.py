"""One-time copy of pre-namespacing storage keys into a user's namespace."""

import logging

from decisionfindr.core.interfaces import IKeyValueStore
from decisionfindr.storage.keys import LEGACY_KEYS, LEGACY_PREFIXES, key_for

logger = logging.getLogger(__name__)


async def migrate_legacy_keys(kv: IKeyValueStore, user_id: str) -> int:
    """Move legacy keys to the user's namespaced keys.

    A legacy value is copied only when the namespaced key does not exist yet,
    and the legacy key is deleted either way. Running it again finds nothing
    left to move.

    Returns:
        Number of values copied
    """
    if not user_id:
        return 0

    moves: list[tuple[str, str]] = []

    for legacy_key, feature in LEGACY_KEYS.items():
        moves.append((legacy_key, key_for(feature, user_id)))

    for prefix, feature in LEGACY_PREFIXES.items():
        for legacy_key in await kv.keys(prefix):
            qualifier = legacy_key[len(prefix):]
            moves.append((legacy_key, key_for(feature, user_id, qualifier)))

    copied = 0
    for legacy_key, target_key in moves:
        value = await kv.get(legacy_key)
        if value is None:
            # Absent or unreadable; drop the unreadable ones as well.
            await kv.remove(legacy_key)
            continue

        if await kv.get(target_key) is None:
            await kv.set(target_key, value)
            copied += 1
            logger.info(f"Migrated legacy key {legacy_key} -> {target_key}")

        await kv.remove(legacy_key)

    return copied


class LegacyKeyMigrator:
    """Runs the migration at most once per user for the process lifetime."""

    def __init__(self) -> None:
        self._migrated: set[str] = set()

    def is_migrated(self, user_id: str) -> bool:
        return user_id in self._migrated

    async def ensure_migrated(self, kv: IKeyValueStore, user_id: str | None) -> int:
        if not user_id or user_id in self._migrated:
            return 0

        copied = await migrate_legacy_keys(kv, user_id)
        self._migrated.add(user_id)
        return copied


# Singleton instance holder
_migrator: LegacyKeyMigrator | None = None


def get_legacy_migrator() -> LegacyKeyMigrator:
    """Get singleton migrator instance."""
    global _migrator
    if _migrator is None:
        _migrator = LegacyKeyMigrator()
    return _migrator
