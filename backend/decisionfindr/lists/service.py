"""Saved prospect lists of a user."""

import logging
import uuid
from typing import Callable

from decisionfindr.lists.exceptions import ListNotFoundError
from decisionfindr.lists.schemas import DEFAULT_LIST_COLOR, ProspectList
from decisionfindr.search.history import parse_entries
from decisionfindr.search.models import now_ms
from decisionfindr.search.schemas import SearchResult
from decisionfindr.storage.keys import StorageFeature
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)


def _dedup(prospects: list[SearchResult]) -> list[SearchResult]:
    seen: set[str] = set()
    unique = []
    for prospect in prospects:
        if prospect.identity_key in seen:
            continue
        seen.add(prospect.identity_key)
        unique.append(prospect)
    return unique


class ProspectListStore:
    """Prospect lists, most recently created first, stored as one array."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock

    async def list_all(self, store: UserScopedStore) -> list[ProspectList]:
        raw = await store.get(StorageFeature.PROSPECT_LISTS)
        return parse_entries(raw, ProspectList, "prospect list")

    async def _save(self, store: UserScopedStore, lists: list[ProspectList]) -> None:
        await store.set(
            StorageFeature.PROSPECT_LISTS,
            [
                pl.model_dump(by_alias=True, exclude_none=True)
                for pl in lists
            ],
        )

    async def get(self, store: UserScopedStore, list_id: str) -> ProspectList:
        for prospect_list in await self.list_all(store):
            if prospect_list.id == list_id:
                return prospect_list
        raise ListNotFoundError(list_id)

    async def _replace(
        self,
        store: UserScopedStore,
        list_id: str,
        changes: Callable[[ProspectList], ProspectList],
    ) -> ProspectList:
        lists = await self.list_all(store)
        for index, prospect_list in enumerate(lists):
            if prospect_list.id == list_id:
                lists[index] = changes(prospect_list)
                await self._save(store, lists)
                return lists[index]
        raise ListNotFoundError(list_id)

    async def create(
        self,
        store: UserScopedStore,
        name: str,
        description: str = "",
        prospects: list[SearchResult] | None = None,
        color: str | None = None,
    ) -> ProspectList:
        now = self._clock()
        prospect_list = ProspectList(
            id=f"list_{uuid.uuid4().hex[:12]}",
            name=name,
            description=description,
            color=color or DEFAULT_LIST_COLOR,
            created_at=now,
            updated_at=now,
            prospects=_dedup(prospects or []),
        )
        await self._save(store, [prospect_list, *await self.list_all(store)])
        logger.info(f"Created prospect list {prospect_list.id} ({name})")
        return prospect_list

    async def update(
        self,
        store: UserScopedStore,
        list_id: str,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> ProspectList:
        """Rename or restyle a list. Fields left as None are kept."""
        update = {
            field: value
            for field, value in (("name", name), ("description", description), ("color", color))
            if value is not None
        }
        update["updated_at"] = self._clock()
        return await self._replace(store, list_id, lambda pl: pl.model_copy(update=update))

    async def delete(self, store: UserScopedStore, list_id: str) -> None:
        lists = await self.list_all(store)
        remaining = [pl for pl in lists if pl.id != list_id]
        if len(remaining) == len(lists):
            raise ListNotFoundError(list_id)
        await self._save(store, remaining)
        logger.info(f"Deleted prospect list {list_id}")

    async def add_prospects(
        self,
        store: UserScopedStore,
        list_id: str,
        prospects: list[SearchResult],
    ) -> tuple[ProspectList, int]:
        """Append prospects not already in the list.

        Returns:
            Tuple of (updated list, number of prospects added)
        """
        added: list[SearchResult] = []

        def append(prospect_list: ProspectList) -> ProspectList:
            known = {p.identity_key for p in prospect_list.prospects}
            for prospect in _dedup(prospects):
                if prospect.identity_key not in known:
                    added.append(prospect)
            return prospect_list.model_copy(update={
                "prospects": [*prospect_list.prospects, *added],
                "updated_at": self._clock(),
            })

        updated = await self._replace(store, list_id, append)
        return updated, len(added)

    async def remove_prospects(
        self,
        store: UserScopedStore,
        list_id: str,
        identity_keys: list[str],
    ) -> ProspectList:
        keys = set(identity_keys)
        return await self._replace(
            store,
            list_id,
            lambda pl: pl.model_copy(update={
                "prospects": [p for p in pl.prospects if p.identity_key not in keys],
                "updated_at": self._clock(),
            }),
        )

    async def lists_containing(
        self,
        store: UserScopedStore,
        identity_key: str,
    ) -> list[ProspectList]:
        return [
            pl for pl in await self.list_all(store)
            if any(p.identity_key == identity_key for p in pl.prospects)
        ]


# Singleton instance holder
_list_store: ProspectListStore | None = None


def get_prospect_list_store() -> ProspectListStore:
    """Get singleton prospect list store instance."""
    global _list_store
    if _list_store is None:
        _list_store = ProspectListStore()
    return _list_store
