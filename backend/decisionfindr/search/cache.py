"""Result cache keyed by normalized search parameters."""

import json
import logging
from collections import OrderedDict
from typing import Callable

from decisionfindr.search.accumulator import Accumulator
from decisionfindr.search.generation import ClearGenerations
from decisionfindr.search.history import SearchHistory
from decisionfindr.search.models import (
    CacheEntry,
    create_cache_entry_document,
    now_ms,
    parse_cache_entry,
)
from decisionfindr.search.schemas import SearchParams, SearchResult, is_insertable
from decisionfindr.storage.keys import StorageFeature
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000


class MemoryCache:
    """Bounded LRU of cache entries kept in process memory."""

    def __init__(self, max_items: int = 256) -> None:
        self.max_items = max_items
        self._data: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> CacheEntry | None:
        if key in self._data:
            self._data.move_to_end(key)
            return self._data[key]
        return None

    def set(self, key: str, entry: CacheEntry) -> None:
        self._data[key] = entry
        self._data.move_to_end(key)
        if len(self._data) > self.max_items:
            self._data.popitem(last=False)

    def discard(self, key: str) -> None:
        self._data.pop(key, None)

    def discard_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._data if k.startswith(prefix)]
        for key in doomed:
            del self._data[key]
        return len(doomed)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class PopulateOutcome:
    """What a populate wrote."""

    def __init__(
        self,
        results: list[SearchResult],
        added_count: int = 0,
        total_accumulated: int = 0,
        discarded: bool = False,
    ) -> None:
        self.results = results
        self.added_count = added_count
        self.total_accumulated = total_accumulated
        self.discarded = discarded


class ResultCache:
    """Per-search result snapshots with a staleness window.

    Lookups consult the in-memory layer first and durable storage second;
    both hold the same entry and are written together on populate. Entries
    older than the staleness window, or that fail to parse, count as misses.
    """

    def __init__(
        self,
        history: SearchHistory,
        accumulator: Accumulator,
        generations: ClearGenerations,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        memory: MemoryCache | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._history = history
        self._accumulator = accumulator
        self._generations = generations
        self._max_age_ms = max_age_ms
        self._memory = memory or MemoryCache()
        self._clock = clock

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @staticmethod
    def compute_key(params: SearchParams) -> str:
        """Stable key for params: each list sorted, empties dropped.

        The sorted lists are JSON encoded so that a term holding a separator
        cannot make two different searches share a key.
        """
        normalized = params.normalized()
        groups = (
            normalized.job_titles,
            normalized.companies,
            normalized.job_levels,
            normalized.locations,
            normalized.keywords,
        )
        return json.dumps([sorted(group) for group in groups], separators=(",", ":"), ensure_ascii=False)

    async def lookup(
        self,
        store: UserScopedStore,
        params: SearchParams,
    ) -> list[SearchResult] | None:
        """Return cached results, ``[]`` when there is nothing to search, or None on a miss."""
        params = params.normalized()
        if not params.has_search_terms():
            return []

        entry = await self.get_entry(store, params)
        if entry is None:
            return None
        return entry.results

    async def get_entry(
        self,
        store: UserScopedStore,
        params: SearchParams,
    ) -> CacheEntry | None:
        """Fresh entry for params from memory or durable storage."""
        cache_key = self.compute_key(params)
        storage_key = store.key_for(StorageFeature.RESULTS_CACHE, cache_key)
        if storage_key is None:
            return None

        now = self._clock()

        entry = self._memory.get(storage_key)
        if entry is not None:
            if entry.is_fresh(now, self._max_age_ms):
                logger.debug(f"Memory cache hit for {cache_key}")
                return entry
            self._memory.discard(storage_key)

        entry = parse_cache_entry(await store.get(StorageFeature.RESULTS_CACHE, cache_key))
        if entry is None:
            logger.debug(f"Cache miss for {cache_key}")
            return None

        if not entry.is_fresh(now, self._max_age_ms):
            logger.info(f"Cache entry for {cache_key} expired")
            return None

        self._memory.set(storage_key, entry)
        logger.debug(f"Durable cache hit for {cache_key}")
        return entry

    def _is_current(self, store: UserScopedStore, generation: int | None) -> bool:
        return generation is None or self._generations.is_current(store.user_id, generation)

    async def _abandon(self, store: UserScopedStore, cache_key: str) -> PopulateOutcome:
        """Drop whatever a populate overtaken by a clear may have written."""
        storage_key = store.key_for(StorageFeature.RESULTS_CACHE, cache_key)
        if storage_key is not None:
            self._memory.discard(storage_key)
        await store.remove(StorageFeature.RESULTS_CACHE, cache_key)
        logger.info(f"Discarding results for {cache_key}: results were cleared mid-search")
        return PopulateOutcome(results=[], discarded=True)

    async def populate(
        self,
        store: UserScopedStore,
        params: SearchParams,
        results: list[SearchResult] | None,
        generation: int | None = None,
    ) -> PopulateOutcome:
        """Store freshly fetched results, record history and accumulate.

        When ``generation`` is given, it is checked again around every write.
        If the user cleared their results at any point since it was captured,
        the cache entry is removed, nothing else is written and the search
        yields no results.
        """
        params = params.normalized()
        cache_key = self.compute_key(params)

        if not self._is_current(store, generation):
            logger.info(f"Discarding results for {cache_key}: results were cleared mid-search")
            return PopulateOutcome(results=[], discarded=True)

        if not isinstance(results, list) or not all(
            is_insertable(r) for r in results if r is not None
        ):
            logger.warning("Fetched results failed validation; caching an empty result set")
            results = []
        results = [r for r in results if r is not None]

        now = self._clock()
        document = create_cache_entry_document(params, results, now)

        await store.set(StorageFeature.RESULTS_CACHE, document, cache_key)
        if not self._is_current(store, generation):
            return await self._abandon(store, cache_key)

        storage_key = store.key_for(StorageFeature.RESULTS_CACHE, cache_key)
        if storage_key is not None:
            self._memory.set(
                storage_key,
                CacheEntry(timestamp=now, query_params=params, results=results),
            )

        await self._history.record(store, params, len(results), generation=generation)
        outcome = await self._accumulator.merge_in(store, results, params, generation=generation)
        if outcome.discarded or not self._is_current(store, generation):
            return await self._abandon(store, cache_key)

        return PopulateOutcome(
            results=results,
            added_count=outcome.added_count,
            total_accumulated=len(outcome.combined),
        )

    async def purge(self, store: UserScopedStore) -> int:
        """Remove every cache entry of the user from both layers."""
        if not store.is_authenticated:
            return 0
        prefix = store.key_for(StorageFeature.RESULTS_CACHE, "")
        self._memory.discard_prefix(prefix)
        removed = await store.remove_all(StorageFeature.RESULTS_CACHE)
        logger.info(f"Purged {removed} cached searches for user {store.user_id}")
        return removed

    async def latest_entry(self, store: UserScopedStore) -> CacheEntry | None:
        """Newest parseable entry among the user's cached searches."""
        latest: CacheEntry | None = None
        for qualifier in await store.qualifiers(StorageFeature.RESULTS_CACHE):
            entry = parse_cache_entry(await store.get(StorageFeature.RESULTS_CACHE, qualifier))
            if entry and (latest is None or entry.timestamp > latest.timestamp):
                latest = entry
        return latest
