import asyncio

import pytest

from decisionfindr.search.accumulator import Accumulator
from decisionfindr.search.cache import MemoryCache, ResultCache
from decisionfindr.search.generation import ClearGenerations
from decisionfindr.search.history import SearchHistory
from decisionfindr.search.schemas import SearchParams, SearchResult
from decisionfindr.storage.keys import StorageFeature
from decisionfindr.storage.user_store import UserScopedStore

HOUR_MS = 60 * 60 * 1000
NOW = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generations():
    return ClearGenerations()


@pytest.fixture
def history(clock, generations):
    return SearchHistory(limit=50, clock=clock, generations=generations)


@pytest.fixture
def accumulator(generations, clock):
    return Accumulator(generations, clock=clock)


@pytest.fixture
def cache(history, accumulator, generations, clock):
    return ResultCache(
        history=history,
        accumulator=accumulator,
        generations=generations,
        max_age_ms=24 * HOUR_MS,
        clock=clock,
    )


@pytest.fixture
def params():
    return SearchParams(job_titles=["CTO"], companies=["Tesla"])


@pytest.fixture
def results():
    return [
        SearchResult(id="1", name="Jane Doe", job_title="CTO", company="Tesla"),
        SearchResult(id="2", name="John Roe", job_title="CTO", company="Tesla"),
    ]


def cache_document(params: SearchParams, timestamp: int, name: str = "Jane Doe") -> dict:
    return {
        "timestamp": timestamp,
        "version": "1.0",
        "queryParams": params.model_dump(by_alias=True),
        "results": [{"id": "1", "name": name}],
    }


class TestComputeKey:
    def test_key_ignores_entry_order(self):
        a = SearchParams(job_titles=["CTO", "CEO"], companies=["Tesla", "Apple"])
        b = SearchParams(job_titles=["CEO", "CTO"], companies=["Apple", "Tesla"])

        assert ResultCache.compute_key(a) == ResultCache.compute_key(b)

    def test_key_ignores_whitespace_and_empty_terms(self):
        a = SearchParams(job_titles=[" CTO ", ""], companies=["Tesla"])
        b = SearchParams(job_titles=["CTO"], companies=["Tesla"])

        assert ResultCache.compute_key(a) == ResultCache.compute_key(b)

    def test_titles_and_companies_do_not_collide(self):
        a = SearchParams(job_titles=["Apple"])
        b = SearchParams(companies=["Apple"])

        assert ResultCache.compute_key(a) != ResultCache.compute_key(b)

    def test_separators_inside_terms_do_not_collide(self):
        a = SearchParams(job_titles=["x|y"])
        b = SearchParams(job_titles=["x"], companies=["y"])
        c = SearchParams(job_titles=["x,y"])
        d = SearchParams(job_titles=["x", "y"])

        assert ResultCache.compute_key(a) != ResultCache.compute_key(b)
        assert ResultCache.compute_key(c) != ResultCache.compute_key(d)


class TestLookup:
    async def test_empty_params_yield_empty_list(self, cache, store):
        assert await cache.lookup(store, SearchParams()) == []

    async def test_miss_returns_none(self, cache, store, params):
        assert await cache.lookup(store, params) is None

    async def test_entry_inside_window_is_a_hit(self, cache, store, params):
        key = ResultCache.compute_key(params)
        await store.set(StorageFeature.RESULTS_CACHE, cache_document(params, NOW - 23 * HOUR_MS), key)

        hit = await cache.lookup(store, params)

        assert [r.name for r in hit] == ["Jane Doe"]

    async def test_entry_past_window_is_a_miss(self, cache, store, params):
        key = ResultCache.compute_key(params)
        await store.set(StorageFeature.RESULTS_CACHE, cache_document(params, NOW - 24 * HOUR_MS - 1), key)

        assert await cache.lookup(store, params) is None

    async def test_legacy_field_names_are_read(self, cache, store, params):
        key = ResultCache.compute_key(params)
        await store.set(
            StorageFeature.RESULTS_CACHE,
            {
                "__timestamp": NOW,
                "__version": "1.0",
                "__queryParams": params.model_dump(by_alias=True),
                "results": [{"id": "9", "name": "Old Format"}],
            },
            key,
        )

        assert [r.name for r in await cache.lookup(store, params)] == ["Old Format"]

    async def test_corrupt_entry_is_a_miss(self, cache, kv, store, params, mock_db):
        storage_key = store.key_for(StorageFeature.RESULTS_CACHE, ResultCache.compute_key(params))
        await mock_db["kv_store"].insert_one({"_id": storage_key, "value": "{not json"})

        assert await cache.lookup(store, params) is None

    async def test_structurally_wrong_entry_is_a_miss(self, cache, store, params):
        key = ResultCache.compute_key(params)
        await store.set(StorageFeature.RESULTS_CACHE, {"results": "nope"}, key)

        assert await cache.lookup(store, params) is None

    async def test_odd_result_field_does_not_spoil_a_fresh_entry(self, cache, store, params):
        key = ResultCache.compute_key(params)
        document = cache_document(params, NOW)
        document["results"] = [
            {"id": "1", "name": "Jane Doe", "confidence": "high"},
            {"id": "2", "name": "John Roe", "confidence": 90},
            "not a result",
        ]
        await store.set(StorageFeature.RESULTS_CACHE, document, key)

        hit = await cache.lookup(store, params)

        assert [r.name for r in hit] == ["Jane Doe", "John Roe"]
        assert [r.confidence for r in hit] == [85, 90]

    async def test_entry_without_timestamp_is_a_miss(self, cache, store, params):
        key = ResultCache.compute_key(params)
        document = cache_document(params, NOW)
        del document["timestamp"]
        await store.set(StorageFeature.RESULTS_CACHE, document, key)

        assert await cache.lookup(store, params) is None

    async def test_memory_layer_expires_with_the_window(self, cache, store, params, results, clock):
        await cache.populate(store, params, results)
        clock.now += 24 * HOUR_MS

        assert await cache.lookup(store, params) is None

    async def test_anonymous_lookup_misses(self, cache, kv, params):
        assert await cache.lookup(UserScopedStore(kv, None), params) is None


class TestPopulate:
    async def test_populate_then_lookup_hits(self, cache, store, params, results):
        await cache.populate(store, params, results)

        hit = await cache.lookup(store, SearchParams(job_titles=["CTO "], companies=["Tesla"]))

        assert [r.id for r in hit] == ["1", "2"]

    async def test_populate_survives_a_fresh_memory_layer(
        self, history, accumulator, generations, clock, store, params, results
    ):
        first = ResultCache(history, accumulator, generations, clock=clock)
        second = ResultCache(history, accumulator, generations, clock=clock, memory=MemoryCache())

        await first.populate(store, params, results)

        assert len(await second.lookup(store, params)) == 2

    async def test_populate_records_history_and_accumulates(self, cache, store, params, results, history, accumulator):
        outcome = await cache.populate(store, params, results)

        assert outcome.added_count == 2
        assert outcome.total_accumulated == 2
        assert (await history.latest(store)).result_count == 2
        assert len(await accumulator.get_all(store)) == 2

    async def test_invalid_results_are_stored_as_empty(self, cache, store, params, results):
        outcome = await cache.populate(store, params, [*results, SearchResult(id="3", name="")])

        assert outcome.results == []
        assert await cache.lookup(store, params) == []

    async def test_non_list_results_are_stored_as_empty(self, cache, store, params):
        outcome = await cache.populate(store, params, None)

        assert outcome.results == []

    async def test_history_is_capped(self, cache, store, results, history):
        for i in range(60):
            await cache.populate(store, SearchParams(job_titles=[f"Title {i}"]), results)

        entries = await history.list_all(store)

        assert len(entries) == 50
        assert entries[0].params.job_titles == ["Title 59"]

    async def test_stale_generation_discards_write(self, cache, store, params, results, generations, accumulator):
        generation = generations.current(store.user_id)
        generations.advance(store.user_id)

        outcome = await cache.populate(store, params, results, generation=generation)

        assert outcome.discarded is True
        assert await cache.lookup(store, params) is None
        assert await accumulator.get_all(store) == []

    async def test_clear_during_cache_write_removes_the_entry(
        self, cache, gate_writes, params, results, generations, accumulator, history
    ):
        gated_store, gate = gate_writes("results_cache_")
        generation = generations.current(gated_store.user_id)

        populate = asyncio.create_task(
            cache.populate(gated_store, params, results, generation=generation)
        )
        await gate.reached.wait()
        await accumulator.clear(gated_store)
        await cache.purge(gated_store)
        gate.release.set()
        outcome = await populate

        assert outcome.discarded is True
        assert len(cache.memory) == 0
        assert await gated_store.qualifiers(StorageFeature.RESULTS_CACHE) == []
        assert await history.list_all(gated_store) == []
        assert await accumulator.get_all(gated_store) == []

    async def test_history_skips_stale_generation(self, history, store, params, generations):
        generation = generations.current(store.user_id)
        generations.advance(store.user_id)

        assert await history.record(store, params, 2, generation=generation) is None
        assert await history.list_all(store) == []


class TestPurgeAndLatest:
    async def test_purge_removes_both_layers(self, cache, store, params, results):
        await cache.populate(store, params, results)
        await cache.populate(store, SearchParams(job_titles=["CEO"]), results)

        removed = await cache.purge(store)

        assert removed == 2
        assert len(cache.memory) == 0
        assert await cache.lookup(store, params) is None

    async def test_purge_leaves_other_users_alone(self, cache, kv, store, params, results):
        other = UserScopedStore(kv, "user-2")
        await cache.populate(other, params, results)

        await cache.purge(store)

        assert await cache.lookup(other, params) is not None

    async def test_latest_entry_picks_newest(self, cache, store, results, clock):
        await cache.populate(store, SearchParams(job_titles=["Old"]), results)
        clock.now += 1000
        await cache.populate(store, SearchParams(job_titles=["New"]), results)

        latest = await cache.latest_entry(store)

        assert latest.query_params.job_titles == ["New"]


class TestMemoryCache:
    def test_evicts_least_recently_used(self):
        memory = MemoryCache(max_items=2)
        memory.set("a", "A")
        memory.set("b", "B")
        memory.get("a")
        memory.set("c", "C")

        assert memory.get("b") is None
        assert memory.get("a") == "A"
        assert len(memory) == 2
