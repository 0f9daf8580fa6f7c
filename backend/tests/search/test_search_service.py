import asyncio

import pytest
from unittest.mock import AsyncMock

from decisionfindr.search.exceptions import WebhookNetworkError, WebhookStatusError
from decisionfindr.search.retry import RetryPolicy
from decisionfindr.search.schemas import ResultsView, SearchParams, SearchResult
from decisionfindr.search.service import build_search_service, paginate
from decisionfindr.search.transform import transform_profiles
from decisionfindr.storage.keys import StorageFeature


@pytest.fixture
def client():
    client = AsyncMock()
    client.fetch_profiles.return_value = transform_profiles(
        [{"id": "1", "name": "Jane Doe", "jobTitle": "CTO", "company": "Tesla"}]
    )
    return client


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def service(client, sleep):
    return build_search_service(client, retry_policy=RetryPolicy(max_retries=2, sleep=sleep))


@pytest.fixture
def params():
    return SearchParams(job_titles=["CTO"], companies=["Tesla"])


class TestSearch:
    async def test_fresh_search_fetches_caches_and_accumulates(self, service, store, client, params):
        response = await service.search(store, params)

        client.fetch_profiles.assert_awaited_once_with(titles="CTO", companies="Tesla")
        result = response.results[0]
        assert result.confidence == 85
        assert result.snippet == "Jane Doe is a CTO at Tesla"
        assert response.added_count == 1
        assert response.from_cache is False
        assert response.total_accumulated == 1
        assert (await service.history.latest(store)).params == params

    async def test_combined_name_scenario(self, service, store, client, params):
        client.fetch_profiles.return_value = transform_profiles(
            [{"name": "Jane Doe - CTO - Tesla", "email": "jane@tesla.com"}]
        )

        response = await service.search(store, params)

        result = response.results[0]
        assert (result.name, result.job_title, result.company) == ("Jane Doe", "CTO", "Tesla")
        assert result.email == "jane@tesla.com"
        assert result.confidence == 85
        assert result.snippet == "Jane Doe is a CTO at Tesla"
        assert result.identity_key == "Jane Doe_jane@tesla.com"
        assert response.added_count == 1

    async def test_repeat_search_is_served_from_cache(self, service, store, client, params):
        await service.search(store, params)

        response = await service.search(store, SearchParams(job_titles=["CTO"], companies=["Tesla"]))

        assert client.fetch_profiles.await_count == 1
        assert response.from_cache is True
        assert response.added_count == 0
        assert [r.name for r in response.results] == ["Jane Doe"]

    async def test_multiple_terms_are_comma_joined(self, service, store, client):
        await service.search(store, SearchParams(job_titles=["CTO", "CEO"], companies=["A", "B"]))

        client.fetch_profiles.assert_awaited_once_with(titles="CTO,CEO", companies="A,B")

    async def test_search_without_terms_does_nothing(self, service, store, client):
        response = await service.search(store, SearchParams(locations=["Paris"]))

        assert response.results == []
        client.fetch_profiles.assert_not_awaited()

    async def test_network_errors_are_retried(self, service, store, client, params, sleep):
        client.fetch_profiles.side_effect = [
            WebhookNetworkError(),
            [SearchResult(id="1", name="Jane Doe")],
        ]

        response = await service.search(store, params)

        assert len(response.results) == 1
        sleep.assert_awaited_once_with(1.0)

    async def test_status_error_propagates_without_caching(self, service, store, client, params):
        client.fetch_profiles.side_effect = WebhookStatusError(500)

        with pytest.raises(WebhookStatusError):
            await service.search(store, params)

        assert await service.cache.lookup(store, params) is None
        assert await service.history.list_all(store) == []

    async def test_clear_during_fetch_discards_late_results(self, service, store, client, params):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_fetch(titles, companies):
            started.set()
            await release.wait()
            return [SearchResult(id="1", name="Jane Doe")]

        client.fetch_profiles.side_effect = slow_fetch

        search = asyncio.create_task(service.search(store, params))
        await started.wait()
        await service.clear_all(store)
        release.set()
        response = await search

        assert response.results == []
        assert await service.accumulator.get_all(store) == []
        assert await service.cache.lookup(store, params) is None

    async def clear_while_write_is_held(self, service, gated_store, gate, params):
        search = asyncio.create_task(service.search(gated_store, params))
        await gate.reached.wait()
        await service.clear_all(gated_store)
        gate.release.set()
        return await search

    async def test_clear_during_cache_write_wins(self, service, gate_writes, params):
        gated_store, gate = gate_writes("results_cache_")

        response = await self.clear_while_write_is_held(service, gated_store, gate, params)

        assert response.results == []
        assert await service.accumulator.get_all(gated_store) == []
        assert await service.cache.lookup(gated_store, params) is None
        assert await gated_store.qualifiers(StorageFeature.RESULTS_CACHE) == []
        assert await service.history.list_all(gated_store) == []

    async def test_clear_during_accumulator_write_wins(self, service, gate_writes, params):
        gated_store, gate = gate_writes("accumulated_results_")

        response = await self.clear_while_write_is_held(service, gated_store, gate, params)

        assert response.results == []
        assert await service.accumulator.get_all(gated_store) == []
        assert await service.cache.lookup(gated_store, params) is None

    async def test_clear_during_history_write_wins(self, service, gate_writes, params):
        gated_store, gate = gate_writes("search_history_")

        response = await self.clear_while_write_is_held(service, gated_store, gate, params)

        assert response.results == []
        assert await service.accumulator.get_all(gated_store) == []
        assert await service.cache.lookup(gated_store, params) is None

    async def test_clear_during_cache_hit_merge_wins(self, service, store, gate_writes, client, params):
        await service.search(store, params)
        await store.remove(StorageFeature.ACCUMULATED_RESULTS)
        gated_store, gate = gate_writes("accumulated_results_")

        response = await self.clear_while_write_is_held(service, gated_store, gate, params)

        assert response.from_cache is True
        assert response.results == []
        assert await service.accumulator.get_all(gated_store) == []
        assert client.fetch_profiles.await_count == 1

    async def test_search_after_a_clear_writes_normally(self, service, gate_writes, params):
        gated_store, gate = gate_writes("results_cache_")
        await self.clear_while_write_is_held(service, gated_store, gate, params)

        response = await service.search(gated_store, params)

        assert [r.name for r in response.results] == ["Jane Doe"]
        assert len(await service.accumulator.get_all(gated_store)) == 1


class TestClearAll:
    async def test_clear_removes_accumulated_and_cached(self, service, store, client, params):
        await service.search(store, params)

        cleared = await service.clear_all(store)

        assert cleared.cleared is True
        assert cleared.cache_entries_removed == 1
        assert await service.accumulator.get_all(store) == []

        await service.search(store, params)
        assert client.fetch_profiles.await_count == 2


class TestRecovery:
    async def test_recover_prefers_history(self, service, store, params):
        await service.search(store, params)

        assert await service.recover_params(store) == params

    async def test_recover_falls_back_to_cache_metadata(self, service, store, params):
        await service.search(store, params)
        await store.remove(StorageFeature.SEARCH_HISTORY)

        assert await service.recover_params(store) == params

    async def test_recover_with_nothing_known(self, service, store):
        assert await service.recover_params(store) is None

    async def test_results_view_recovers_last_search(self, service, store, client, params):
        await service.search(store, params)

        page = await service.results_view(store, SearchParams())

        assert page.recovered is True
        assert page.params == params
        assert page.total == 1
        assert client.fetch_profiles.await_count == 1

    async def test_results_view_accumulated_paginates(self, service, store, client):
        client.fetch_profiles.return_value = [
            SearchResult(id=str(i), name=f"Person {i}") for i in range(25)
        ]
        await service.search(store, SearchParams(job_titles=["CTO"]))

        page = await service.results_view(
            store, SearchParams(), view=ResultsView.ACCUMULATED, page=2, page_size=20
        )

        assert page.total == 25
        assert page.total_pages == 2
        assert [r.id for r in page.results] == [str(i) for i in range(20, 25)]


class TestTemplates:
    async def test_run_template_marks_used_and_searches(self, service, store, client, params):
        template = await service.templates.create(store, "CTOs at Tesla", params)

        response = await service.run_template(store, template.id)

        assert response.results[0].name == "Jane Doe"
        assert (await service.templates.get(store, template.id)).last_used is not None


def test_paginate_bounds():
    assert paginate(list(range(5)), page=3, page_size=2) == ([4], 3)
    assert paginate([], page=1, page_size=20) == ([], 0)
