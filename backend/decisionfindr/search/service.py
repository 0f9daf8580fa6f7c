"""Search service - orchestrates cache, webhook fetch and accumulation."""

import logging

from decisionfindr.config import get_settings
from decisionfindr.search.accumulator import Accumulator
from decisionfindr.search.cache import MemoryCache, ResultCache
from decisionfindr.search.clients import ProfileSearchClient, get_profile_search_client
from decisionfindr.search.generation import ClearGenerations, get_clear_generations
from decisionfindr.search.history import SearchHistory, TemplateStore
from decisionfindr.search.retry import RetryPolicy
from decisionfindr.search.schemas import (
    ClearResponse,
    ResultsPageResponse,
    ResultsView,
    SearchParams,
    SearchResponse,
    SearchResult,
)
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)


def paginate(items: list, page: int, page_size: int) -> tuple[list, int]:
    """Slice one page out of items. Returns (page_items, total_pages)."""
    total = len(items)
    start = (page - 1) * page_size
    return items[start:start + page_size], (total + page_size - 1) // page_size


class SearchService:
    """Service for prospect search operations."""

    def __init__(
        self,
        client: ProfileSearchClient,
        cache: ResultCache,
        accumulator: Accumulator,
        history: SearchHistory,
        templates: TemplateStore,
        generations: ClearGenerations,
        retry_policy: RetryPolicy,
    ) -> None:
        """Initialize the search service.

        Args:
            client: People-search webhook client
            cache: Per-search result cache
            accumulator: Accumulated results collection
            history: Search history log
            templates: Saved search templates
            generations: Clear generations shared with the accumulator
            retry_policy: Backoff policy for network failures
        """
        self._client = client
        self._cache = cache
        self._accumulator = accumulator
        self._history = history
        self._templates = templates
        self._generations = generations
        self._retry = retry_policy

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def accumulator(self) -> Accumulator:
        return self._accumulator

    @property
    def history(self) -> SearchHistory:
        return self._history

    @property
    def templates(self) -> TemplateStore:
        return self._templates

    async def search(self, store: UserScopedStore, params: SearchParams) -> SearchResponse:
        """Run one search: cache lookup, otherwise fetch and populate.

        Raises:
            ProfileFetchError: The webhook failed after the retry policy gave up
        """
        params = params.normalized()
        if not params.has_search_terms():
            return SearchResponse(params=params)

        generation = self._generations.current(store.user_id)

        cached = await self._cache.lookup(store, params)
        if cached is not None:
            if not self._generations.is_current(store.user_id, generation):
                return SearchResponse(params=params, from_cache=True)

            logger.info(f"Serving {len(cached)} cached results for {ResultCache.compute_key(params)}")
            outcome = await self._accumulator.merge_in(store, cached, params, generation=generation)
            if outcome.discarded:
                return SearchResponse(params=params, from_cache=True)
            return SearchResponse(
                params=params,
                results=cached,
                added_count=outcome.added_count,
                from_cache=True,
                total_accumulated=len(outcome.combined),
            )

        titles = ",".join(params.job_titles)
        companies = ",".join(params.companies)
        results = await self._retry.run(
            lambda: self._client.fetch_profiles(titles=titles, companies=companies)
        )

        populated = await self._cache.populate(store, params, results, generation=generation)
        return SearchResponse(
            params=params,
            results=populated.results,
            added_count=populated.added_count,
            total_accumulated=populated.total_accumulated,
        )

    async def run_template(self, store: UserScopedStore, template_id: str) -> SearchResponse:
        template = await self._templates.mark_used(store, template_id)
        return await self.search(store, template.params)

    async def clear_all(self, store: UserScopedStore) -> ClearResponse:
        """Forget every accumulated and cached result of the user."""
        await self._accumulator.clear(store)
        removed = await self._cache.purge(store)
        return ClearResponse(cleared=True, cache_entries_removed=removed)

    async def recover_params(self, store: UserScopedStore) -> SearchParams | None:
        """Parameters of the user's most recent search, if any is known."""
        latest = await self._history.latest(store)
        if latest is not None:
            logger.info("Recovered search params from history")
            return latest.params

        entry = await self._cache.latest_entry(store)
        if entry is not None:
            logger.info("Recovered search params from cache metadata")
            return entry.query_params

        return None

    async def results_view(
        self,
        store: UserScopedStore,
        params: SearchParams | None,
        view: ResultsView = ResultsView.SEARCH,
        page: int = 1,
        page_size: int = 20,
    ) -> ResultsPageResponse:
        """Build one page of the results view.

        When the request carries no search terms, the view is rebuilt from
        the most recent search instead.
        """
        recovered = False
        if params is None or not params.has_search_terms():
            params = await self.recover_params(store)
            recovered = params is not None

        results: list[SearchResult] = []
        if view == ResultsView.ACCUMULATED:
            results = await self._accumulator.get_all(store)
        elif params is not None:
            results = (await self.search(store, params)).results

        page_items, total_pages = paginate(results, page, page_size)
        return ResultsPageResponse(
            params=params,
            recovered=recovered,
            view=view,
            results=page_items,
            total=len(results),
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )


# =============================================================================
# Singleton instance
# =============================================================================

_search_service: SearchService | None = None


def build_search_service(
    client: ProfileSearchClient,
    generations: ClearGenerations | None = None,
    retry_policy: RetryPolicy | None = None,
) -> SearchService:
    """Wire a search service from settings."""
    settings = get_settings()
    generations = generations or ClearGenerations()
    history = SearchHistory(limit=settings.search_history_limit, generations=generations)
    accumulator = Accumulator(generations)
    cache = ResultCache(
        history=history,
        accumulator=accumulator,
        generations=generations,
        max_age_ms=settings.cache_max_age_hours * 60 * 60 * 1000,
        memory=MemoryCache(max_items=settings.memory_cache_max_items),
    )
    return SearchService(
        client=client,
        cache=cache,
        accumulator=accumulator,
        history=history,
        templates=TemplateStore(),
        generations=generations,
        retry_policy=retry_policy or RetryPolicy(
            max_retries=settings.fetch_max_retries,
            base_delay=settings.fetch_retry_base_delay,
            max_delay=settings.fetch_retry_max_delay,
        ),
    )


def get_search_service() -> SearchService:
    """Get singleton search service instance."""
    global _search_service
    if _search_service is None:
        _search_service = build_search_service(
            client=get_profile_search_client(),
            generations=get_clear_generations(),
        )
    return _search_service
