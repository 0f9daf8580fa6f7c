"""Durable, deduplicated collection of every result a user has seen."""

import logging
from typing import Callable

from decisionfindr.search.generation import ClearGenerations
from decisionfindr.search.models import (
    AccumulatedCollection,
    create_accumulated_document,
    now_ms,
    parse_accumulated,
)
from decisionfindr.search.schemas import ProvenanceTag, SearchParams, SearchResult
from decisionfindr.storage.keys import StorageFeature
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)


class MergeOutcome:
    """Result of merging a search into the collection."""

    def __init__(
        self,
        combined: list[SearchResult],
        added_count: int,
        discarded: bool = False,
    ) -> None:
        self.combined = combined
        self.added_count = added_count
        self.discarded = discarded


class Accumulator:
    """Merges each search's results into the user's accumulated collection.

    Results are deduplicated by identity key. The first search to produce a
    result tags it with its provenance; later duplicates are ignored.
    """

    def __init__(
        self,
        generations: ClearGenerations,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._generations = generations
        self._clock = clock

    def _is_current(self, store: UserScopedStore, generation: int | None) -> bool:
        return generation is None or self._generations.is_current(store.user_id, generation)

    async def load(self, store: UserScopedStore) -> AccumulatedCollection:
        raw = await store.get(StorageFeature.ACCUMULATED_RESULTS)
        return parse_accumulated(raw)

    async def get_all(self, store: UserScopedStore) -> list[SearchResult]:
        return (await self.load(store)).results

    async def merge_in(
        self,
        store: UserScopedStore,
        new_results: list[SearchResult],
        source_params: SearchParams,
        generation: int | None = None,
    ) -> MergeOutcome:
        """Append results whose identity key is not yet present.

        Nothing is written when every result is already known, so repeating a
        merge leaves the stored collection untouched. With ``generation``
        given, a clear that lands at any point of the merge wins: the merge
        is dropped, or undone if its write already went through.
        """
        existing = (await self.load(store)).results
        seen = {r.identity_key for r in existing}
        now = self._clock()

        added: list[SearchResult] = []
        for result in new_results:
            key = result.identity_key
            if key in seen:
                continue
            seen.add(key)
            tag = ProvenanceTag(
                job_titles=list(source_params.job_titles),
                companies=list(source_params.companies),
                timestamp=now,
            )
            added.append(result.model_copy(update={"search_source": tag}))

        if not self._is_current(store, generation):
            return MergeOutcome(combined=[], added_count=0, discarded=True)

        combined = existing + added
        if added:
            await store.set(
                StorageFeature.ACCUMULATED_RESULTS,
                create_accumulated_document(combined, now),
            )
            if not self._is_current(store, generation):
                await self._retract(store, added)
                return MergeOutcome(combined=[], added_count=0, discarded=True)
            logger.info(f"Accumulated {len(added)} new results (total: {len(combined)})")

        return MergeOutcome(combined=combined, added_count=len(added))

    async def _retract(self, store: UserScopedStore, added: list[SearchResult]) -> None:
        """Take back results a merge wrote after the user cleared."""
        ours = {(r.identity_key, r.search_source.timestamp) for r in added}
        remaining = [
            r for r in (await self.load(store)).results
            if (r.identity_key, r.search_source and r.search_source.timestamp) not in ours
        ]
        if remaining:
            await store.set(
                StorageFeature.ACCUMULATED_RESULTS,
                create_accumulated_document(remaining, self._clock()),
            )
        else:
            await store.remove(StorageFeature.ACCUMULATED_RESULTS)
        logger.info(f"Withdrew {len(added)} results accumulated after a clear")

    async def clear(self, store: UserScopedStore) -> None:
        """Invalidate searches already in flight and delete the collection."""
        self._generations.advance(store.user_id)
        await store.remove(StorageFeature.ACCUMULATED_RESULTS)
        logger.info(f"Cleared accumulated results for user {store.user_id}")
