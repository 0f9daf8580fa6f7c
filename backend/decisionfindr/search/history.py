"""Search history and saved search templates."""

import logging
import uuid
from typing import Any, Callable

from pydantic import ValidationError

from decisionfindr.search.exceptions import TemplateNotFoundError
from decisionfindr.search.generation import ClearGenerations
from decisionfindr.search.models import now_ms
from decisionfindr.search.schemas import SearchParams, SearchTemplate, StoredSearch
from decisionfindr.storage.keys import StorageFeature
from decisionfindr.storage.user_store import UserScopedStore

logger = logging.getLogger(__name__)


def parse_entries(raw: Any, model: type, label: str) -> list[Any]:
    """Parse a stored JSON array, skipping entries that no longer validate."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(f"Stored {label} is not a list; treating as empty")
        return []

    entries = []
    for item in raw:
        try:
            entries.append(model.model_validate(item))
        except ValidationError:
            logger.warning(f"Skipping malformed {label} entry")
    return entries


class SearchHistory:
    """Most-recent-first log of executed searches, capped in size."""

    def __init__(
        self,
        limit: int = 50,
        clock: Callable[[], int] = now_ms,
        generations: ClearGenerations | None = None,
    ) -> None:
        self._limit = limit
        self._clock = clock
        self._generations = generations

    @property
    def limit(self) -> int:
        return self._limit

    async def list_all(self, store: UserScopedStore) -> list[StoredSearch]:
        raw = await store.get(StorageFeature.SEARCH_HISTORY)
        return parse_entries(raw, StoredSearch, "search history")

    async def record(
        self,
        store: UserScopedStore,
        params: SearchParams,
        result_count: int,
        generation: int | None = None,
    ) -> StoredSearch | None:
        """Prepend a search and drop anything beyond the cap.

        Nothing is recorded when ``generation`` is stale by the time of the
        write.
        """
        if not store.is_authenticated:
            return None

        entry = StoredSearch(
            id=str(uuid.uuid4()),
            params=params,
            timestamp=self._clock(),
            result_count=result_count,
        )

        history = [entry, *await self.list_all(store)][: self._limit]
        if (
            generation is not None
            and self._generations is not None
            and not self._generations.is_current(store.user_id, generation)
        ):
            return None
        await store.set(
            StorageFeature.SEARCH_HISTORY,
            [h.model_dump(by_alias=True) for h in history],
        )
        return entry

    async def recent(self, store: UserScopedStore, limit: int = 5) -> list[StoredSearch]:
        return (await self.list_all(store))[:limit]

    async def latest(self, store: UserScopedStore) -> StoredSearch | None:
        history = await self.list_all(store)
        return history[0] if history else None


class TemplateStore:
    """Saved search templates, most recently created first."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock

    async def list_all(self, store: UserScopedStore) -> list[SearchTemplate]:
        raw = await store.get(StorageFeature.SEARCH_TEMPLATES)
        return parse_entries(raw, SearchTemplate, "search template")

    async def _save(self, store: UserScopedStore, templates: list[SearchTemplate]) -> None:
        await store.set(
            StorageFeature.SEARCH_TEMPLATES,
            [t.model_dump(by_alias=True) for t in templates],
        )

    async def get(self, store: UserScopedStore, template_id: str) -> SearchTemplate:
        for template in await self.list_all(store):
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(template_id)

    async def create(
        self,
        store: UserScopedStore,
        name: str,
        params: SearchParams,
        description: str = "",
    ) -> SearchTemplate:
        template = SearchTemplate(
            id=f"tpl_{uuid.uuid4().hex[:12]}",
            name=name,
            description=description,
            params=params.normalized(),
        )
        await self._save(store, [template, *await self.list_all(store)])
        logger.info(f"Saved template {template.id} ({name})")
        return template

    async def delete(self, store: UserScopedStore, template_id: str) -> None:
        templates = await self.list_all(store)
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            raise TemplateNotFoundError(template_id)
        await self._save(store, remaining)

    async def mark_used(self, store: UserScopedStore, template_id: str) -> SearchTemplate:
        templates = await self.list_all(store)
        for index, template in enumerate(templates):
            if template.id == template_id:
                templates[index] = template.model_copy(update={"last_used": self._clock()})
                await self._save(store, templates)
                return templates[index]
        raise TemplateNotFoundError(template_id)
