"""Durable search documents (cache entries and the accumulated collection)."""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, Field, ValidationError

from decisionfindr.search.schemas import CamelModel, SearchParams, SearchResult

logger = logging.getLogger(__name__)

STORAGE_VERSION = "1.0"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


# =============================================================================
# Document Models
# =============================================================================

class CacheEntry(CamelModel):
    """Snapshot of one search's results."""

    timestamp: int = Field(validation_alias=AliasChoices("timestamp", "__timestamp"))
    version: str = Field(
        default=STORAGE_VERSION,
        validation_alias=AliasChoices("version", "__version"),
    )
    query_params: SearchParams = Field(
        validation_alias=AliasChoices("queryParams", "__queryParams", "query_params"),
    )
    results: list[SearchResult] = []

    def is_fresh(self, now: int, max_age_ms: int) -> bool:
        return now - self.timestamp < max_age_ms


class AccumulatedCollection(CamelModel):
    """Every distinct result seen across a user's searches."""

    timestamp: int = Field(
        default=0,
        validation_alias=AliasChoices("timestamp", "__timestamp"),
    )
    version: str = Field(
        default=STORAGE_VERSION,
        validation_alias=AliasChoices("version", "__version"),
    )
    results: list[SearchResult] = []


# =============================================================================
# Document Factory Functions
# =============================================================================

def create_cache_entry_document(
    params: SearchParams,
    results: list[SearchResult],
    timestamp: int,
) -> dict[str, Any]:
    """Create a cache entry for durable storage."""
    return {
        "timestamp": timestamp,
        "version": STORAGE_VERSION,
        "queryParams": params.model_dump(by_alias=True),
        "results": [r.to_storage() for r in results],
    }


def create_accumulated_document(
    results: list[SearchResult],
    timestamp: int,
) -> dict[str, Any]:
    """Create the accumulated collection for durable storage."""
    return {
        "timestamp": timestamp,
        "version": STORAGE_VERSION,
        "results": [r.to_storage() for r in results],
    }


# =============================================================================
# Parsing
# =============================================================================

def coerce_result(raw: Any) -> SearchResult | None:
    """Read a stored result, falling back to defaults for fields that no longer validate."""
    if not isinstance(raw, dict):
        return None
    try:
        return SearchResult.model_validate(raw)
    except ValidationError as e:
        bad_fields = {error["loc"][0] for error in e.errors() if error["loc"]}

    try:
        return SearchResult.model_validate({k: v for k, v in raw.items() if k not in bad_fields})
    except ValidationError:
        return None


def parse_cache_entry(raw: Any) -> CacheEntry | None:
    """Parse a stored cache entry; anything structurally wrong is None.

    Only the envelope is validated strictly. Individual results are read
    leniently so one odd field does not turn a fresh entry into a miss.
    """
    if not isinstance(raw, dict):
        return None

    raw_results = raw.get("results", [])
    if not isinstance(raw_results, list):
        logger.warning("Discarding cache entry whose results are not a list")
        return None

    try:
        entry = CacheEntry.model_validate({**raw, "results": []})
    except ValidationError as e:
        logger.warning(f"Discarding malformed cache entry: {e.error_count()} errors")
        return None

    results = [r for r in map(coerce_result, raw_results) if r is not None]
    return entry.model_copy(update={"results": results})


def parse_accumulated(raw: Any) -> AccumulatedCollection:
    """Parse the stored collection, tolerating the bare-list legacy format."""
    if raw is None:
        return AccumulatedCollection()

    if isinstance(raw, list):
        raw = {"results": raw}

    if not isinstance(raw, dict):
        logger.warning("Accumulated results have an unexpected shape; starting empty")
        return AccumulatedCollection()

    try:
        return AccumulatedCollection.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Accumulated results are corrupt ({e.error_count()} errors); starting empty")
        return AccumulatedCollection()
