"""Per-user storage key convention."""

from enum import Enum


class StorageFeature(str, Enum):
    """Features that own a slice of each user's durable storage."""
    RESULTS_CACHE = "results_cache"
    ACCUMULATED_RESULTS = "accumulated_results"
    SEARCH_HISTORY = "search_history"
    SEARCH_TEMPLATES = "search_templates"
    PROSPECT_LISTS = "prospect_lists"


# Single-entry keys written before storage was namespaced per user.
LEGACY_KEYS: dict[str, StorageFeature] = {
    "df_search_history": StorageFeature.SEARCH_HISTORY,
    "df_search_templates": StorageFeature.SEARCH_TEMPLATES,
    "df_accumulated_results": StorageFeature.ACCUMULATED_RESULTS,
    "df_prospect_lists": StorageFeature.PROSPECT_LISTS,
}

# Multi-entry legacy keys: everything after the prefix becomes the qualifier.
LEGACY_PREFIXES: dict[str, StorageFeature] = {
    "df_results_cache_": StorageFeature.RESULTS_CACHE,
}

QUALIFIER_SEPARATOR = ":"


def key_for(
    feature: StorageFeature,
    user_id: str,
    qualifier: str | None = None,
) -> str:
    """Build the namespaced key for a feature, e.g. ``search_history_<user>``.

    Features holding one entry per search (the results cache) append the
    qualifier after a ``:`` so that one user's prefix never matches another's.
    """
    if not user_id:
        raise ValueError("user_id is required to build a storage key")

    key = f"{feature.value}_{user_id}"
    if qualifier is not None:
        key = f"{key}{QUALIFIER_SEPARATOR}{qualifier}"
    return key


def prefix_for(feature: StorageFeature, user_id: str) -> str:
    """Prefix shared by every qualified key of a feature for one user."""
    return f"{key_for(feature, user_id)}{QUALIFIER_SEPARATOR}"
