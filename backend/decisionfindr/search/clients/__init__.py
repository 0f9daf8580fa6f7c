"""External API clients for people search."""

from decisionfindr.search.clients.webhook import ProfileSearchClient, get_profile_search_client

__all__ = [
    "ProfileSearchClient",
    "get_profile_search_client",
]
