"""Client for the external people-search workflow webhook.

The webhook takes comma separated job titles and companies and answers with a
loosely typed JSON array (or a single object) of prospects.
"""

import json
import logging

import httpx

from decisionfindr.config import get_settings
from decisionfindr.search.exceptions import WebhookNetworkError, WebhookStatusError
from decisionfindr.search.schemas import SearchResult
from decisionfindr.search.transform import transform_profiles

logger = logging.getLogger(__name__)


class ProfileSearchClient:
    """Calls the people-search webhook and normalizes its answer."""

    def __init__(
        self,
        base_url: str,
        path: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the webhook client.

        Args:
            base_url: Webhook host, e.g. ``https://workflows.example.com``
            path: Webhook path segment after ``/webhook/``
            timeout: Transport timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._path = path.strip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return f"{self._base_url}/webhook/{self._path}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_profiles(self, titles: str, companies: str) -> list[SearchResult]:
        """Fetch and normalize prospects for the given criteria.

        Args:
            titles: Comma separated job titles
            companies: Comma separated company names

        Returns:
            Canonical results; empty when the payload is not valid JSON

        Raises:
            WebhookNetworkError: The webhook could not be reached
            WebhookStatusError: The webhook answered with a non-2xx status
        """
        logger.info(f"Fetching profiles: titles={titles!r} companies={companies!r}")
        client = await self._get_client()

        try:
            response = await client.get(
                self.url,
                params={"titles": titles or "", "companies": companies or ""},
            )
        except httpx.TransportError as e:
            logger.error(f"Search webhook request failed: {e}")
            raise WebhookNetworkError(f"Search service unreachable: {e}") from e

        if not response.is_success:
            logger.error(f"Search webhook error: {response.status_code} - {response.text[:500]}")
            raise WebhookStatusError(response.status_code, response.text)

        try:
            data = json.loads(response.text)
        except ValueError as e:
            logger.error(f"Search webhook returned invalid JSON: {e}")
            return []

        return transform_profiles(data)


# =============================================================================
# Singleton instance
# =============================================================================

_client: ProfileSearchClient | None = None


def get_profile_search_client() -> ProfileSearchClient:
    """Get singleton webhook client instance."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = ProfileSearchClient(
            base_url=settings.search_webhook_base,
            path=settings.search_webhook_path,
            timeout=settings.search_webhook_timeout,
        )
    return _client
