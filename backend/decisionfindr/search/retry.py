"""Exponential backoff for network-class fetch failures."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from decisionfindr.search.exceptions import WebhookNetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Retries an async operation on selected exceptions.

    The delay before retry ``n`` (0-based) is ``base_delay * 2**n`` capped at
    ``max_delay``. Exceptions outside ``retry_on`` propagate immediately.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        retry_on: tuple[type[BaseException], ...] = (WebhookNetworkError,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retry_on = retry_on
        self._sleep = sleep

    def delay_for(self, retry_index: int) -> float:
        return min(self.base_delay * (2 ** retry_index), self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                result = await operation()
                if attempt > 0:
                    logger.info(f"Fetch succeeded on attempt {attempt + 1}")
                return result
            except self.retry_on as e:
                if attempt >= self.max_retries:
                    logger.error(f"Fetch failed after {attempt + 1} attempts: {e}")
                    raise

                wait_time = self.delay_for(attempt)
                logger.warning(
                    f"Fetch failed (attempt {attempt + 1}), retrying in {wait_time}s: {e}"
                )
                await self._sleep(wait_time)
                attempt += 1
