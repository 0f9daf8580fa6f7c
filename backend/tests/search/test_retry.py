import pytest
from unittest.mock import AsyncMock

from decisionfindr.search.exceptions import WebhookNetworkError, WebhookStatusError
from decisionfindr.search.retry import RetryPolicy


@pytest.fixture
def sleep():
    return AsyncMock()


class TestRetryPolicy:
    def test_delay_doubles_and_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=3.0)

        assert [policy.delay_for(i) for i in range(4)] == [1.0, 2.0, 3.0, 3.0]

    async def test_retries_network_errors_then_succeeds(self, sleep):
        operation = AsyncMock(side_effect=[WebhookNetworkError(), WebhookNetworkError(), ["ok"]])
        policy = RetryPolicy(max_retries=2, sleep=sleep)

        assert await policy.run(operation) == ["ok"]
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_gives_up_after_max_retries(self, sleep):
        operation = AsyncMock(side_effect=WebhookNetworkError())
        policy = RetryPolicy(max_retries=2, sleep=sleep)

        with pytest.raises(WebhookNetworkError):
            await policy.run(operation)

        assert operation.await_count == 3

    async def test_status_errors_are_not_retried(self, sleep):
        operation = AsyncMock(side_effect=WebhookStatusError(502))
        policy = RetryPolicy(sleep=sleep)

        with pytest.raises(WebhookStatusError):
            await policy.run(operation)

        assert operation.await_count == 1
        sleep.assert_not_awaited()
