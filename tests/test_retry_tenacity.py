"""Tests for the tenacity-backed RetryPort."""

from unittest.mock import AsyncMock

import pytest

from genctl.adapters.retry_tenacity import TenacityRetryAdapter


class Flaky(Exception):
    pass


@pytest.mark.asyncio
async def test_retries_until_success():
    func = AsyncMock(side_effect=[Flaky(), Flaky(), "ok"])
    adapter = TenacityRetryAdapter(attempts=3, wait_initial=0.001, wait_max=0.002)

    assert await adapter.execute(func, "arg", key="value") == "ok"
    assert func.await_count == 3
    func.assert_awaited_with("arg", key="value")


@pytest.mark.asyncio
async def test_reraises_last_error_when_exhausted():
    func = AsyncMock(side_effect=Flaky("still down"))
    adapter = TenacityRetryAdapter(attempts=2, wait_initial=0.001, wait_max=0.002)

    with pytest.raises(Flaky):
        await adapter.execute(func)
    assert func.await_count == 2


@pytest.mark.asyncio
async def test_other_exceptions_not_retried():
    func = AsyncMock(side_effect=KeyError("x"))
    adapter = TenacityRetryAdapter(wait_initial=0.001)

    with pytest.raises(KeyError):
        await adapter.execute(func, exception_types=(Flaky,))
    assert func.await_count == 1


@pytest.mark.asyncio
async def test_call_overrides_attempts():
    func = AsyncMock(side_effect=Flaky())
    adapter = TenacityRetryAdapter(attempts=5, wait_initial=0.001, wait_max=0.002)

    with pytest.raises(Flaky):
        await adapter.execute(func, attempts=1)
    assert func.await_count == 1
