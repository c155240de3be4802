import asyncio
import pytest
from aioresponses import aioresponses

from genctl.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from genctl.core.exceptions import BackendRequestError

"""
Tests for AioHttpClientAdapter behavior.

Each test verifies how the adapter maps upstream responses and errors into
BackendRequestError. Expected outcomes:
- Non-JSON responses are invalid upstream content and map to status 502.
- HTTP error statuses on GET keep the upstream status; 4xx are not transient.
- POST returns error statuses to the caller instead of raising, so the job
    backend can read the rejection body.
- Network timeouts map to status 504 and connection errors to 502.
"""


@pytest.mark.asyncio
async def test_get_json_response():
    url = "http://queue.test/requests/1/status"
    with aioresponses() as m:
        m.get(url, payload={"status": "IN_QUEUE", "queue_position": 2}, status=200)

        async with AioHttpClientAdapter() as client:
            data = await client.get(url)
            assert data == {"status": "IN_QUEUE", "queue_position": 2}


@pytest.mark.asyncio
async def test_get_non_json_response_raises_502():
    # The backend answered with HTML: a contract violation, treated as bad gateway
    url = "http://queue.test/bad"
    with aioresponses() as m:
        m.get(url, body="<html>error</html>", status=200, headers={"Content-Type": "text/html"})

        async with AioHttpClientAdapter() as client:
            with pytest.raises(BackendRequestError) as excinfo:
                await client.get(url)
            assert excinfo.value.status == 502
            assert excinfo.value.is_transient()


@pytest.mark.asyncio
async def test_get_401_is_authentication_failure():
    url = "http://queue.test/requests/1"
    with aioresponses() as m:
        m.get(url, status=401, body="invalid key")

        async with AioHttpClientAdapter() as client:
            with pytest.raises(BackendRequestError) as excinfo:
                await client.get(url)
            assert excinfo.value.status == 401
            assert excinfo.value.title == "Authentication Failed"
            assert not excinfo.value.is_transient()


@pytest.mark.asyncio
async def test_post_returns_500_to_caller():
    url = "http://queue.test/fal-ai/flux/dev"
    with aioresponses() as m:
        m.post(url, status=500, body="Server Error")

        async with AioHttpClientAdapter() as client:
            resp = await client.post(url, json={})
            assert resp["status"] == 500
            assert resp["body"] == "Server Error"


@pytest.mark.asyncio
async def test_post_json_body():
    url = "http://queue.test/fal-ai/flux/dev"
    with aioresponses() as m:
        m.post(url, status=200, payload={"request_id": "abc"})

        async with AioHttpClientAdapter() as client:
            resp = await client.post(url, json={"prompt": "x"})
            assert resp["status"] == 200
            assert resp["body"] == {"request_id": "abc"}


@pytest.mark.asyncio
async def test_timeout_maps_to_504():
    url = "http://queue.test/slow"
    with aioresponses() as m:
        # simulate timeout by raising asyncio.TimeoutError
        m.get(url, exception=asyncio.TimeoutError())

        async with AioHttpClientAdapter() as client:
            with pytest.raises(BackendRequestError) as excinfo:
                await client.get(url)
            assert excinfo.value.status == 504


@pytest.mark.asyncio
async def test_requires_context_manager():
    client = AioHttpClientAdapter()
    with pytest.raises(RuntimeError):
        await client.get("http://queue.test/x")
