# genctl/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from genctl.core.interfaces.http_client import HttpClientPort
from genctl.core.exceptions import BackendRequestError
from genctl.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, default_timeout: float = 10.0):
        self._session: Optional[aiohttp.ClientSession] = None
        # Per-field defaults so callers only ever pass a total timeout
        self._default_total: float = default_timeout
        self._default_sock_read: float = default_timeout
        self._default_sock_connect: float = 5.0
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_read/sock_connect values but apply provided total
        return aiohttp.ClientTimeout(
            total=timeout,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")
        return self._session

    async def get(
        self,
        url: str,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        """
        Fetch JSON from URL with backend-specific error handling.

        Translates HTTP/network errors into BackendRequestError.
        """
        session = self._require_session()

        try:
            async with session.get(url, timeout=self._client_timeout(timeout), headers=headers) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(
                        "HTTP error when requesting backend. URL: %s, Status: %s, Body: %s",
                        url,
                        response.status,
                        body[:500],
                    )
                    raise BackendRequestError(
                        response.status,
                        "Authentication Failed" if response.status == 401 else "Upstream HTTP Error",
                        body[:200] or None,
                    )
                try:
                    return await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    response_text = await response.text()
                    logger.error(
                        "Invalid JSON response from backend. URL: %s, Content: %s",
                        url,
                        response_text[:500],
                    )
                    raise BackendRequestError(
                        502,
                        "Invalid Response Content",
                        f"The response from the backend was not valid JSON: '{response_text[:100]}'",
                    )

        except BackendRequestError:
            raise

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting backend. URL: %s", url)
            raise BackendRequestError(504, "Upstream Timeout", "The request to the backend timed out.")

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting backend. URL: %s, Error: %s",
                url,
                str(client_error),
            )
            raise BackendRequestError(
                502, "Upstream Connection Error", "There was a connection error with the backend."
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def post(
        self,
        url: str,
        json: Dict[str, Any] | None,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        session = self._require_session()

        try:
            async with session.post(url, json=json, timeout=self._client_timeout(timeout), headers=headers) as response:
                # Error statuses are returned so the caller can inspect the body
                try:
                    body = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    body = await response.text()
                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": body,
                }

        except asyncio.TimeoutError:
            logger.error("Timeout when POSTing to backend. URL: %s", url)
            raise BackendRequestError(504, "Upstream Timeout", "The request to the backend timed out.")
        except aiohttp.ClientError as client_err:
            logger.error("Connection error when POSTing to backend. URL: %s, Error: %s", url, str(client_err))
            raise BackendRequestError(
                502, "Upstream Connection Error", "There was a connection error with the backend."
            )
