import asyncio
from typing import Any

import httpx
from loguru import logger

# Seconds before the first retry; doubles on every further attempt
BACKOFF_BASE_SECONDS = 0.5


class BaseClient:
    """
    Async JSON client over a lazily created httpx.AsyncClient.

    Transport errors and 5xx answers are retried with exponential backoff. A 4xx answer is
    final and raised straight away as httpx.HTTPStatusError so callers can read its body.
    """

    def __init__(
        self, base_url: str = "", timeout: float = 10.0, max_retries: int = 3, headers: dict[str, str] | None = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, headers=self.headers, follow_redirects=True
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    @staticmethod
    def _is_retryable(exc: httpx.HTTPError) -> bool:
        if isinstance(exc, httpx.HTTPStatusError):
            return exc.response.status_code >= 500
        return isinstance(exc, httpx.RequestError)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = await self.get_client()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                if not self._is_retryable(e):
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"{method} {url} failed after {attempt} attempt(s): {e}")
                    raise
                delay = BACKOFF_BASE_SECONDS * 2 ** (attempt - 1)
                logger.warning(f"{method} {url} failed ({e}); retry {attempt}/{self.max_retries - 1} in {delay}s")
                await asyncio.sleep(delay)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        # 204 and empty bodies decode to an empty object
        return response.json() if response.content else {}

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> Any:
        return self._json(await self._request("GET", url, params=params, **kwargs))

    async def post(self, url: str, json: dict[str, Any] | None = None, **kwargs) -> Any:
        return self._json(await self._request("POST", url, json=json, **kwargs))

    async def delete(self, url: str, **kwargs) -> Any:
        return self._json(await self._request("DELETE", url, **kwargs))
