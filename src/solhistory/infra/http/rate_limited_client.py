import asyncio
import time

import httpx


class RateLimitedClient:
    """Shared async HTTP transport for JSON-RPC endpoints.

    Spaces outgoing requests by a minimum interval when ``rate_per_second`` is set.
    All RPC clients built by one EndpointPool post through a single instance.
    """

    def __init__(
        self,
        rate_per_second: float | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._min_interval = 1.0 / rate_per_second if rate_per_second else 0.0
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def _wait_for_slot(self) -> None:
        if not self._min_interval:
            return
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def post(self, url: str, json: dict | list | None = None) -> httpx.Response:
        await self._wait_for_slot()
        return await self._client.post(url, json=json)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
