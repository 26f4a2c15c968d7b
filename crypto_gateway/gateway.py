import asyncio
from typing import Any, Optional, Tuple

import httpx
from loguru import logger
from prometheus_client import Counter

from .cache import ASSETS_CACHE_KEY, CACHE_TTL
from .schemas import ErrorResponse, EXTERNAL_API_ERROR, SERVICE_UNAVAILABLE
from .upstream import COINCAP_URL, fetch_assets

GATEWAY_REQUESTS = Counter("gateway_requests_total", "Requests handled by the assets gateway")
GATEWAY_CACHE_HITS = Counter("gateway_cache_hits_total", "Requests served from the assets cache")


class CachedFetchGateway:
    """
    Serves the upstream asset list through a time-bounded cache.

    Only successful upstream payloads are cached, always under ASSETS_CACHE_KEY.
    Failures map to a fixed error body with status 503 and leave the cache alone,
    so the next request goes upstream again.

    With single_flight on, misses that arrive while a refresh is running all
    await that one refresh and share its outcome, failures included.
    """

    def __init__(self, cache, client: httpx.AsyncClient, base_url: str = COINCAP_URL,
                 ttl: int = CACHE_TTL, single_flight: bool = True):
        self.cache = cache
        self.client = client
        self.base_url = base_url
        self.ttl = ttl
        self.single_flight = single_flight
        self._inflight: Optional[asyncio.Task] = None

    async def handle_request(self) -> Tuple[Any, int]:
        GATEWAY_REQUESTS.inc()
        cached = await self.cache.get(ASSETS_CACHE_KEY)
        if cached is not None:
            GATEWAY_CACHE_HITS.inc()
            logger.debug("Cache hit for {}", ASSETS_CACHE_KEY)
            return cached, 200

        if not self.single_flight:
            return await self._refresh()

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)
        # shield: a disconnecting caller must not cancel the refresh for the others
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, task: asyncio.Task):
        if self._inflight is task:
            self._inflight = None

    async def _refresh(self) -> Tuple[Any, int]:
        result = await fetch_assets(self.client, self.base_url)
        if result.kind == "upstream_error":
            return ErrorResponse(error=EXTERNAL_API_ERROR).model_dump(), 503
        if not result.ok:
            return ErrorResponse(error=SERVICE_UNAVAILABLE).model_dump(), 503

        await self.cache.set(ASSETS_CACHE_KEY, result.body, ttl=self.ttl)
        logger.info("Refreshed {} (ttl={}s)", ASSETS_CACHE_KEY, self.ttl)
        return result.body, 200
