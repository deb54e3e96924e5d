"""Read-through cache for season/episode listings."""

from __future__ import annotations

import json
from typing import Awaitable, Callable

import structlog

from plumenest.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

Listing = list[dict[str, str]]


class CachedListingLoader:
    """Caches catalog listings as JSON for ``ttl_seconds``.

    Empty listings are not cached, so a transient upstream hiccup does
    not pin an empty season list for a day.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int = 86_400) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def load(self, key: str, fetch: Callable[[], Awaitable[Listing]]) -> Listing:
        raw = await self.cache.get(key)
        if raw is not None:
            try:
                cached = json.loads(raw)
            except (json.JSONDecodeError, TypeError) as e:
                log.error("listing_cache_deserialize_error", key=key, error=str(e))
            else:
                if isinstance(cached, list):
                    log.debug("listing_cache_hit", key=key, items=len(cached))
                    return cached

        items = await fetch()
        if items:
            await self.cache.set(key, json.dumps(items), ttl=self.ttl)
            log.debug("listing_cached", key=key, items=len(items), ttl=self.ttl)
        return items
