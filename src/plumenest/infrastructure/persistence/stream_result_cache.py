"""Stream result repository backed by CachePort (diskcache/redis)."""

from __future__ import annotations

import json

import structlog

from plumenest.domain.entities.stream import MediaType, StreamResult
from plumenest.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def stream_cache_key(media_type: str, content_id: str) -> str:
    """Cache key for one content item; exact match, no normalization."""
    return f"stream:{media_type}-{content_id}"


def _serialize_result(result: StreamResult) -> str:
    return json.dumps(result.to_dict())


def _deserialize_result(data: str) -> StreamResult:
    d = json.loads(data)
    if not isinstance(d, dict):
        raise ValueError(f"expected JSON object, got {type(d).__name__}")
    return StreamResult.from_dict(d)


class CacheStreamResultRepository:
    """Cache-aside store for resolved streams.

    Values are stored as JSON in the public output shape, so a cache hit
    is an independent copy of the saved result.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int = 14_400) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def save(
        self, result: StreamResult, media_type: MediaType, content_id: str
    ) -> None:
        key = stream_cache_key(media_type, content_id)
        await self.cache.set(key, _serialize_result(result), ttl=self.ttl)
        log.debug(
            "stream_result_saved",
            key=key,
            source_server=result.source_server,
            renditions=len(result.sources),
            ttl=self.ttl,
        )

    async def get(self, media_type: MediaType, content_id: str) -> StreamResult | None:
        key = stream_cache_key(media_type, content_id)
        data = await self.cache.get(key)
        if data is None:
            log.debug("stream_result_not_found", key=key)
            return None

        try:
            return _deserialize_result(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("stream_result_deserialize_error", key=key, error=str(e))
            return None
