"""Cache factory - builds the configured CachePort adapter."""

from __future__ import annotations

from typing import Literal

import structlog

from plumenest.domain.ports.cache import CachePort
from plumenest.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from plumenest.infrastructure.cache.redis_adapter import RedisAdapter
from plumenest.infrastructure.config.schema import CacheConfig

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]

# Redis handles far more parallel ops than a single SQLite file.
_REDIS_MAX_CONCURRENT = 50


def create_cache(config: CacheConfig) -> CachePort:
    """Create the cache adapter selected by ``config.backend``.

    Raises:
        ValueError: If the backend is unknown.
    """
    backend: str = config.backend
    if backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=str(config.directory),
            ttl=config.ttl_seconds,
            max_concurrent=config.max_concurrent,
        )
        return DiskcacheAdapter(
            directory=config.directory,
            ttl_seconds=config.ttl_seconds,
            max_concurrent=config.max_concurrent,
        )
    if backend == "redis":
        log.info(
            "cache_factory_create",
            backend=backend,
            url=config.redis_url,
            ttl=config.ttl_seconds,
            max_concurrent=_REDIS_MAX_CONCURRENT,
        )
        return RedisAdapter(
            url=config.redis_url,
            ttl_seconds=config.ttl_seconds,
            max_concurrent=_REDIS_MAX_CONCURRENT,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'redis'."
    )
