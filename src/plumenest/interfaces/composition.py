"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from plumenest.application.use_cases.catalog_listing import CatalogListingUseCase
from plumenest.application.use_cases.resolve_stream import ResolveStreamUseCase
from plumenest.domain.ports.session_negotiator import SessionNegotiatorPort
from plumenest.infrastructure.cache.cache_factory import create_cache
from plumenest.infrastructure.catalog.client import HttpxCatalogClient
from plumenest.infrastructure.config.schema import AppConfig
from plumenest.infrastructure.persistence.catalog_cache import CachedListingLoader
from plumenest.infrastructure.persistence.stream_result_cache import (
    CacheStreamResultRepository,
)
from plumenest.infrastructure.streaming.browser_negotiator import (
    PlaywrightSessionNegotiator,
)
from plumenest.infrastructure.streaming.fast_negotiator import HttpxSessionNegotiator
from plumenest.infrastructure.streaming.key_resolver import HttpxKeyResolver
from plumenest.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_strategies(state: AppState, config: AppConfig) -> list[SessionNegotiatorPort]:
    """Negotiation tiers, cheapest first."""
    strategies: list[SessionNegotiatorPort] = [
        HttpxSessionNegotiator(
            state.http_client, state.catalog, state.key_resolver, config.upstream
        )
    ]
    if config.resolution.browser_fallback_enabled:
        strategies.append(
            PlaywrightSessionNegotiator(
                state.http_client,
                state.catalog,
                state.key_resolver,
                config.upstream,
                timeout_seconds=config.resolution.browser_timeout_seconds,
                headless=config.playwright_headless,
                stealth=config.playwright_stealth,
                navigation_timeout_ms=config.playwright_timeout_ms,
            )
        )
    return strategies


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by the repositories)
        2. HTTP client (shared by catalog, negotiators, key resolver)
        3. Catalog client + key resolver
        4. Repositories
        5. Use cases
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(config.cache)
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Upstream clients
    state.catalog = HttpxCatalogClient(
        state.http_client,
        base_url=config.upstream.catalog_base_url,
        user_agent=config.upstream.browser_user_agent,
    )
    state.key_resolver = HttpxKeyResolver(
        state.http_client,
        registry_url=config.upstream.key_registry_url,
        provider_preference=config.upstream.key_provider_preference,
        fallback_keys=config.upstream.fallback_keys,
        timeout_seconds=config.upstream.key_timeout_seconds,
    )

    # 4) Repositories
    state.stream_result_repo = CacheStreamResultRepository(
        cache=state.cache,
        ttl_seconds=config.resolution.stream_ttl_seconds,
    )
    listing_loader = CachedListingLoader(
        cache=state.cache,
        ttl_seconds=config.resolution.catalog_ttl_seconds,
    )

    # 5) Use cases
    strategies = build_strategies(state, config)
    state.resolve_stream_uc = ResolveStreamUseCase(
        discovery=state.catalog,
        strategies=strategies,
        repository=state.stream_result_repo,
        deadline_seconds=config.resolution.overall_deadline_seconds,
    )
    state.catalog_listing_uc = CatalogListingUseCase(state.catalog, listing_loader)
    log.info(
        "resolve_stream_initialized",
        strategies=[s.name for s in strategies],
        stream_ttl_seconds=config.resolution.stream_ttl_seconds,
        deadline_seconds=config.resolution.overall_deadline_seconds,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
