"""FastAPI application factory (create_app)."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from plumenest.infrastructure.config import AppConfig
from plumenest.interfaces.app_state import AppState
from plumenest.interfaces.composition import lifespan

log = structlog.get_logger(__name__)

_HEALTH_KEY = "health:check"
_HEALTH_TIMEOUT_SECONDS = 2.0


async def _cache_round_trip(state: AppState) -> None:
    marker = datetime.now(timezone.utc).isoformat()
    await state.cache.set(_HEALTH_KEY, marker, ttl=30)
    if await state.cache.get(_HEALTH_KEY) != marker:
        raise RuntimeError("cache did not return the health check value")


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app - configuration ONLY, NO resource initialization.

    Resources (HTTP client, cache, negotiators) are created in lifespan().
    """
    app = FastAPI(
        title="PlumeNest",
        description="Stream resolver for catalog content",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from plumenest.interfaces.api.stream.router import router as stream_router

    app.include_router(stream_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness check - returns 200 as long as the process is running."""
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> JSONResponse:
        """Dependency check: 200 when the cache answers within 2s, else 503."""
        state: AppState = app.state
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            await asyncio.wait_for(
                _cache_round_trip(state), timeout=_HEALTH_TIMEOUT_SECONDS
            )
        except Exception as e:
            log.error("health_check_failed", error=str(e) or type(e).__name__)
            return JSONResponse(
                status_code=503,
                content={
                    "status": "error",
                    "dependencies": {"cache": "disconnected"},
                    "error": str(e) or type(e).__name__,
                    "timestamp": timestamp,
                },
            )
        return JSONResponse(
            content={
                "status": "ok",
                "dependencies": {"cache": "connected"},
                "timestamp": timestamp,
            }
        )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
