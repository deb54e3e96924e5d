"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from plumenest.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from plumenest.application.use_cases.catalog_listing import CatalogListingUseCase
    from plumenest.application.use_cases.resolve_stream import ResolveStreamUseCase
    from plumenest.domain.ports import (
        CachePort,
        CatalogPort,
        KeyResolverPort,
        StreamResultRepository,
    )


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient

    # Domain ports
    catalog: CatalogPort
    key_resolver: KeyResolverPort
    stream_result_repo: StreamResultRepository

    # Application services
    resolve_stream_uc: ResolveStreamUseCase
    catalog_listing_uc: CatalogListingUseCase
