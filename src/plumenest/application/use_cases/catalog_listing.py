"""Season and episode listing for episodic content (cached)."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from plumenest.domain.ports.catalog import CatalogPort

Listing = list[dict[str, str]]


class _ListingLoader(Protocol):
    """Read-through cache for listings."""

    async def load(
        self, key: str, fetch: Callable[[], Awaitable[Listing]]
    ) -> Listing: ...


class CatalogListingUseCase:
    def __init__(self, catalog: CatalogPort, loader: _ListingLoader) -> None:
        self._catalog = catalog
        self._loader = loader

    async def seasons(self, show_id: str) -> Listing:
        return await self._loader.load(
            f"seasons:{show_id}", lambda: self._catalog.get_seasons(show_id)
        )

    async def episodes(self, season_id: str) -> Listing:
        return await self._loader.load(
            f"episodes:{season_id}", lambda: self._catalog.get_episodes(season_id)
        )
