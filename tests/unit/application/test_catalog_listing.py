"""Tests for CatalogListingUseCase."""

from __future__ import annotations

from unittest.mock import AsyncMock

from plumenest.application.use_cases.catalog_listing import CatalogListingUseCase
from plumenest.infrastructure.persistence.catalog_cache import CachedListingLoader


def _catalog() -> AsyncMock:
    catalog = AsyncMock()
    catalog.get_seasons = AsyncMock(
        return_value=[{"seasonId": "301", "seasonNumber": "1"}]
    )
    catalog.get_episodes = AsyncMock(
        return_value=[{"episodeId": "501", "title": "Eps 1: Pilot"}]
    )
    return catalog


class TestCatalogListingUseCase:
    async def test_seasons_keyed_by_show(self, mock_cache: AsyncMock) -> None:
        catalog = _catalog()
        uc = CatalogListingUseCase(catalog, CachedListingLoader(mock_cache))

        seasons = await uc.seasons("42")

        assert seasons[0]["seasonId"] == "301"
        catalog.get_seasons.assert_awaited_once_with("42")
        assert mock_cache.set.call_args[0][0] == "seasons:42"

    async def test_episodes_keyed_by_season(self, mock_cache: AsyncMock) -> None:
        catalog = _catalog()
        uc = CatalogListingUseCase(catalog, CachedListingLoader(mock_cache))

        episodes = await uc.episodes("301")

        assert episodes == [{"episodeId": "501", "title": "Eps 1: Pilot"}]
        catalog.get_episodes.assert_awaited_once_with("301")
        assert mock_cache.set.call_args[0][0] == "episodes:301"

    async def test_loader_hit_skips_catalog(self) -> None:
        catalog = _catalog()
        loader = AsyncMock()
        loader.load = AsyncMock(return_value=[{"seasonId": "9", "seasonNumber": "9"}])
        uc = CatalogListingUseCase(catalog, loader)

        assert await uc.seasons("42") == [{"seasonId": "9", "seasonNumber": "9"}]
        catalog.get_seasons.assert_not_awaited()
