"""Shared test fixtures for the PlumeNest test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from plumenest.domain.entities.stream import CandidateServer, Rendition, StreamResult
from plumenest.infrastructure.config.schema import UpstreamConfig

CATALOG = "https://catalog.test"
EMBED = "https://embed.test"

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def server() -> CandidateServer:
    return CandidateServer(id="srv-1", name="UpCloud")


@pytest.fixture()
def second_server() -> CandidateServer:
    return CandidateServer(id="srv-2", name="MegaCloud")


@pytest.fixture()
def stream_result() -> StreamResult:
    """Minimal valid StreamResult."""
    return StreamResult(
        sources=(
            Rendition(quality="1080p", url="https://cdn.test/1080/index.m3u8"),
            Rendition(quality="720p", url="https://cdn.test/720/index.m3u8"),
        ),
        source_server="UpCloud",
        referer_url=f"{EMBED}/embed-1/v3/e-1/AbC123?z=",
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def upstream() -> UpstreamConfig:
    """Upstream config pointing at test hosts."""
    return UpstreamConfig(
        catalog_base_url=CATALOG,
        embed_base_url=EMBED,
        key_registry_url="https://keys.test/keys.json",
        fallback_keys={"vidstr": "static-vidstr-key"},
    )


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_key_resolver() -> AsyncMock:
    """Mock KeyResolverPort (returns a key only when required)."""
    resolver = AsyncMock()

    async def _resolve(required: bool) -> str | None:
        return "resolved-key" if required else None

    resolver.resolve_key = AsyncMock(side_effect=_resolve)
    return resolver


@pytest.fixture()
def mock_repository() -> AsyncMock:
    """Mock StreamResultRepository."""
    repo = AsyncMock()
    repo.get = AsyncMock(return_value=None)
    repo.save = AsyncMock()
    return repo
