"""Tests for CacheStreamResultRepository."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

from plumenest.domain.entities.stream import StreamResult
from plumenest.infrastructure.persistence.stream_result_cache import (
    CacheStreamResultRepository,
    _serialize_result,
    stream_cache_key,
)


class TestStreamCacheKey:
    def test_key_format(self) -> None:
        assert stream_cache_key("movie", "19722") == "stream:movie-19722"
        assert stream_cache_key("episode", "88") == "stream:episode-88"

    def test_no_normalization(self) -> None:
        assert stream_cache_key("movie", " 19722") != stream_cache_key("movie", "19722")


class TestCacheStreamResultRepository:
    async def test_save_stores_json_in_output_shape(
        self, mock_cache: AsyncMock, stream_result: StreamResult
    ) -> None:
        repo = CacheStreamResultRepository(cache=mock_cache)
        await repo.save(stream_result, "movie", "19722")

        mock_cache.set.assert_awaited_once()
        key, value = mock_cache.set.call_args[0]
        assert key == "stream:movie-19722"
        restored = json.loads(value)
        assert restored == stream_result.to_dict()

    async def test_default_ttl_is_four_hours(
        self, mock_cache: AsyncMock, stream_result: StreamResult
    ) -> None:
        repo = CacheStreamResultRepository(cache=mock_cache)
        await repo.save(stream_result, "movie", "1")
        assert mock_cache.set.call_args[1]["ttl"] == 14_400

    async def test_save_uses_configured_ttl(
        self, mock_cache: AsyncMock, stream_result: StreamResult
    ) -> None:
        repo = CacheStreamResultRepository(cache=mock_cache, ttl_seconds=60)
        await repo.save(stream_result, "movie", "1")
        assert mock_cache.set.call_args[1]["ttl"] == 60

    async def test_get_returns_cached_result(
        self, mock_cache: AsyncMock, stream_result: StreamResult
    ) -> None:
        mock_cache.get = AsyncMock(return_value=_serialize_result(stream_result))
        repo = CacheStreamResultRepository(cache=mock_cache)

        cached = await repo.get("movie", "19722")

        assert cached == stream_result
        assert cached is not stream_result
        mock_cache.get.assert_awaited_once_with("stream:movie-19722")

    async def test_get_returns_none_for_missing(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value=None)
        repo = CacheStreamResultRepository(cache=mock_cache)
        assert await repo.get("movie", "nope") is None

    async def test_get_handles_corrupt_data(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value="not-valid-json{{{")
        repo = CacheStreamResultRepository(cache=mock_cache)
        assert await repo.get("movie", "corrupt") is None

    async def test_get_handles_wrong_shape(self, mock_cache: AsyncMock) -> None:
        mock_cache.get = AsyncMock(return_value=json.dumps(["a", "b"]))
        repo = CacheStreamResultRepository(cache=mock_cache)
        assert await repo.get("movie", "list") is None

    async def test_get_handles_invalid_result(self, mock_cache: AsyncMock) -> None:
        # A result with no renditions is rejected by StreamResult itself.
        payload = {"sources": [], "subtitles": [], "sourceServer": "UpCloud"}
        mock_cache.get = AsyncMock(return_value=json.dumps(payload))
        repo = CacheStreamResultRepository(cache=mock_cache)
        assert await repo.get("movie", "empty") is None
