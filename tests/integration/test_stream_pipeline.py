"""Integration tests for the full stream resolution pipeline.

Real catalog client, fast negotiator, key resolver and diskcache-backed
repository; only the upstream sites are mocked (respx).
"""

from __future__ import annotations

import httpx
import pytest
import respx

from plumenest.application.use_cases.resolve_stream import ResolveStreamUseCase
from plumenest.domain.entities.stream import QUALITY_AUTO_MASTER
from plumenest.domain.exceptions import AllStrategiesExhaustedError, NoServersFoundError
from plumenest.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from plumenest.infrastructure.catalog.client import HttpxCatalogClient
from plumenest.infrastructure.config.schema import UpstreamConfig
from plumenest.infrastructure.persistence.stream_result_cache import (
    CacheStreamResultRepository,
)
from plumenest.infrastructure.streaming.fast_negotiator import HttpxSessionNegotiator
from plumenest.infrastructure.streaming.key_resolver import HttpxKeyResolver

pytestmark = pytest.mark.integration

CATALOG = "https://catalog.test"
EMBED = "https://embed.test"
KEYS = "https://keys.test/keys.json"
MASTER = "https://cdn.test/hls/abc/master.m3u8"

_SERVERS_HTML = """\
<ul class="nav">
  <li class="nav-item"><a data-linkid="9001" title="Server UpCloud">UpCloud</a></li>
  <li class="nav-item"><a data-linkid="9002" title="Server MegaCloud">MegaCloud</a></li>
</ul>
"""

_EMBED_HTML = """\
<html><head><script nonce="tok-123">window.x = 1;</script></head>
<body><div id="player"></div></body></html>
"""

_MASTER = """\
#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080
1080/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2500000,RESOLUTION=1280x720
720/index.m3u8
"""

_SOURCES = {
    "sources": [{"file": MASTER, "type": "hls"}],
    "tracks": [
        {"file": "https://cdn.test/subs/en.vtt", "label": "English", "kind": "captions"},
        {"file": "https://cdn.test/thumbs.vtt", "kind": "thumbnails"},
    ],
    "encrypted": True,
}


def _upstream() -> UpstreamConfig:
    return UpstreamConfig(
        catalog_base_url=CATALOG,
        embed_base_url=EMBED,
        key_registry_url=KEYS,
        fallback_keys={"vidstr": "static-key"},
    )


def _use_case(
    http_client: httpx.AsyncClient, diskcache: DiskcacheAdapter
) -> ResolveStreamUseCase:
    upstream = _upstream()
    catalog = HttpxCatalogClient(
        http_client, base_url=CATALOG, user_agent=upstream.browser_user_agent
    )
    keys = HttpxKeyResolver(
        http_client,
        registry_url=KEYS,
        provider_preference=upstream.key_provider_preference,
        fallback_keys=upstream.fallback_keys,
    )
    return ResolveStreamUseCase(
        discovery=catalog,
        strategies=[HttpxSessionNegotiator(http_client, catalog, keys, upstream)],
        repository=CacheStreamResultRepository(diskcache, ttl_seconds=600),
        deadline_seconds=10.0,
    )


def _mock_server(respx_mock: respx.MockRouter, server_id: str, embed_id: str) -> None:
    respx_mock.get(f"{CATALOG}/ajax/episode/sources/{server_id}").respond(
        200, json={"type": "iframe", "link": f"{EMBED}/embed-1/v3/e-1/{embed_id}?z="}
    )
    respx_mock.get(f"{EMBED}/embed-1/v3/e-1/{embed_id}").respond(200, text=_EMBED_HTML)


class TestStreamPipeline:
    async def test_master_manifest_resolves_to_renditions(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/19722").respond(
            200, text=_SERVERS_HTML
        )
        _mock_server(respx_mock, "9001", "AbC123")
        sources = respx_mock.get(f"{EMBED}/embed-1/v3/e-1/getSources").respond(
            200, json=_SOURCES
        )
        respx_mock.get(MASTER).respond(200, text=_MASTER)
        respx_mock.get(KEYS).respond(200, json={"mega": "m-key", "vidstr": "v-key"})

        result = await _use_case(http_client, diskcache).execute("19722", "movie")

        assert [(r.quality, r.url) for r in result.sources] == [
            ("1080p", "https://cdn.test/hls/abc/1080/index.m3u8"),
            ("720p", "https://cdn.test/hls/abc/720/index.m3u8"),
        ]
        assert result.source_server == "UpCloud"
        assert result.decryption_key == "v-key"
        assert [t.label for t in result.subtitles] == ["English"]
        assert result.referer_url == f"{EMBED}/embed-1/v3/e-1/AbC123?z="
        request = sources.calls.last.request
        assert request.url.params["id"] == "AbC123"
        assert request.url.params["_k"] == "tok-123"

    async def test_unreachable_master_falls_back_to_auto(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/1").respond(200, text=_SERVERS_HTML)
        _mock_server(respx_mock, "9001", "AbC123")
        respx_mock.get(f"{EMBED}/embed-1/v3/e-1/getSources").respond(
            200, json={"sources": [{"file": MASTER}], "encrypted": False}
        )
        respx_mock.get(MASTER).respond(403)

        result = await _use_case(http_client, diskcache).execute("1", "movie")

        assert len(result.sources) == 1
        assert result.sources[0].quality == QUALITY_AUTO_MASTER
        assert result.sources[0].url == MASTER
        assert result.decryption_key is None

    async def test_second_server_used_when_first_has_no_sources(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/servers/88").respond(
            200, text=_SERVERS_HTML
        )
        _mock_server(respx_mock, "9001", "First1")
        _mock_server(respx_mock, "9002", "Second2")
        respx_mock.get(
            f"{EMBED}/embed-1/v3/e-1/getSources", params={"id": "First1"}
        ).respond(200, json={"sources": []})
        respx_mock.get(
            f"{EMBED}/embed-1/v3/e-1/getSources", params={"id": "Second2"}
        ).respond(200, json={"sources": [{"file": MASTER}]})
        respx_mock.get(MASTER).respond(200, text=_MASTER)

        result = await _use_case(http_client, diskcache).execute("88", "episode")

        assert result.source_server == "MegaCloud"

    async def test_second_call_is_served_from_diskcache(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        discovery = respx_mock.get(f"{CATALOG}/ajax/episode/list/7").respond(
            200, text=_SERVERS_HTML
        )
        _mock_server(respx_mock, "9001", "AbC123")
        respx_mock.get(f"{EMBED}/embed-1/v3/e-1/getSources").respond(
            200, json={"sources": [{"file": MASTER}]}
        )
        respx_mock.get(MASTER).respond(200, text=_MASTER)
        uc = _use_case(http_client, diskcache)

        first = await uc.execute("7", "movie")
        second = await uc.execute("7", "movie")

        assert first == second
        assert discovery.call_count == 1
        assert await diskcache.exists("stream:movie-7")

    async def test_no_servers(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/5").respond(200, text="<div></div>")

        with pytest.raises(NoServersFoundError):
            await _use_case(http_client, diskcache).execute("5", "movie")

        assert await diskcache.exists("stream:movie-5") is False

    async def test_all_servers_failing_exhausts(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/6").respond(200, text=_SERVERS_HTML)
        respx_mock.get(f"{CATALOG}/ajax/episode/sources/9001").respond(
            200, json={"link": "https://elsewhere.test/e-1/x"}
        )
        respx_mock.get(f"{CATALOG}/ajax/episode/sources/9002").respond(500)

        with pytest.raises(AllStrategiesExhaustedError) as exc_info:
            await _use_case(http_client, diskcache).execute("6", "movie")

        kinds = [f.kind.value for f in exc_info.value.failures]
        assert kinds == ["protocol_mismatch", "upstream_unavailable"]

    async def test_unrequestable_master_url_moves_on_to_next_server(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/9").respond(200, text=_SERVERS_HTML)
        _mock_server(respx_mock, "9001", "First1")
        _mock_server(respx_mock, "9002", "Second2")
        respx_mock.get(
            f"{EMBED}/embed-1/v3/e-1/getSources", params={"id": "First1"}
        ).respond(200, json={"sources": [{"file": "https://cdn.test/bad\n.m3u8"}]})
        respx_mock.get(
            f"{EMBED}/embed-1/v3/e-1/getSources", params={"id": "Second2"}
        ).respond(200, json={"sources": [{"file": MASTER}]})
        respx_mock.get(MASTER).respond(200, text=_MASTER)

        result = await _use_case(http_client, diskcache).execute("9", "movie")

        assert result.source_server == "MegaCloud"
        assert result.sources[0].quality == "1080p"

    async def test_unrequestable_embed_link_moves_on_to_next_server(
        self,
        http_client: httpx.AsyncClient,
        diskcache: DiskcacheAdapter,
        respx_mock: respx.MockRouter,
    ) -> None:
        respx_mock.get(f"{CATALOG}/ajax/episode/list/10").respond(200, text=_SERVERS_HTML)
        respx_mock.get(f"{CATALOG}/ajax/episode/sources/9001").respond(
            200, json={"link": f"{EMBED}/embed-1/v3/e-1/\x01Bad"}
        )
        _mock_server(respx_mock, "9002", "Second2")
        respx_mock.get(f"{EMBED}/embed-1/v3/e-1/getSources").respond(
            200, json={"sources": [{"file": MASTER}]}
        )
        respx_mock.get(MASTER).respond(200, text=_MASTER)

        result = await _use_case(http_client, diskcache).execute("10", "movie")

        assert result.source_server == "MegaCloud"
