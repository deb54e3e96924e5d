"""Steps shared by every negotiation strategy.

A strategy only differs in how it turns an embed URL into the source
listing. Looking up the embed URL and turning the listing into a
``StreamResult`` is the same for all of them.
"""

from __future__ import annotations

import httpx
import structlog

from plumenest.domain.entities.stream import (
    CandidateServer,
    FailureKind,
    NegotiationFailure,
    SourceManifestEntry,
    StreamResult,
)
from plumenest.domain.ports.catalog import EmbedLinkPort
from plumenest.domain.ports.key_resolver import KeyResolverPort
from plumenest.infrastructure.common.http_headers import browser_headers
from plumenest.infrastructure.config.schema import UpstreamConfig
from plumenest.infrastructure.streaming.embed_extract import is_allowed_embed_url
from plumenest.infrastructure.streaming.renditions import resolve_renditions

log = structlog.get_logger(__name__)


class NegotiatorBase:
    """Embed link lookup (step 1) and result assembly (steps 4-6)."""

    strategy_name = "base"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        catalog: EmbedLinkPort,
        key_resolver: KeyResolverPort,
        upstream: UpstreamConfig,
    ) -> None:
        self._http = http_client
        self._catalog = catalog
        self._keys = key_resolver
        self._upstream = upstream

    @property
    def name(self) -> str:
        return self.strategy_name

    def _failure(
        self,
        server: CandidateServer,
        kind: FailureKind,
        message: str,
        **details: str,
    ) -> NegotiationFailure:
        return NegotiationFailure(
            strategy=self.name,
            server=server,
            kind=kind,
            message=message,
            details=details,
        )

    async def _embed_url(self, server: CandidateServer) -> str | NegotiationFailure:
        try:
            link = await self._catalog.get_embed_link(server.id)
        except httpx.HTTPError as e:
            return self._failure(
                server, FailureKind.UPSTREAM_UNAVAILABLE, f"source list: {e}"
            )
        except httpx.InvalidURL as e:
            return self._failure(
                server, FailureKind.PROTOCOL_MISMATCH, f"source list URL: {e}"
            )
        if not link:
            return self._failure(
                server, FailureKind.EMPTY_SOURCE_LIST, "no embed link for server"
            )
        if not is_allowed_embed_url(link, self._upstream.embed_base_url):
            return self._failure(
                server,
                FailureKind.PROTOCOL_MISMATCH,
                "embed link points at an unsupported host",
                embed_url=link,
            )
        return link

    async def _build_result(
        self,
        server: CandidateServer,
        embed_url: str,
        entry: SourceManifestEntry,
    ) -> StreamResult | NegotiationFailure:
        outcome = await resolve_renditions(
            self._http,
            entry.file_url,
            headers=browser_headers(self._upstream.browser_user_agent, embed_url),
        )
        if not outcome.usable:
            return self._failure(
                server,
                FailureKind.EMPTY_RENDITION_LIST,
                "master manifest has no renditions",
                master_url=entry.file_url,
            )

        key = await self._keys.resolve_key(True) if entry.encrypted else None

        log.info(
            "negotiation_succeeded",
            strategy=self.name,
            server=server.name,
            manifest=outcome.kind.value,
            renditions=len(outcome.renditions),
            encrypted=entry.encrypted,
        )
        return StreamResult(
            sources=outcome.renditions,
            subtitles=entry.subtitles,
            decryption_key=key,
            source_server=server.name,
            referer_url=embed_url,
        )
