"""Fast path: replay the embed provider's source-resolution call over HTTP."""

from __future__ import annotations

import httpx
import structlog

from plumenest.domain.entities.stream import (
    CandidateServer,
    FailureKind,
    MediaType,
    NegotiationFailure,
    StreamResult,
)
from plumenest.infrastructure.common.http_headers import browser_headers
from plumenest.infrastructure.streaming.embed_extract import (
    extract_embed_id,
    extract_session_token,
    parse_source_listing,
)
from plumenest.infrastructure.streaming.negotiation import NegotiatorBase

log = structlog.get_logger(__name__)


class HttpxSessionNegotiator(NegotiatorBase):
    """Scrapes the session token from the static embed page.

    Works as long as the token is present in the served HTML; when it is
    generated by script, the browser strategy takes over.
    """

    strategy_name = "fast"

    async def negotiate(
        self,
        server: CandidateServer,
        content_id: str,
        media_type: MediaType,
    ) -> StreamResult | NegotiationFailure:
        embed_url = await self._embed_url(server)
        if isinstance(embed_url, NegotiationFailure):
            return embed_url

        upstream = self._upstream
        rules = upstream.extraction
        try:
            page = await self._http.get(
                embed_url,
                headers=browser_headers(
                    upstream.browser_user_agent, f"{upstream.catalog_base_url}/"
                ),
            )
            page.raise_for_status()
        except httpx.InvalidURL as e:
            return self._failure(
                server, FailureKind.PROTOCOL_MISMATCH, f"embed page URL: {e}"
            )
        except httpx.HTTPError as e:
            return self._failure(
                server, FailureKind.UPSTREAM_UNAVAILABLE, f"embed page: {e}"
            )

        token = extract_session_token(page.text, rules)
        embed_id = extract_embed_id(embed_url, rules)
        if not token or not embed_id:
            return self._failure(
                server,
                FailureKind.PROTOCOL_MISMATCH,
                "session token or embed id not found",
                embed_url=embed_url,
                rules_version=str(rules.version),
            )

        headers = browser_headers(upstream.browser_user_agent, embed_url)
        headers["X-Requested-With"] = "XMLHttpRequest"
        try:
            resp = await self._http.get(
                f"{upstream.embed_base_url}{rules.sources_path}",
                params={"id": embed_id, "_k": token},
                headers=headers,
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.InvalidURL as e:
            return self._failure(
                server, FailureKind.PROTOCOL_MISMATCH, f"source resolution URL: {e}"
            )
        except httpx.HTTPError as e:
            return self._failure(
                server, FailureKind.UPSTREAM_UNAVAILABLE, f"source resolution: {e}"
            )
        except ValueError as e:
            return self._failure(
                server, FailureKind.PROTOCOL_MISMATCH, f"source resolution JSON: {e}"
            )

        entry = parse_source_listing(payload)
        if entry is None:
            return self._failure(
                server, FailureKind.EMPTY_SOURCE_LIST, "empty source list"
            )

        log.debug(
            "fast_source_listing",
            server=server.name,
            embed_id=embed_id,
            content_id=content_id,
            media_type=media_type,
        )
        return await self._build_result(server, embed_url, entry)
