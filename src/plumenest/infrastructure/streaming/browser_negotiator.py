"""Browser emulation fallback for embed pages that build the token in script.

Instead of re-deriving the session token, a real Chromium loads the
embed page, clicks the player, and the source-resolution response is
read straight off the network.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
import structlog
from playwright.async_api import Page, Response, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright_stealth import Stealth

from plumenest.domain.entities.stream import (
    CandidateServer,
    FailureKind,
    MediaType,
    NegotiationFailure,
    StreamResult,
)
from plumenest.domain.ports.catalog import EmbedLinkPort
from plumenest.domain.ports.key_resolver import KeyResolverPort
from plumenest.infrastructure.config.schema import UpstreamConfig
from plumenest.infrastructure.streaming.embed_extract import parse_source_listing
from plumenest.infrastructure.streaming.negotiation import NegotiatorBase

log = structlog.get_logger(__name__)

_UI_TIMEOUT_MS = 15_000
_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

SessionFactory = Callable[..., AbstractAsyncContextManager[Page]]


@asynccontextmanager
async def browser_session(
    *,
    headless: bool = True,
    stealth: bool = True,
    user_agent: str | None = None,
    referer: str | None = None,
) -> AsyncIterator[Page]:
    """Launch Chromium for one attempt and tear it down on every exit path.

    Teardown runs in reverse order of acquisition; a failing close does
    not skip the remaining ones.
    """
    async with AsyncExitStack() as stack:
        stack.callback(log.debug, "browser_session_closed")
        pw = await async_playwright().start()
        stack.push_async_callback(pw.stop)
        browser = await pw.chromium.launch(headless=headless, args=_LAUNCH_ARGS)
        stack.push_async_callback(browser.close)
        context = await browser.new_context(
            user_agent=user_agent,
            extra_http_headers={"Referer": referer} if referer else None,
        )
        stack.push_async_callback(context.close)
        if stealth:
            await Stealth().apply_stealth_async(context)
        page = await context.new_page()
        log.debug("browser_session_started", headless=headless, stealth=stealth)
        yield page


class PlaywrightSessionNegotiator(NegotiatorBase):
    """Negotiates through a full browser, bounded by ``timeout_seconds``."""

    strategy_name = "browser"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        catalog: EmbedLinkPort,
        key_resolver: KeyResolverPort,
        upstream: UpstreamConfig,
        *,
        timeout_seconds: float = 45.0,
        headless: bool = True,
        stealth: bool = True,
        navigation_timeout_ms: int = 30_000,
        session_factory: SessionFactory | None = None,
    ) -> None:
        super().__init__(http_client, catalog, key_resolver, upstream)
        self._timeout = timeout_seconds
        self._headless = headless
        self._stealth = stealth
        self._navigation_timeout_ms = navigation_timeout_ms
        self._session_factory = session_factory or browser_session

    async def negotiate(
        self,
        server: CandidateServer,
        content_id: str,
        media_type: MediaType,
    ) -> StreamResult | NegotiationFailure:
        embed_url = await self._embed_url(server)
        if isinstance(embed_url, NegotiationFailure):
            return embed_url

        try:
            payload = await asyncio.wait_for(
                self._observe_source_listing(embed_url), timeout=self._timeout
            )
        except TimeoutError:
            return self._failure(
                server,
                FailureKind.TIMEOUT,
                f"no source listing observed within {self._timeout:g}s",
                embed_url=embed_url,
            )
        except PlaywrightError as e:
            return self._failure(
                server, FailureKind.UPSTREAM_UNAVAILABLE, f"browser: {e}"
            )

        entry = parse_source_listing(payload)
        if entry is None:
            return self._failure(
                server, FailureKind.EMPTY_SOURCE_LIST, "empty source list"
            )

        log.debug(
            "browser_source_listing",
            server=server.name,
            content_id=content_id,
            media_type=media_type,
        )
        return await self._build_result(server, embed_url, entry)

    def _listing_marker(self) -> str:
        # ".../e-1/getSources" -> "/getSources"
        return "/" + self._upstream.extraction.sources_path.rstrip("/").rsplit("/", 1)[-1]

    async def _observe_source_listing(self, embed_url: str) -> Any:
        observed: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        marker = self._listing_marker()

        async def on_response(response: Response) -> None:
            if observed.done() or marker not in response.url:
                return
            try:
                data = await response.json()
            except (PlaywrightError, ValueError):
                log.debug("browser_listing_not_json", url=response.url)
                return
            if parse_source_listing(data) is not None and not observed.done():
                observed.set_result(data)

        async with self._session_factory(
            headless=self._headless,
            stealth=self._stealth,
            user_agent=self._upstream.browser_user_agent,
            referer=f"{self._upstream.catalog_base_url}/",
        ) as page:
            # Observer must be in place before navigation fires the request.
            page.on("response", on_response)
            await page.goto(
                embed_url,
                wait_until="domcontentloaded",
                timeout=self._navigation_timeout_ms,
            )
            await self._click_player(page)
            return await observed

    async def _click_player(self, page: Page) -> None:
        """Start playback; a missing control only means we keep waiting."""
        rules = self._upstream.extraction
        try:
            iframe = await page.wait_for_selector(
                rules.iframe_selector, timeout=_UI_TIMEOUT_MS
            )
            frame = await iframe.content_frame() if iframe is not None else None
            if frame is None:
                log.warning("browser_player_frame_missing", selector=rules.iframe_selector)
                return
            await frame.click(rules.player_selector, timeout=_UI_TIMEOUT_MS)
        except PlaywrightError as e:
            log.warning("browser_player_click_failed", error=str(e)[:200])
