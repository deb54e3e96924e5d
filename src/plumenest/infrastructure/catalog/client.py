"""Catalog site client: server discovery, embed links, season/episode lists.

The catalog answers its ``/ajax/...`` endpoints with HTML fragments
(server, season and episode lists) or small JSON objects (source links).
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from bs4 import Tag

from plumenest.domain.entities.stream import CandidateServer, MediaType
from plumenest.domain.exceptions import ServerDiscoveryError
from plumenest.infrastructure.common.html_selectors import (
    first_attr,
    parse_html,
    select_items,
)
from plumenest.infrastructure.common.http_headers import browser_headers

log = structlog.get_logger(__name__)

_SERVER_SELECTORS = (".nav-item a", "a.link-item")
_SEASON_SELECTORS = ("a.ss-item", ".dropdown-menu a", "[data-id]")
_EPISODE_SELECTORS = ("a.eps-item", ".nav-item a", "[data-id]")


def _strip_prefix(text: str, prefix: str) -> str:
    text = text.strip()
    if text.startswith(prefix):
        text = text[len(prefix) :]
    return text.strip()


def _server_from_tag(tag: Tag) -> CandidateServer | None:
    server_id = first_attr(tag, "data-id", "data-linkid")
    if not server_id:
        return None
    title = first_attr(tag, "title") or tag.get_text(" ", strip=True)
    name = _strip_prefix(title, "Server ") or server_id
    return CandidateServer(id=server_id, name=name)


def parse_servers(html: str) -> list[CandidateServer]:
    """Servers in page order, first occurrence of each id wins."""
    servers: list[CandidateServer] = []
    seen: set[str] = set()
    for tag in select_items(parse_html(html), *_SERVER_SELECTORS):
        server = _server_from_tag(tag)
        if server is None or server.id in seen:
            continue
        seen.add(server.id)
        servers.append(server)
    return servers


def parse_seasons(html: str) -> list[dict[str, str]]:
    seasons: list[dict[str, str]] = []
    for tag in select_items(parse_html(html), *_SEASON_SELECTORS):
        season_id = first_attr(tag, "data-id")
        if not season_id:
            continue
        number = first_attr(tag, "data-season") or _strip_prefix(
            tag.get_text(" ", strip=True), "Season "
        )
        seasons.append({"seasonId": season_id, "seasonNumber": number})
    return seasons


def parse_episodes(html: str) -> list[dict[str, str]]:
    episodes: list[dict[str, str]] = []
    for tag in select_items(parse_html(html), *_EPISODE_SELECTORS):
        episode_id = first_attr(tag, "data-id")
        if not episode_id:
            continue
        title = first_attr(tag, "title") or tag.get_text(" ", strip=True)
        episodes.append({"episodeId": episode_id, "title": title})
    return episodes


class HttpxCatalogClient:
    """httpx client for the catalog site."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str,
        user_agent: str,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent

    async def _get(self, path: str) -> httpx.Response:
        resp = await self._http.get(
            f"{self._base_url}{path}",
            headers=browser_headers(self._user_agent, f"{self._base_url}/"),
        )
        resp.raise_for_status()
        return resp

    async def get_servers(
        self, content_id: str, media_type: MediaType
    ) -> list[CandidateServer]:
        if media_type == "movie":
            path = f"/ajax/episode/list/{content_id}"
        else:
            path = f"/ajax/episode/servers/{content_id}"

        try:
            resp = await self._get(path)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning(
                "server_discovery_failed",
                content_id=content_id,
                media_type=media_type,
                error=str(e),
            )
            raise ServerDiscoveryError(
                f"Could not fetch the server list for {media_type} {content_id}."
            ) from e

        servers = parse_servers(resp.text)
        log.info(
            "servers_discovered",
            content_id=content_id,
            media_type=media_type,
            servers=[s.name for s in servers],
        )
        return servers

    async def get_embed_link(self, server_id: str) -> str | None:
        resp = await self._get(f"/ajax/episode/sources/{server_id}")
        try:
            data: Any = resp.json()
        except ValueError:
            log.warning("embed_link_not_json", server_id=server_id)
            return None
        if not isinstance(data, dict):
            return None
        link = data.get("link")
        return link if isinstance(link, str) and link else None

    async def get_seasons(self, show_id: str) -> list[dict[str, str]]:
        resp = await self._get(f"/ajax/season/list/{show_id}")
        return parse_seasons(resp.text)

    async def get_episodes(self, season_id: str) -> list[dict[str, str]]:
        resp = await self._get(f"/ajax/season/episodes/{season_id}")
        return parse_episodes(resp.text)
