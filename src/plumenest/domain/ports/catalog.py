"""Ports for the upstream content catalog (server discovery + TV helpers)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from plumenest.domain.entities.stream import CandidateServer, MediaType


@runtime_checkable
class ServerDiscoveryPort(Protocol):
    """Lists the candidate servers for a content item, in upstream order."""

    async def get_servers(
        self, content_id: str, media_type: MediaType
    ) -> list[CandidateServer]: ...


@runtime_checkable
class EmbedLinkPort(Protocol):
    """Looks up the embed page URL a candidate server points at.

    Returns None when the upstream answered without a link.
    Network errors propagate as ``httpx.HTTPError``.
    """

    async def get_embed_link(self, server_id: str) -> str | None: ...


@runtime_checkable
class CatalogPort(ServerDiscoveryPort, EmbedLinkPort, Protocol):
    """Full catalog client: discovery, embed links, season/episode listing."""

    async def get_seasons(self, show_id: str) -> list[dict[str, str]]: ...

    async def get_episodes(self, season_id: str) -> list[dict[str, str]]: ...
