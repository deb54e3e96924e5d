"""Master manifest fetch + rendition extraction with partial fallback."""

from __future__ import annotations

from urllib.parse import urljoin

import httpx
import structlog

from plumenest.domain.entities.stream import (
    QUALITY_AUTO,
    QUALITY_AUTO_MASTER,
    ManifestKind,
    ManifestOutcome,
    Rendition,
)
from plumenest.infrastructure.streaming.playlist_parser import (
    is_media_playlist,
    parse_manifest,
)

log = structlog.get_logger(__name__)


async def resolve_renditions(
    http: httpx.AsyncClient,
    master_url: str,
    *,
    headers: dict[str, str] | None = None,
) -> ManifestOutcome:
    """Fetch *master_url* and classify what came back.

    - master playlist: FULLY_PARSED, relative URIs joined to *master_url*
    - media playlist: LEAF_MANIFEST with one ``auto`` rendition
    - fetch failed: PARTIAL_FALLBACK with one ``auto (master)`` rendition
    - URL httpx cannot request: UNRECOGNIZED, nothing playable
    - anything else: UNRECOGNIZED with no renditions
    """
    try:
        resp = await http.get(master_url, headers=headers)
        resp.raise_for_status()
        text = resp.text
    except httpx.InvalidURL as e:
        log.warning("master_manifest_url_invalid", url=master_url[:200], error=str(e))
        return ManifestOutcome(kind=ManifestKind.UNRECOGNIZED, renditions=())
    except httpx.HTTPError as e:
        log.warning("master_manifest_fetch_failed", url=master_url, error=str(e))
        return ManifestOutcome(
            kind=ManifestKind.PARTIAL_FALLBACK,
            renditions=(Rendition(quality=QUALITY_AUTO_MASTER, url=master_url),),
        )

    parsed = parse_manifest(text)
    if parsed:
        return ManifestOutcome(
            kind=ManifestKind.FULLY_PARSED,
            renditions=tuple(
                Rendition(quality=r.quality, url=urljoin(master_url, r.url))
                for r in parsed
            ),
        )

    if is_media_playlist(text):
        return ManifestOutcome(
            kind=ManifestKind.LEAF_MANIFEST,
            renditions=(Rendition(quality=QUALITY_AUTO, url=master_url),),
        )

    log.warning("master_manifest_unrecognized", url=master_url, size=len(text))
    return ManifestOutcome(kind=ManifestKind.UNRECOGNIZED, renditions=())
