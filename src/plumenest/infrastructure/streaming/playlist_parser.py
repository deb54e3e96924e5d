"""HLS playlist parsing (pure, no I/O)."""

from __future__ import annotations

import re

from plumenest.domain.entities.stream import QUALITY_AUTO, Rendition

_PLAYLIST_HEADER = "#EXTM3U"
_STREAM_INF = "#EXT-X-STREAM-INF"
_RESOLUTION_RE = re.compile(r"RESOLUTION=(\d+)x(\d+)")


def _quality_label(stream_inf: str) -> str:
    match = _RESOLUTION_RE.search(stream_inf)
    if match is None:
        return QUALITY_AUTO
    return f"{match.group(2)}p"


def _uri_after(lines: list[str], start: int) -> str | None:
    """Next non-empty line after *start*, unless it is another tag."""
    for line in lines[start + 1 :]:
        if not line:
            continue
        return None if line.startswith("#") else line
    return None


def parse_manifest(text: str) -> list[Rendition]:
    """Turn a master playlist into renditions, in manifest order.

    Returns an empty list when *text* has no stream-info record (not a
    master playlist). A stream-info record without a URI line is skipped.
    ``RESOLUTION=WxH`` yields quality ``"{H}p"``; no resolution yields
    ``"auto"``.
    """
    if _STREAM_INF not in text:
        return []

    lines = [line.strip() for line in text.splitlines()]
    renditions: list[Rendition] = []
    for idx, line in enumerate(lines):
        if not line.startswith(_STREAM_INF):
            continue
        uri = _uri_after(lines, idx)
        if uri is None:
            continue
        renditions.append(Rendition(quality=_quality_label(line), url=uri))
    return renditions


def is_media_playlist(text: str) -> bool:
    """True for an HLS playlist that lists segments instead of variants."""
    return text.lstrip().startswith(_PLAYLIST_HEADER) and _STREAM_INF not in text
