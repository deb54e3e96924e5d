"""Embed page extraction helpers.

Each helper is a pure function over fetched text and the configured
``EmbedExtractionRules``; ``None`` means the expected markup is absent.
"""

from __future__ import annotations

import re
from typing import Any

import httpx

from plumenest.domain.entities.stream import SourceManifestEntry, SubtitleTrack
from plumenest.infrastructure.common.html_selectors import extract_attr, parse_html
from plumenest.infrastructure.config.schema import EmbedExtractionRules

# Track kinds that are thumbnails/chapters, not subtitles.
_NON_SUBTITLE_KINDS = frozenset({"thumbnails", "chapters", "metadata"})


def is_allowed_embed_url(url: str, embed_base_url: str) -> bool:
    """Whether *url* points at the configured embed provider.

    URLs httpx refuses to build (control characters, oversized) are rejected.
    """
    try:
        candidate = httpx.URL(url)
        allowed = httpx.URL(embed_base_url)
    except httpx.InvalidURL:
        return False
    if candidate.scheme not in ("http", "https"):
        return False
    return bool(candidate.host) and candidate.host == allowed.host


def extract_session_token(html: str, rules: EmbedExtractionRules) -> str | None:
    """First token found by the ordered token rules."""
    soup = parse_html(html)
    for rule in rules.token_rules:
        token = extract_attr(soup, rule.selector, rule.attribute)
        if token:
            return token
    return None


def extract_embed_id(embed_url: str, rules: EmbedExtractionRules) -> str | None:
    match = re.search(rules.embed_id_pattern, embed_url)
    if match is None:
        return None
    return match.group(1) or None


def _parse_track(raw: Any) -> SubtitleTrack | None:
    if not isinstance(raw, dict):
        return None
    url = raw.get("file") or raw.get("url")
    if not isinstance(url, str) or not url:
        return None
    if str(raw.get("kind", "")).lower() in _NON_SUBTITLE_KINDS:
        return None
    label = str(raw.get("label") or "")
    language = str(raw.get("language") or raw.get("srclang") or "")
    return SubtitleTrack(url=url, label=label, language=language)


def parse_source_listing(payload: Any) -> SourceManifestEntry | None:
    """First usable source of a source-resolution response.

    Expects ``{"sources": [{"file": ...}, ...], "tracks": [...],
    "encrypted": bool}``. Returns None when the source list is missing
    or empty, or its first entry has no file URL.
    """
    if not isinstance(payload, dict):
        return None
    sources = payload.get("sources")
    if not isinstance(sources, list) or not sources:
        return None
    first = sources[0]
    if not isinstance(first, dict):
        return None
    file_url = first.get("file")
    if not isinstance(file_url, str) or not file_url:
        return None

    encrypted = bool(payload.get("encrypted") or first.get("encrypted"))
    tracks = payload.get("tracks")
    subtitles: list[SubtitleTrack] = []
    if isinstance(tracks, list):
        for raw in tracks:
            track = _parse_track(raw)
            if track is not None:
                subtitles.append(track)

    return SourceManifestEntry(
        file_url=file_url, encrypted=encrypted, subtitles=tuple(subtitles)
    )
