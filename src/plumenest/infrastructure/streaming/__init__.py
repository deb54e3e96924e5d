"""Stream negotiation strategies and their pure helpers."""

from .browser_negotiator import PlaywrightSessionNegotiator, browser_session
from .fast_negotiator import HttpxSessionNegotiator
from .key_resolver import HttpxKeyResolver
from .playlist_parser import is_media_playlist, parse_manifest

__all__ = [
    "HttpxKeyResolver",
    "HttpxSessionNegotiator",
    "PlaywrightSessionNegotiator",
    "browser_session",
    "is_media_playlist",
    "parse_manifest",
]
