"""Domain entities for stream resolution.

Pure value objects, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

MediaType = Literal["movie", "episode"]

QUALITY_AUTO = "auto"
QUALITY_AUTO_MASTER = "auto (master)"


@dataclass(frozen=True)
class CandidateServer:
    """One upstream hosting server that may serve a content item."""

    id: str
    name: str


@dataclass(frozen=True)
class EmbedSession:
    """State scraped from a third-party player page for one attempt."""

    embed_url: str
    session_token: str
    embed_id: str


@dataclass(frozen=True)
class SubtitleTrack:
    """Subtitle track advertised next to the source list."""

    url: str
    label: str = ""
    language: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "label": self.label, "language": self.language}


@dataclass(frozen=True)
class SourceManifestEntry:
    """First usable entry of the upstream source list."""

    file_url: str
    encrypted: bool = False
    subtitles: tuple[SubtitleTrack, ...] = ()


@dataclass(frozen=True)
class Rendition:
    """One concrete playable variant (quality tier + URL)."""

    quality: str  # "auto", "auto (master)" or "<height>p"
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"quality": self.quality, "url": self.url}


class ManifestKind(str, Enum):
    """How the rendition list of a manifest was obtained."""

    FULLY_PARSED = "fully_parsed"  # master manifest with stream-info records
    LEAF_MANIFEST = "leaf_manifest"  # media playlist served as single "auto"
    PARTIAL_FALLBACK = "partial_fallback"  # fetch failed, unparsed master URL
    UNRECOGNIZED = "unrecognized"  # neither master nor media playlist


@dataclass(frozen=True)
class ManifestOutcome:
    """Tagged result of turning a master URL into renditions."""

    kind: ManifestKind
    renditions: tuple[Rendition, ...]

    @property
    def usable(self) -> bool:
        return bool(self.renditions)


@dataclass(frozen=True)
class StreamResult:
    """Resolved stream for one content item.

    Only constructed with at least one rendition and a known source server,
    so every result can be attributed to the server that produced it.
    """

    sources: tuple[Rendition, ...]
    source_server: str
    referer_url: str
    subtitles: tuple[SubtitleTrack, ...] = ()
    decryption_key: str | None = None

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError("StreamResult requires at least one rendition")
        if not self.source_server:
            raise ValueError("StreamResult requires the source server name")

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation (public output shape)."""
        return {
            "sources": [r.to_dict() for r in self.sources],
            "subtitles": [t.to_dict() for t in self.subtitles],
            "decryptionKey": self.decryption_key,
            "sourceServer": self.source_server,
            "refererUrl": self.referer_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreamResult:
        """Inverse of :meth:`to_dict`. Raises KeyError/ValueError on bad data."""
        return cls(
            sources=tuple(
                Rendition(quality=s["quality"], url=s["url"]) for s in data["sources"]
            ),
            subtitles=tuple(
                SubtitleTrack(
                    url=t["url"],
                    label=t.get("label", ""),
                    language=t.get("language", ""),
                )
                for t in data.get("subtitles", [])
            ),
            decryption_key=data.get("decryptionKey"),
            source_server=data["sourceServer"],
            referer_url=data.get("refererUrl", ""),
        )


class FailureKind(str, Enum):
    """Why a single (strategy, server) attempt did not produce a result."""

    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    PROTOCOL_MISMATCH = "protocol_mismatch"
    EMPTY_SOURCE_LIST = "empty_source_list"
    EMPTY_RENDITION_LIST = "empty_rendition_list"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class NegotiationFailure:
    """Recoverable outcome of one negotiation attempt."""

    strategy: str
    server: CandidateServer
    kind: FailureKind
    message: str = ""
    details: dict[str, str] = field(default_factory=dict)
