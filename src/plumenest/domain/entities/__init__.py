from .stream import (
    QUALITY_AUTO,
    QUALITY_AUTO_MASTER,
    CandidateServer,
    EmbedSession,
    FailureKind,
    ManifestKind,
    ManifestOutcome,
    MediaType,
    NegotiationFailure,
    Rendition,
    SourceManifestEntry,
    StreamResult,
    SubtitleTrack,
)

__all__ = [
    "QUALITY_AUTO",
    "QUALITY_AUTO_MASTER",
    "CandidateServer",
    "EmbedSession",
    "FailureKind",
    "ManifestKind",
    "ManifestOutcome",
    "MediaType",
    "NegotiationFailure",
    "Rendition",
    "SourceManifestEntry",
    "StreamResult",
    "SubtitleTrack",
]
