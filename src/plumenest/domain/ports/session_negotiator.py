"""Port for per-server stream negotiation strategies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from plumenest.domain.entities.stream import (
    CandidateServer,
    MediaType,
    NegotiationFailure,
    StreamResult,
)


@runtime_checkable
class SessionNegotiatorPort(Protocol):
    """Negotiates a playable stream with a single candidate server.

    Implementations never raise for upstream problems: every expected
    failure is returned as a ``NegotiationFailure`` so the caller can
    move on to the next server or strategy.
    """

    @property
    def name(self) -> str:
        """Strategy name used in logs (e.g. 'fast', 'browser')."""
        ...

    async def negotiate(
        self,
        server: CandidateServer,
        content_id: str,
        media_type: MediaType,
    ) -> StreamResult | NegotiationFailure: ...
