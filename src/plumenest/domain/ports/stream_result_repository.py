"""Port for cached stream results."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from plumenest.domain.entities.stream import MediaType, StreamResult


@runtime_checkable
class StreamResultRepository(Protocol):
    """Async cache-aside store for resolved streams keyed by (type, id)."""

    async def get(self, media_type: MediaType, content_id: str) -> StreamResult | None: ...

    async def save(
        self, result: StreamResult, media_type: MediaType, content_id: str
    ) -> None: ...
