"""Port for decryption key lookup."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyResolverPort(Protocol):
    """Returns a best-effort decryption key; never raises."""

    async def resolve_key(self, required: bool) -> str | None: ...
