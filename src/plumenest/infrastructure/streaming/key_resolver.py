"""Decryption key lookup: remote registry first, static table second."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)


def _pick_key(table: Mapping[str, Any], preference: Sequence[str]) -> tuple[str, str] | None:
    for provider in preference:
        value = table.get(provider)
        if isinstance(value, str) and value:
            return provider, value
    return None


class HttpxKeyResolver:
    """Resolves the current key of the preferred provider namespace.

    Never raises: registry problems degrade to ``fallback_keys`` and
    finally to ``None``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        registry_url: str,
        provider_preference: Sequence[str],
        fallback_keys: Mapping[str, str] | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._http = http_client
        self._registry_url = registry_url
        self._preference = tuple(provider_preference)
        self._fallback = dict(fallback_keys or {})
        self._timeout = timeout_seconds

    async def _fetch_registry(self) -> dict[str, Any] | None:
        try:
            resp = await self._http.get(self._registry_url, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            log.warning(
                "key_registry_unavailable", url=self._registry_url, error=str(e)
            )
            return None
        if not isinstance(data, dict):
            log.warning(
                "key_registry_malformed",
                url=self._registry_url,
                payload_type=type(data).__name__,
            )
            return None
        return data

    async def resolve_key(self, required: bool) -> str | None:
        if not required:
            return None

        registry = await self._fetch_registry()
        if registry is not None:
            picked = _pick_key(registry, self._preference)
            if picked is not None:
                log.info("key_resolved_remote", provider=picked[0])
                return picked[1]
            log.warning(
                "key_registry_missing_provider",
                providers=list(self._preference),
            )

        picked = _pick_key(self._fallback, self._preference)
        if picked is not None:
            log.warning("key_resolved_fallback", provider=picked[0])
            return picked[1]

        log.error("key_unavailable", providers=list(self._preference))
        return None
