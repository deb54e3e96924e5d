"""Stream resolution use case.

cache -> server discovery -> strategy tiers (fast path on every server,
then browser emulation on every server) -> cache write.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog

from plumenest.domain.entities.stream import (
    CandidateServer,
    MediaType,
    NegotiationFailure,
    StreamResult,
)
from plumenest.domain.exceptions import (
    AllStrategiesExhaustedError,
    NoServersFoundError,
    ResolutionDeadlineExceededError,
)
from plumenest.domain.ports.catalog import ServerDiscoveryPort
from plumenest.domain.ports.session_negotiator import SessionNegotiatorPort
from plumenest.domain.ports.stream_result_repository import StreamResultRepository

log = structlog.get_logger(__name__)


class ResolveStreamUseCase:
    """Resolves one content item into a ``StreamResult``.

    Strategies are tiers ordered by cost: a tier is tried on every server,
    in discovery order, before the next tier starts. Each
    (strategy, server) pair gets exactly one attempt.
    """

    def __init__(
        self,
        *,
        discovery: ServerDiscoveryPort,
        strategies: Sequence[SessionNegotiatorPort],
        repository: StreamResultRepository,
        deadline_seconds: float = 120.0,
    ) -> None:
        if not strategies:
            raise ValueError("at least one negotiation strategy is required")
        self._discovery = discovery
        self._strategies = tuple(strategies)
        self._repository = repository
        self._deadline = deadline_seconds

    async def execute(self, content_id: str, media_type: MediaType) -> StreamResult:
        cached = await self._repository.get(media_type, content_id)
        if cached is not None:
            log.info(
                "stream_cache_hit",
                content_id=content_id,
                media_type=media_type,
                source_server=cached.source_server,
            )
            return cached

        log.info("stream_cache_miss", content_id=content_id, media_type=media_type)
        started = time.perf_counter()
        failures: list[NegotiationFailure] = []
        try:
            result = await asyncio.wait_for(
                self._resolve(content_id, media_type, failures),
                timeout=self._deadline,
            )
        except TimeoutError:
            log.error(
                "stream_resolution_deadline_exceeded",
                content_id=content_id,
                media_type=media_type,
                deadline_seconds=self._deadline,
                failed_attempts=len(failures),
            )
            raise ResolutionDeadlineExceededError(self._deadline) from None

        try:
            await self._repository.save(result, media_type, content_id)
        except Exception:
            log.exception(
                "stream_cache_write_failed",
                content_id=content_id,
                media_type=media_type,
            )

        log.info(
            "stream_resolved",
            content_id=content_id,
            media_type=media_type,
            source_server=result.source_server,
            renditions=len(result.sources),
            failed_attempts=len(failures),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return result

    async def _resolve(
        self,
        content_id: str,
        media_type: MediaType,
        failures: list[NegotiationFailure],
    ) -> StreamResult:
        servers = await self._discovery.get_servers(content_id, media_type)
        if not servers:
            log.warning(
                "stream_no_servers", content_id=content_id, media_type=media_type
            )
            raise NoServersFoundError()

        for strategy in self._strategies:
            result = await self._run_tier(
                strategy, servers, content_id, media_type, failures
            )
            if result is not None:
                return result

        log.error(
            "stream_all_strategies_failed",
            content_id=content_id,
            media_type=media_type,
            servers=[s.name for s in servers],
            failures=[f"{f.strategy}/{f.server.name}: {f.kind.value}" for f in failures],
        )
        raise AllStrategiesExhaustedError(failures)

    async def _run_tier(
        self,
        strategy: SessionNegotiatorPort,
        servers: Sequence[CandidateServer],
        content_id: str,
        media_type: MediaType,
        failures: list[NegotiationFailure],
    ) -> StreamResult | None:
        log.debug("stream_tier_started", strategy=strategy.name, servers=len(servers))
        for server in servers:
            outcome = await strategy.negotiate(server, content_id, media_type)
            if isinstance(outcome, StreamResult):
                return outcome
            failures.append(outcome)
            log.warning(
                "stream_attempt_failed",
                strategy=outcome.strategy,
                server=server.name,
                kind=outcome.kind.value,
                message=outcome.message[:200],
                **outcome.details,
            )
        return None
