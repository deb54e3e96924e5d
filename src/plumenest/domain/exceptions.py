"""Stream resolution exceptions.

Only terminal, caller-visible failures are exceptions. Per-attempt problems
are returned as ``NegotiationFailure`` values and never raised.
"""

from __future__ import annotations

from collections.abc import Sequence

from plumenest.domain.entities.stream import NegotiationFailure


class StreamResolutionError(Exception):
    """Base class for all terminal stream-resolution errors."""


class ServerDiscoveryError(StreamResolutionError):
    """Raised when the candidate server list could not be fetched."""


class NoServersFoundError(StreamResolutionError):
    """Raised when discovery returned no candidate servers."""

    def __init__(self, message: str = "No streaming servers were found for this content.") -> None:
        super().__init__(message)


class AllStrategiesExhaustedError(StreamResolutionError):
    """Raised when every strategy failed on every server.

    ``failures`` is kept for logging; it is not part of the public response.
    """

    def __init__(
        self,
        failures: Sequence[NegotiationFailure] = (),
        message: str = "All strategies failed for all available servers.",
    ) -> None:
        super().__init__(message)
        self.failures = tuple(failures)


class ResolutionDeadlineExceededError(StreamResolutionError):
    """Raised when the overall resolution deadline elapsed."""

    def __init__(self, deadline_seconds: float) -> None:
        super().__init__(
            f"Stream resolution exceeded the {deadline_seconds:g}s deadline."
        )
        self.deadline_seconds = deadline_seconds
