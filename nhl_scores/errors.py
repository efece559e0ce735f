"""Error taxonomy surfaced by the pipeline operations."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for every error an exposed operation raises."""


class UpstreamError(PipelineError):
    """A feed answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        retry_after: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after
        self.url = url


class RateLimitExceeded(UpstreamError):
    """429 responses kept coming after the retry ceiling was reached."""


class NotFound(PipelineError):
    """A game or team is absent locally or in the upstream response."""


class TooFrequent(PipelineError):
    """The per-game refresh throttle was violated."""

    def __init__(self, message: str, retry_after_seconds: float | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class Conflict(PipelineError):
    """Another refresh of the same game is in flight."""
