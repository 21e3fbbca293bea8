"""Configuration types for rate-limited, retrying HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .resilience import RetryOptions

RETRYABLE_STATUS_CODES = frozenset(
    {
        httpx.codes.REQUEST_TIMEOUT,
        httpx.codes.TOO_MANY_REQUESTS,
        *range(500, 600),
    }
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries for one HTTP client.

    ``timeout_budget_seconds`` bounds the time from the first attempt of a request to the
    start of its last retry; ``None`` leaves only ``total`` as the limit.
    """

    total: int = 3
    backoff_factor: float = 1.0
    max_backoff_wait: float = 30.0
    backoff_jitter: float = 0.1
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = field(
        default_factory=lambda: frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST"})
    )
    status_forcelist: frozenset[int] = RETRYABLE_STATUS_CODES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    timeout_budget_seconds: float | None = None

    @classmethod
    def from_options(cls, options: RetryOptions) -> RetryPolicy:
        if not options.enable_retries:
            return cls(total=0)
        return cls(
            total=options.max_retry_attempts,
            backoff_factor=options.base_delay_seconds,
            max_backoff_wait=options.max_delay_seconds,
            backoff_jitter=options.jitter_factor,
            timeout_budget_seconds=options.request_timeout_seconds or None,
        )

    def build(self) -> Retry:
        return Retry(
            total=self.total,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            respect_retry_after_header=self.respect_retry_after_header,
            allowed_methods=tuple(self.allowed_methods),
            status_forcelist=tuple(self.status_forcelist),
            retry_on_exceptions=self.retry_on_exceptions,
            backoff_jitter=self.backoff_jitter,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
