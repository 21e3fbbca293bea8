"""Retry pipeline with exponential backoff, jitter, timeout budget and circuit breaker."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ResilienceTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .circuit_breaker import CircuitBreaker

log = getLogger(__name__)

type ErrorPredicate = Callable[[Exception], bool]


def _never(exc: Exception) -> bool:
    _ = exc
    return False


@dataclass(slots=True, frozen=True)
class RetryStrategy:
    max_retry_attempts: int
    base_delay_seconds: float
    max_delay_seconds: float
    jitter_factor: float = 0.0
    should_retry: ErrorPredicate = _never

    def delay_for(self, retry_number: int, random_source: Callable[[], float]) -> float:
        """Exponential delay for the ``retry_number``-th retry (1-based), capped and jittered."""

        delay = min(self.max_delay_seconds, self.base_delay_seconds * 2 ** (retry_number - 1))
        if self.jitter_factor:
            delay *= 1.0 + self.jitter_factor * (2.0 * random_source() - 1.0)
        return min(max(delay, 0.0), self.max_delay_seconds)


class ResiliencePipeline:
    """Execute an operation under a retry strategy and an optional circuit breaker.

    The breaker sits inside the retry loop: every attempt is recorded, and a rejected
    call (``CircuitOpenError``) is not retried. ``timeout_seconds`` bounds the whole
    execution; a retry whose delay would overrun it is abandoned.
    """

    def __init__(
        self,
        name: str,
        *,
        retry: RetryStrategy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        timeout_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self.name = name
        self.retry = retry
        self.circuit_breaker = circuit_breaker
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._clock = clock
        self._random = random_source

    @classmethod
    def passthrough(cls, name: str) -> ResiliencePipeline:
        """Pipeline that runs the operation exactly once."""
        return cls(name)

    @property
    def is_passthrough(self) -> bool:
        return self.retry is None and self.circuit_breaker is None and self.timeout_seconds is None

    def execute[T](self, operation: Callable[[], T]) -> T:
        started = self._clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._attempt(operation)
            except Exception as exc:
                if not self._should_retry(exc, attempt):
                    raise
                delay = self.retry.delay_for(attempt, self._random) if self.retry else 0.0
                if self.timeout_seconds is not None:
                    elapsed = self._clock() - started
                    if elapsed + delay > self.timeout_seconds:
                        raise ResilienceTimeoutError(
                            self.name, timeout_seconds=self.timeout_seconds, attempts=attempt
                        ) from exc
                log.warning(
                    "%s retry attempt %s due to %s: %s. Retrying in %.0fms",
                    self.name,
                    attempt,
                    type(exc).__name__,
                    exc,
                    delay * 1000,
                )
                self._sleep(delay)

    def _should_retry(self, exc: Exception, attempt: int) -> bool:
        if self.retry is None or attempt > self.retry.max_retry_attempts:
            return False
        return self.retry.should_retry(exc)

    def _attempt[T](self, operation: Callable[[], T]) -> T:
        breaker = self.circuit_breaker
        if breaker is None:
            return operation()
        breaker.before_call()
        try:
            result = operation()
        except Exception as exc:
            handled = self.retry.should_retry(exc) if self.retry else True
            if handled:
                breaker.record_failure()
            else:
                breaker.record_success()
            raise
        breaker.record_success()
        return result
