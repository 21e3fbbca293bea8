"""The resilience profiles used during synchronization.

- ``remote_call`` wraps a single request to the remote todo service. Its retries run
  inside the HTTP transport (see ``todosync.adapters.http_resilience``); the pipeline
  only carries the circuit breaker.
- ``persistence_call`` wraps a local commit.
- ``reconciliation_call`` wraps the full sync of one remote list, remote calls included.
- ``push_call`` wraps the push of one local list. It never retries a local failure,
  since the remote mutations of the failed attempt already happened.
"""

from __future__ import annotations

import random
import time
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from todosync.domain.errors import (
    ManualResolutionRequiredError,
    RemotePayloadError,
    RemoteStatusError,
    RemoteTransportError,
)

from .circuit_breaker import CircuitBreaker
from .errors import CircuitOpenError, ResilienceTimeoutError
from .pipeline import ResiliencePipeline, RetryStrategy

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.config.resilience import RetryOptions

log = getLogger(__name__)

PERSISTENCE_MAX_RETRY_ATTEMPTS = 2
PERSISTENCE_BASE_DELAY_SECONDS = 0.5
PERSISTENCE_MAX_DELAY_SECONDS = 5.0

_PERSISTENCE_MARKERS = ("timeout", "timed out", "connection")


def is_transient_remote_error(exc: Exception) -> bool:
    if isinstance(exc, RemoteTransportError):
        return True
    if isinstance(exc, RemoteStatusError):
        return exc.is_transient
    return False


def is_transient_persistence_error(exc: Exception) -> bool:
    if isinstance(exc, TimeoutError | PoolTimeoutError | DisconnectionError):
        return True
    if isinstance(exc, OperationalError) and exc.connection_invalidated:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _PERSISTENCE_MARKERS)


def is_retryable_reconciliation_error(exc: Exception) -> bool:
    if isinstance(exc, ManualResolutionRequiredError | RemotePayloadError | CircuitOpenError):
        return False
    # retrying a conflict would produce the same conflict
    if "conflict" in str(exc).lower():
        return False
    return (
        is_transient_remote_error(exc)
        or is_transient_persistence_error(exc)
        or isinstance(exc, ResilienceTimeoutError)
    )


def is_retryable_push_error(exc: Exception) -> bool:
    if isinstance(exc, SQLAlchemyError | TimeoutError):
        return False
    return is_retryable_reconciliation_error(exc) and (
        is_transient_remote_error(exc) or isinstance(exc, ResilienceTimeoutError)
    )


class ResiliencePolicies:
    """Builds and owns the pipelines for one process.

    Pipelines are long-lived so the remote circuit breaker keeps its statistics across
    sync cycles.
    """

    def __init__(
        self,
        options: RetryOptions,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self.options = options
        self._sleep = sleep
        self._clock = clock
        self._random = random_source

        if not options.enable_retries:
            log.info("Retries disabled; resilience pipelines execute operations once")
            self.remote_call = ResiliencePipeline.passthrough("remote-call")
            self.persistence_call = ResiliencePipeline.passthrough("persistence-call")
            self.reconciliation_call = ResiliencePipeline.passthrough("reconciliation-call")
            self.push_call = ResiliencePipeline.passthrough("push-call")
            return

        self.remote_call = self._build_remote_call()
        self.persistence_call = self._build(
            "persistence-call",
            RetryStrategy(
                max_retry_attempts=PERSISTENCE_MAX_RETRY_ATTEMPTS,
                base_delay_seconds=PERSISTENCE_BASE_DELAY_SECONDS,
                max_delay_seconds=PERSISTENCE_MAX_DELAY_SECONDS,
                jitter_factor=options.jitter_factor,
                should_retry=is_transient_persistence_error,
            ),
        )
        self.reconciliation_call = self._build(
            "reconciliation-call", self._entity_strategy(is_retryable_reconciliation_error)
        )
        self.push_call = self._build("push-call", self._entity_strategy(is_retryable_push_error))

    def _entity_strategy(self, should_retry: Callable[[Exception], bool]) -> RetryStrategy:
        options = self.options
        return RetryStrategy(
            max_retry_attempts=options.max_retry_attempts,
            base_delay_seconds=options.base_delay_seconds * 2,
            max_delay_seconds=options.max_delay_seconds,
            jitter_factor=options.jitter_factor,
            should_retry=should_retry,
        )

    def _build_remote_call(self) -> ResiliencePipeline:
        options = self.options
        if not options.circuit_breaker.enabled:
            return ResiliencePipeline.passthrough("remote-call")
        breaker = CircuitBreaker("remote-call", options.circuit_breaker, clock=self._clock)
        # no retries here: the strategy only tells the breaker which failures count
        return self._build(
            "remote-call",
            RetryStrategy(
                max_retry_attempts=0,
                base_delay_seconds=0.0,
                max_delay_seconds=0.0,
                should_retry=is_transient_remote_error,
            ),
            circuit_breaker=breaker,
        )

    def _build(
        self,
        name: str,
        retry: RetryStrategy,
        *,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> ResiliencePipeline:
        return ResiliencePipeline(
            name,
            retry=retry,
            circuit_breaker=circuit_breaker,
            sleep=self._sleep,
            clock=self._clock,
            random_source=self._random,
        )
