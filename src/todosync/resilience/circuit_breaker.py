"""Failure-ratio circuit breaker."""

from __future__ import annotations

import time
from collections import deque
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import CircuitOpenError

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.config.resilience import CircuitBreakerOptions

log = getLogger(__name__)


class CircuitState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreaker:
    """Open when the failure ratio inside the sampling window crosses the threshold.

    The ratio is only evaluated once ``minimum_throughput`` calls were sampled. After
    ``break_duration_seconds`` the breaker half-opens and lets exactly one trial call
    through: success closes it, failure opens it again.
    """

    def __init__(
        self,
        name: str,
        options: CircuitBreakerOptions,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._options = options
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._trial_in_flight = False
        self._samples: deque[tuple[float, bool]] = deque()

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self._break_elapsed():
            self._transition(CircuitState.HALF_OPEN)
        return self._state

    def before_call(self) -> None:
        state = self.state
        if state is CircuitState.OPEN:
            raise CircuitOpenError(self.name, retry_after=self._remaining_break())
        if state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError(self.name, retry_after=0.0)
            self._trial_in_flight = True

    def record_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            self._transition(CircuitState.CLOSED)
            return
        self._sample(failed=False)

    def record_failure(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            self._open()
            return
        self._sample(failed=True)
        total = len(self._samples)
        if total < self._options.minimum_throughput:
            return
        failures = sum(1 for _, failed in self._samples if failed)
        if failures / total >= self._options.failure_ratio:
            self._open()

    def _sample(self, *, failed: bool) -> None:
        now = self._clock()
        self._samples.append((now, failed))
        horizon = now - self._options.sampling_duration_seconds
        while self._samples and self._samples[0][0] < horizon:
            self._samples.popleft()

    def _open(self) -> None:
        self._opened_at = self._clock()
        self._transition(CircuitState.OPEN)

    def _break_elapsed(self) -> bool:
        return self._clock() - self._opened_at >= self._options.break_duration_seconds

    def _remaining_break(self) -> float:
        return max(0.0, self._options.break_duration_seconds - (self._clock() - self._opened_at))

    def _transition(self, state: CircuitState) -> None:
        previous, self._state = self._state, state
        if state is CircuitState.OPEN:
            log.warning(
                "Circuit '%s' opened for %.0fs due to high failure rate (was %s)",
                self.name,
                self._options.break_duration_seconds,
                previous,
            )
        elif state is CircuitState.HALF_OPEN:
            log.info("Circuit '%s' half-open; allowing a trial call", self.name)
        else:
            self._samples.clear()
            log.info("Circuit '%s' closed; traffic resumes", self.name)
