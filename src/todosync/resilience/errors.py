"""Failures raised by the resilience pipelines themselves."""

from __future__ import annotations


class ResilienceError(RuntimeError):
    """Base class for errors produced by a resilience pipeline rather than the operation."""


class CircuitOpenError(ResilienceError):
    def __init__(self, name: str, *, retry_after: float) -> None:
        super().__init__(f"Circuit '{name}' is open; calls rejected for another {retry_after:.1f}s")
        self.name = name
        self.retry_after = retry_after


class ResilienceTimeoutError(ResilienceError):
    def __init__(self, name: str, *, timeout_seconds: float, attempts: int) -> None:
        super().__init__(
            f"Pipeline '{name}' gave up after {attempts} attempt(s): "
            f"timeout of {timeout_seconds:.1f}s exceeded"
        )
        self.name = name
        self.timeout_seconds = timeout_seconds
        self.attempts = attempts
