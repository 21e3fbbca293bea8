"""Retry, timeout and circuit breaker pipelines."""

from __future__ import annotations

from .circuit_breaker import CircuitBreaker, CircuitState
from .errors import CircuitOpenError, ResilienceError, ResilienceTimeoutError
from .pipeline import ResiliencePipeline, RetryStrategy
from .policies import (
    ResiliencePolicies,
    is_retryable_push_error,
    is_retryable_reconciliation_error,
    is_transient_persistence_error,
    is_transient_remote_error,
)

__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "ResilienceError",
    "ResiliencePipeline",
    "ResiliencePolicies",
    "ResilienceTimeoutError",
    "RetryStrategy",
    "is_retryable_push_error",
    "is_retryable_reconciliation_error",
    "is_transient_persistence_error",
    "is_transient_remote_error",
]
