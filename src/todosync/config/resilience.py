"""Retry and circuit breaker options shared by every resilience profile."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_bool, env_float, env_int
from .errors import ConfigurationError

DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 30.0
DEFAULT_JITTER_FACTOR = 0.1
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True, frozen=True)
class CircuitBreakerOptions:
    enabled: bool = True
    failure_ratio: float = 0.5
    minimum_throughput: int = 10
    sampling_duration_seconds: float = 30.0
    break_duration_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not 0.0 < self.failure_ratio <= 1.0:
            raise ConfigurationError("Circuit breaker failure ratio must be in (0, 1]")
        if self.minimum_throughput < 1:
            raise ConfigurationError("Circuit breaker minimum throughput must be positive")


@dataclass(slots=True, frozen=True)
class RetryOptions:
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS
    jitter_factor: float = DEFAULT_JITTER_FACTOR
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    # Global switch: when off, every profile executes operations exactly once.
    enable_retries: bool = True
    circuit_breaker: CircuitBreakerOptions = field(default_factory=CircuitBreakerOptions)

    def __post_init__(self) -> None:
        if self.max_retry_attempts < 0:
            raise ConfigurationError("max_retry_attempts must be non-negative")
        if self.base_delay_seconds > self.max_delay_seconds:
            raise ConfigurationError("base_delay_seconds must not exceed max_delay_seconds")
        if not 0.0 <= self.jitter_factor <= 1.0:
            raise ConfigurationError("jitter_factor must be between 0 and 1")


def get_retry_options() -> RetryOptions:
    breaker = CircuitBreakerOptions(
        enabled=env_bool("TODOSYNC_CIRCUIT_BREAKER_ENABLED", True),
        failure_ratio=env_float("TODOSYNC_CIRCUIT_BREAKER_FAILURE_RATIO", 0.5),
        minimum_throughput=env_int("TODOSYNC_CIRCUIT_BREAKER_MIN_THROUGHPUT", 10, minimum=1),
        sampling_duration_seconds=env_float(
            "TODOSYNC_CIRCUIT_BREAKER_SAMPLING_SECONDS", 30.0, minimum=0.0
        ),
        break_duration_seconds=env_float(
            "TODOSYNC_CIRCUIT_BREAKER_BREAK_SECONDS", 30.0, minimum=0.0
        ),
    )
    return RetryOptions(
        max_retry_attempts=env_int(
            "TODOSYNC_RETRY_MAX_ATTEMPTS", DEFAULT_MAX_RETRY_ATTEMPTS, minimum=0
        ),
        base_delay_seconds=env_float(
            "TODOSYNC_RETRY_BASE_DELAY_SECONDS", DEFAULT_BASE_DELAY_SECONDS, minimum=0.0
        ),
        max_delay_seconds=env_float(
            "TODOSYNC_RETRY_MAX_DELAY_SECONDS", DEFAULT_MAX_DELAY_SECONDS, minimum=0.0
        ),
        jitter_factor=env_float("TODOSYNC_RETRY_JITTER_FACTOR", DEFAULT_JITTER_FACTOR),
        request_timeout_seconds=env_float(
            "TODOSYNC_RETRY_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS, minimum=0.0
        ),
        enable_retries=env_bool("TODOSYNC_RETRY_ENABLED", True),
        circuit_breaker=breaker,
    )
