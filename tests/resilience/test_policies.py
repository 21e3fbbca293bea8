from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from todosync.config.resilience import CircuitBreakerOptions, RetryOptions
from todosync.domain.conflicts import ConflictInfo
from todosync.domain.errors import (
    ManualResolutionRequiredError,
    RemoteNotFoundError,
    RemotePayloadError,
    RemoteStatusError,
    RemoteTransportError,
    SyncError,
)
from todosync.domain.model import EntityKind
from todosync.resilience import (
    CircuitOpenError,
    ResiliencePolicies,
    ResilienceTimeoutError,
    is_retryable_push_error,
    is_retryable_reconciliation_error,
    is_transient_persistence_error,
    is_transient_remote_error,
)
from tests.helpers.clock import FakeMonotonic


def _conflict() -> ConflictInfo:
    return ConflictInfo(
        entity_kind=EntityKind.TODO_LIST,
        local_id="local",
        remote_id="remote",
        local_last_modified=None,
        remote_last_modified=None,
        last_synced_at=None,
    )


def _policies(options: RetryOptions) -> tuple[ResiliencePolicies, FakeMonotonic]:
    monotonic = FakeMonotonic()
    policies = ResiliencePolicies(
        options, sleep=monotonic.sleep, clock=monotonic, random_source=lambda: 0.5
    )
    return policies, monotonic


def test_remote_error_classification() -> None:
    assert is_transient_remote_error(RemoteTransportError("reset"))
    assert is_transient_remote_error(RemoteStatusError("busy", status_code=429))
    assert is_transient_remote_error(RemoteStatusError("boom", status_code=500))
    assert not is_transient_remote_error(RemoteNotFoundError("gone"))
    assert not is_transient_remote_error(RemoteStatusError("bad", status_code=400))
    assert not is_transient_remote_error(ValueError("unrelated"))


def test_persistence_error_classification() -> None:
    assert is_transient_persistence_error(TimeoutError())
    assert is_transient_persistence_error(
        OperationalError("SELECT 1", {}, Exception("database connection lost"))
    )
    assert is_transient_persistence_error(SyncError("lock wait timed out"))
    assert not is_transient_persistence_error(SyncError("constraint failed"))


def test_reconciliation_error_classification() -> None:
    assert is_retryable_reconciliation_error(RemoteTransportError("reset"))
    assert is_retryable_reconciliation_error(ResilienceTimeoutError("x", timeout_seconds=1, attempts=2))
    assert not is_retryable_reconciliation_error(
        RemoteStatusError("409 Conflict for PATCH /todolists/1", status_code=409)
    )
    assert not is_retryable_reconciliation_error(SyncError("version conflict on connection"))
    assert not is_retryable_reconciliation_error(
        ManualResolutionRequiredError("manual", conflict=_conflict())
    )
    assert not is_retryable_reconciliation_error(RemotePayloadError("garbage"))
    assert not is_retryable_reconciliation_error(CircuitOpenError("remote", retry_after=3))


def test_profiles_have_independent_backoff() -> None:
    policies, monotonic = _policies(RetryOptions(jitter_factor=0.0))
    attempts: list[str] = []

    def flaky() -> str:
        attempts.append("call")
        if len(attempts) == 1:
            raise RemoteTransportError("reset")
        return "done"

    assert policies.reconciliation_call.execute(flaky) == "done"
    assert monotonic.sleeps == [2.0]

    attempts.clear()
    monotonic.sleeps.clear()
    assert policies.push_call.execute(flaky) == "done"
    assert monotonic.sleeps == [2.0]

    attempts.clear()
    monotonic.sleeps.clear()

    def flaky_commit() -> str:
        attempts.append("call")
        if len(attempts) < 3:
            raise TimeoutError("database is locked: timeout")
        return "committed"

    assert policies.persistence_call.execute(flaky_commit) == "committed"
    assert monotonic.sleeps == [0.5, 1.0]


def test_persistence_profile_gives_up_after_two_retries() -> None:
    policies, _ = _policies(RetryOptions(jitter_factor=0.0))
    calls: list[int] = []

    def always_times_out() -> None:
        calls.append(1)
        raise TimeoutError("timeout")

    with pytest.raises(TimeoutError):
        policies.persistence_call.execute(always_times_out)

    assert len(calls) == 3


def test_global_switch_disables_every_profile() -> None:
    policies, monotonic = _policies(RetryOptions(enable_retries=False))

    for pipeline in (
        policies.remote_call,
        policies.persistence_call,
        policies.reconciliation_call,
        policies.push_call,
    ):
        calls: list[int] = []

        def failing(calls: list[int] = calls) -> None:
            calls.append(1)
            raise RemoteTransportError("reset")

        assert pipeline.is_passthrough
        with pytest.raises(RemoteTransportError):
            pipeline.execute(failing)
        assert calls == [1]

    assert monotonic.sleeps == []


def test_remote_profile_carries_circuit_breaker() -> None:
    policies, _ = _policies(RetryOptions())
    disabled, _ = _policies(RetryOptions(circuit_breaker=CircuitBreakerOptions(enabled=False)))

    assert policies.remote_call.circuit_breaker is not None
    assert policies.persistence_call.circuit_breaker is None
    assert disabled.remote_call.circuit_breaker is None


def test_push_never_retries_local_failures() -> None:
    assert is_retryable_push_error(RemoteTransportError("reset"))
    assert is_retryable_push_error(RemoteStatusError("busy", status_code=503))
    assert not is_retryable_push_error(
        OperationalError("COMMIT", None, Exception("connection reset"))
    )
    assert not is_retryable_push_error(TimeoutError("database is locked: timeout"))
    assert not is_retryable_push_error(SyncError("lock wait timed out"))
    assert not is_retryable_push_error(
        RemoteStatusError("409 Conflict for PATCH /todolists/1", status_code=409)
    )


def test_remote_profile_leaves_retries_to_the_transport() -> None:
    breaker_options = CircuitBreakerOptions(minimum_throughput=2, failure_ratio=0.5)
    policies, monotonic = _policies(
        RetryOptions(jitter_factor=0.0, circuit_breaker=breaker_options)
    )
    calls: list[int] = []

    def failing() -> None:
        calls.append(1)
        raise RemoteTransportError("reset")

    for _ in range(2):
        with pytest.raises(RemoteTransportError):
            policies.remote_call.execute(failing)
    with pytest.raises(CircuitOpenError):
        policies.remote_call.execute(failing)

    assert calls == [1, 1]
    assert monotonic.sleeps == []
