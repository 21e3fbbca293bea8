"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.adapters.remote import HttpTodoRemote
from todosync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork, is_started, startup
from todosync.config import get_remote_api_config, get_retry_options, get_sync_config
from todosync.domain.ports.unit_of_work import SyncUnitOfWork
from todosync.domain.reconciliation import ReconciliationOrchestrator
from todosync.domain.sync_state import SyncStateTracker
from todosync.resilience import ResiliencePolicies

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from todosync.config import SyncConfig
    from todosync.domain.ports.remote import TodoRemote
    from todosync.domain.reconciliation import CycleReport, PhaseReport
    from todosync.domain.reconciliation.context import CancellationSignal

UnitOfWorkFactory = Callable[[], SyncUnitOfWork]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncStatus:
    pending_changes: int
    last_synced_at: datetime | None
    earliest_modified_at: datetime | None
    delta_sync_available: bool


def _resolve_unit_of_work_factory(
    unit_of_work_factory: UnitOfWorkFactory | None,
) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemySyncUnitOfWork


@contextmanager
def _orchestrator(
    *,
    remote: TodoRemote | None,
    unit_of_work_factory: UnitOfWorkFactory | None,
    config: SyncConfig | None,
) -> Iterator[ReconciliationOrchestrator]:
    effective_uow = _resolve_unit_of_work_factory(unit_of_work_factory)
    effective_config = config or get_sync_config()
    retry_options = get_retry_options()
    policies = ResiliencePolicies(retry_options)

    if remote is not None:
        yield ReconciliationOrchestrator(
            remote=remote,
            unit_of_work_factory=effective_uow,
            policies=policies,
            config=effective_config,
        )
        return

    with HttpTodoRemote(
        config=get_remote_api_config(retry_options), pipeline=policies.remote_call
    ) as http_remote:
        yield ReconciliationOrchestrator(
            remote=http_remote,
            unit_of_work_factory=effective_uow,
            policies=policies,
            config=effective_config,
        )


def run_sync_cycle(
    *,
    cancel_event: CancellationSignal | None = None,
    remote: TodoRemote | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> CycleReport:
    """Run one push and one pull against the configured remote todo service."""

    with _orchestrator(
        remote=remote, unit_of_work_factory=unit_of_work_factory, config=config
    ) as orchestrator:
        report = orchestrator.run_full_cycle(cancel_event)

    log.info(
        f"Finished sync: push=({report.push.summary() if report.push else 'skipped'}), "
        f"pull=({report.pull.summary() if report.pull else 'skipped'})"
    )
    return report


def push_local_changes(
    *,
    cancel_event: CancellationSignal | None = None,
    remote: TodoRemote | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> PhaseReport:
    with _orchestrator(
        remote=remote, unit_of_work_factory=unit_of_work_factory, config=config
    ) as orchestrator:
        return orchestrator.push(cancel_event)


def pull_remote_changes(
    *,
    cancel_event: CancellationSignal | None = None,
    remote: TodoRemote | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> PhaseReport:
    with _orchestrator(
        remote=remote, unit_of_work_factory=unit_of_work_factory, config=config
    ) as orchestrator:
        return orchestrator.pull(cancel_event)


def sync_status(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> SyncStatus:
    tracker = SyncStateTracker(_resolve_unit_of_work_factory(unit_of_work_factory))
    return SyncStatus(
        pending_changes=tracker.get_pending_changes_count(),
        last_synced_at=tracker.get_last_sync_timestamp(),
        earliest_modified_at=tracker.get_earliest_last_modified(),
        delta_sync_available=tracker.is_delta_sync_available(),
    )
