"""Bidirectional reconciliation between the local store and the remote todo service."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.config.resilience import RetryOptions
from todosync.config.sync import SyncConfig
from todosync.domain.clock import utcnow
from todosync.domain.conflicts import TodoItemConflictResolver, TodoListConflictResolver
from todosync.domain.model import SyncOrder
from todosync.domain.sync_state import SyncStateTracker
from todosync.resilience import ResiliencePolicies

from .context import CycleControl, ReconciliationContext
from .pull import PullPhase
from .push import PushPhase
from .results import CycleReport

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.domain.clock import Clock
    from todosync.domain.ports.remote import TodoRemote
    from todosync.domain.ports.unit_of_work import SyncUnitOfWork

    from .context import CancellationSignal
    from .results import PhaseReport

log = getLogger(__name__)


class ReconciliationOrchestrator:
    """Runs push and pull phases over every list, one list per transaction.

    A failing list is logged and counted without stopping the batch. A failure of the
    remote list call itself, or a malformed remote payload, aborts the phase and
    propagates to the caller.
    """

    def __init__(
        self,
        *,
        remote: TodoRemote,
        unit_of_work_factory: Callable[[], SyncUnitOfWork],
        policies: ResiliencePolicies | None = None,
        config: SyncConfig | None = None,
        clock: Clock = utcnow,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SyncConfig()
        self.policies = policies or ResiliencePolicies(RetryOptions())
        self._monotonic = monotonic
        self._clock = clock
        self.tracker = SyncStateTracker(
            unit_of_work_factory, persistence=self.policies.persistence_call
        )
        context = ReconciliationContext(
            remote=remote,
            unit_of_work_factory=unit_of_work_factory,
            policies=self.policies,
            list_resolver=TodoListConflictResolver(
                default_strategy=self.config.conflict_strategy, clock=clock
            ),
            item_resolver=TodoItemConflictResolver(
                default_strategy=self.config.conflict_strategy, clock=clock
            ),
            clock=clock,
        )
        self._push_phase = PushPhase(context)
        self._pull_phase = PullPhase(context, self.tracker, delta_sync=self.config.delta_sync)

    def push(self, cancel_event: CancellationSignal | None = None) -> PhaseReport:
        return self._push_phase.run(self._control(cancel_event))

    def pull(self, cancel_event: CancellationSignal | None = None) -> PhaseReport:
        return self._pull_phase.run(
            self._control(cancel_event), since=self._pull_phase.watermark()
        )

    def run_full_cycle(self, cancel_event: CancellationSignal | None = None) -> CycleReport:
        control = self._control(cancel_event)
        report = CycleReport(started_at=self._clock())
        # read before pushing: push stamps last_synced_at on every list it sends
        since = self._pull_phase.watermark()
        log.info(
            "Starting full sync cycle: order=%s, strategy=%s, delta=%s",
            self.config.order,
            self.config.conflict_strategy,
            self.config.delta_sync,
        )

        if self.config.order is SyncOrder.PULL_FIRST:
            report.pull = self._pull_phase.run(control, since=since)
            if not report.pull.cancelled:
                report.push = self._push_phase.run(control)
        else:
            report.push = self._push_phase.run(control)
            if not report.push.cancelled:
                report.pull = self._pull_phase.run(control, since=since)

        report.finished_at = self._clock()
        log.info(
            "Finished full sync cycle: failed=%s, cancelled=%s",
            report.failed,
            report.cancelled,
        )
        return report

    def _control(self, cancel_event: CancellationSignal | None) -> CycleControl:
        return CycleControl.with_budget(
            cancel_event, self.config.max_duration_seconds, monotonic=self._monotonic
        )
