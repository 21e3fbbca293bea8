"""Shared collaborators and stop conditions for the reconciliation phases."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from sqlalchemy.exc import SQLAlchemyError

from todosync.domain.errors import SyncError
from todosync.resilience import ResilienceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.domain.clock import Clock
    from todosync.domain.conflicts import TodoItemConflictResolver, TodoListConflictResolver
    from todosync.domain.ports.remote import TodoRemote
    from todosync.domain.ports.unit_of_work import SyncUnitOfWork
    from todosync.resilience import ResiliencePolicies

log = getLogger(__name__)

# Failures that cost a single entity; anything else aborts the phase.
ENTITY_FAILURES: tuple[type[Exception], ...] = (SyncError, ResilienceError, SQLAlchemyError)


class CancellationSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass(slots=True)
class CycleControl:
    """Decides, between two lists, whether the cycle may start the next one."""

    cancel_event: CancellationSignal | None = None
    deadline: float | None = None
    monotonic: Callable[[], float] = field(default=time.monotonic)

    @classmethod
    def with_budget(
        cls,
        cancel_event: CancellationSignal | None,
        max_duration_seconds: float | None,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> CycleControl:
        deadline = monotonic() + max_duration_seconds if max_duration_seconds else None
        return cls(cancel_event=cancel_event, deadline=deadline, monotonic=monotonic)

    def should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            log.warning("Cancellation requested; not starting further lists")
            return True
        if self.deadline is not None and self.monotonic() >= self.deadline:
            log.warning("Maximum sync duration exceeded; not starting further lists")
            return True
        return False


@dataclass(slots=True, kw_only=True)
class ReconciliationContext:
    remote: TodoRemote
    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    policies: ResiliencePolicies
    list_resolver: TodoListConflictResolver
    item_resolver: TodoItemConflictResolver
    clock: Clock
