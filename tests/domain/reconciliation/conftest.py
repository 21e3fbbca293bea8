from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select

from todosync.config.resilience import RetryOptions
from todosync.config.sync import SyncConfig
from todosync.domain.local_changes import LocalTodoService
from todosync.domain.model import TodoList
from todosync.domain.reconciliation import ReconciliationOrchestrator
from todosync.resilience import ResiliencePolicies
from tests.helpers.clock import FakeMonotonic
from tests.helpers.remote import FakeTodoRemote

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork
    from tests.helpers.clock import FrozenClock

    UnitOfWorkFactory = Callable[[], SqlAlchemySyncUnitOfWork]


@pytest.fixture
def remote(clock: FrozenClock) -> FakeTodoRemote:
    return FakeTodoRemote(clock)


@pytest.fixture
def local(
    sqlite_unit_of_work: UnitOfWorkFactory, clock: FrozenClock
) -> LocalTodoService:
    return LocalTodoService(sqlite_unit_of_work, clock=clock)


@pytest.fixture
def make_orchestrator(
    remote: FakeTodoRemote,
    sqlite_unit_of_work: UnitOfWorkFactory,
    clock: FrozenClock,
) -> Callable[..., ReconciliationOrchestrator]:
    def factory(
        *,
        monotonic: Callable[[], float] = time.monotonic,
        policies: ResiliencePolicies | None = None,
        unit_of_work_factory: UnitOfWorkFactory | None = None,
        **config: Any,
    ) -> ReconciliationOrchestrator:
        config.setdefault("max_duration_seconds", None)
        return ReconciliationOrchestrator(
            remote=remote,
            unit_of_work_factory=unit_of_work_factory or sqlite_unit_of_work,
            policies=policies or ResiliencePolicies(RetryOptions(enable_retries=False)),
            config=SyncConfig(**config),
            clock=clock,
            monotonic=monotonic,
        )

    return factory


@pytest.fixture
def orchestrator(
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
) -> ReconciliationOrchestrator:
    return make_orchestrator()


class LocalSnapshot:
    """Plain copies of the stored lists, readable after the session is gone."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        with unit_of_work_factory() as uow:
            lists = uow.session.scalars(select(TodoList)).all()
            self.lists = {todo_list.name: _list_state(todo_list) for todo_list in lists}

    def __getitem__(self, name: str) -> dict[str, Any]:
        return self.lists[name]

    def __len__(self) -> int:
        return len(self.lists)


def _list_state(todo_list: TodoList) -> dict[str, Any]:
    return {
        "id": todo_list.id,
        "external_id": todo_list.external_id,
        "pending": todo_list.is_sync_pending,
        "deleted": todo_list.is_deleted,
        "last_modified": todo_list.last_modified,
        "last_synced_at": todo_list.last_synced_at,
        "items": {
            item.description: {
                "id": item.id,
                "external_id": item.external_id,
                "completed": item.is_completed,
                "pending": item.is_sync_pending,
                "deleted": item.is_deleted,
                "last_modified": item.last_modified,
            }
            for item in todo_list.items
        },
    }


@pytest.fixture
def snapshot(sqlite_unit_of_work: UnitOfWorkFactory) -> Callable[[], LocalSnapshot]:
    return lambda: LocalSnapshot(sqlite_unit_of_work)


@pytest.fixture
def retrying_policies() -> tuple[ResiliencePolicies, FakeMonotonic]:
    monotonic = FakeMonotonic()
    policies = ResiliencePolicies(
        RetryOptions(jitter_factor=0.0), sleep=monotonic.sleep, clock=monotonic
    )
    return policies, monotonic

