from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from todosync.domain.errors import RemoteTransportError
from todosync.domain.model import ConflictResolutionStrategy, RemoteTodoItemUpdate
from tests.helpers.faults import failing_commits
from tests.helpers.todos import hours, remote_item

if TYPE_CHECKING:
    from collections.abc import Callable

    from todosync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork
    from todosync.domain.local_changes import LocalTodoService
    from todosync.domain.reconciliation import ReconciliationOrchestrator
    from todosync.resilience import ResiliencePolicies
    from tests.helpers.clock import FakeMonotonic, FrozenClock
    from tests.helpers.remote import FakeTodoRemote


def test_pull_creates_local_lists_and_advances_watermark(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    seeded = remote.seed_list("Groceries", [("Milk", False), ("Eggs", True)])

    report = orchestrator.pull()

    assert report.created == 1
    assert report.failed == 0
    stored = snapshot()["Groceries"]
    assert stored["external_id"] == seeded.id
    assert stored["pending"] is False
    assert stored["last_modified"] == seeded.updated_at
    assert stored["items"]["Eggs"]["completed"] is True
    assert orchestrator.tracker.get_last_sync_timestamp() == clock.now


def test_unchanged_pull_leaves_watermark_alone(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    clock: FrozenClock,
    caplog: pytest.LogCaptureFixture,
) -> None:
    remote.seed_list("Groceries", [("Milk", False)])
    orchestrator.pull()
    clock.advance(hours=1)
    caplog.clear()

    with caplog.at_level(logging.INFO):
        report = orchestrator.pull()

    assert report.unchanged == 1
    assert not report.changed_anything
    assert "Advanced sync watermark" not in caplog.text


def test_remote_rename_is_applied(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    seeded = remote.seed_list("Groceries")
    orchestrator.pull()
    remote.edit_list(seeded.id, name="Weekly shop", updated_at=clock.advance(hours=1))

    report = orchestrator.pull()

    assert report.changed_anything
    stored = snapshot()["Weekly shop"]
    assert stored["last_modified"] == clock.now
    assert stored["pending"] is False


def _conflicting_rename(
    local: LocalTodoService,
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    seeded = remote.seed_list("Groceries", updated_at=clock.now - hours(3))
    orchestrator.pull()
    clock.advance(hours=1)
    local.rename_list(snapshot()["Groceries"]["id"], "Local name")
    remote.edit_list(seeded.id, name="Remote name", updated_at=clock.advance(hours=1))
    clock.advance(hours=1)


def test_remote_wins_conflict(
    local: LocalTodoService,
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    orchestrator = make_orchestrator()
    _conflicting_rename(local, remote, orchestrator, snapshot, clock)

    report = orchestrator.pull()

    assert report.conflicts_resolved == 1
    stored = snapshot()["Remote name"]
    assert stored["pending"] is False
    assert stored["last_synced_at"] == clock.now


def test_local_wins_conflict_keeps_change_pending(
    local: LocalTodoService,
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    orchestrator = make_orchestrator(conflict_strategy=ConflictResolutionStrategy.LOCAL_WINS)
    _conflicting_rename(local, remote, orchestrator, snapshot, clock)

    report = orchestrator.pull()

    assert report.conflicts_resolved == 1
    assert snapshot()["Local name"]["pending"] is True

    orchestrator.push()
    assert [remote_list.name for remote_list in remote.lists.values()] == ["Local name"]


def test_manual_conflict_fails_the_list(
    local: LocalTodoService,
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    orchestrator = make_orchestrator(conflict_strategy=ConflictResolutionStrategy.MANUAL)
    _conflicting_rename(local, remote, orchestrator, snapshot, clock)

    report = orchestrator.pull()

    assert report.failed == 1
    assert report.failures[0].fatal is True
    assert "Manual conflict resolution required" in report.failures[0].error
    stored = snapshot()["Local name"]
    assert stored["pending"] is True


def test_manual_item_conflict_fails_only_the_item(
    local: LocalTodoService,
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    orchestrator = make_orchestrator(conflict_strategy=ConflictResolutionStrategy.MANUAL)
    seeded = remote.seed_list(
        "Groceries", [("Milk", False), ("Eggs", False)], updated_at=clock.now - hours(3)
    )
    orchestrator.pull()
    milk = seeded.items[0]
    clock.advance(hours=1)
    local.update_item(snapshot()["Groceries"]["items"]["Milk"]["id"], description="Oat milk")
    clock.advance(hours=1)
    remote.update_todo_item(
        seeded.id, milk.id, RemoteTodoItemUpdate(description="Soy milk", completed=False)
    )
    clock.advance(hours=1)

    report = orchestrator.pull()

    assert report.failed == 1
    assert report.failures[0].fatal is True
    stored = snapshot()["Groceries"]
    assert stored["last_synced_at"] == clock.now
    assert stored["items"]["Oat milk"]["pending"] is True
    assert stored["items"]["Eggs"]["pending"] is False


def test_lists_missing_from_full_fetch_are_tombstoned_and_restored(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    seeded = remote.seed_list("Groceries", [("Milk", False), ("Eggs", False)])
    orchestrator.pull()
    removed = remote.lists.pop(seeded.id)
    clock.advance(hours=1)

    report = orchestrator.pull()

    assert report.deleted == 1
    stored = snapshot()["Groceries"]
    assert stored["deleted"] is True
    assert stored["pending"] is False
    assert all(item["deleted"] for item in stored["items"].values())

    remote.lists[seeded.id] = removed
    clock.advance(hours=1)
    report = orchestrator.pull()

    assert report.restored == 1
    stored = snapshot()["Groceries"]
    assert stored["deleted"] is False
    assert not any(item["deleted"] for item in stored["items"].values())
    assert len(snapshot()) == 1


def test_items_missing_remotely_are_tombstoned(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
) -> None:
    seeded = remote.seed_list("Groceries", [("Milk", False), ("Eggs", False)])
    orchestrator.pull()
    remote.lists[seeded.id] = replace(seeded, items=seeded.items[:1])

    report = orchestrator.pull()

    assert report.deleted == 1
    items = snapshot()["Groceries"]["items"]
    assert items["Eggs"]["deleted"] is True
    assert items["Milk"]["deleted"] is False


def test_new_remote_items_are_added_to_existing_lists(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    seeded = remote.seed_list("Groceries", [("Milk", False)])
    orchestrator.pull()
    bread = remote_item("Bread", item_id="item-bread", updated_at=clock.now)
    remote.lists[seeded.id] = replace(seeded, items=(*seeded.items, bread))

    report = orchestrator.pull()

    assert report.updated == 1
    assert set(snapshot()["Groceries"]["items"]) == {"Milk", "Bread"}


def test_delta_pull_fetches_only_recent_lists(
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    snapshot: Callable,
    clock: FrozenClock,
) -> None:
    orchestrator = make_orchestrator(delta_sync=True)
    first = remote.seed_list("Groceries")
    orchestrator.pull()
    assert remote.calls[-1] == ("list_todo_lists",)

    del remote.lists[first.id]
    clock.advance(hours=1)
    remote.seed_list("Chores")
    report = orchestrator.pull()

    assert remote.calls[-1][0] == "list_todo_lists_modified_since"
    assert report.created == 1
    assert report.deleted == 0
    assert snapshot()["Groceries"]["deleted"] is False


def test_fetch_failure_propagates(
    remote: FakeTodoRemote,
    orchestrator: ReconciliationOrchestrator,
) -> None:
    remote.failures["list_todo_lists"] = [RemoteTransportError("connection refused")]

    with pytest.raises(RemoteTransportError):
        orchestrator.pull()


def test_transient_commit_failure_is_retried_during_pull(
    remote: FakeTodoRemote,
    make_orchestrator: Callable[..., ReconciliationOrchestrator],
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    retrying_policies: tuple[ResiliencePolicies, FakeMonotonic],
    snapshot: Callable,
) -> None:
    policies, monotonic = retrying_policies
    failures: list[Exception] = [OperationalError("COMMIT", None, Exception("connection reset"))]
    orchestrator = make_orchestrator(
        policies=policies,
        unit_of_work_factory=failing_commits(sqlite_unit_of_work, failures),
    )
    remote.seed_list("Chores", [("Dishes", False)])

    report = orchestrator.pull()

    assert report.created == 1
    assert report.failed == 0
    assert monotonic.sleeps == [0.5]
    assert len(snapshot()) == 1
