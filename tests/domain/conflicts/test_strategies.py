from __future__ import annotations

import pytest

from todosync.domain.conflicts import (
    ConflictInfo,
    LocalWinsStrategy,
    ManualResolutionStrategy,
    RemoteWinsStrategy,
    ResolutionStrategy,
    TodoListConflictResolver,
    build_strategy,
)
from todosync.domain.conflicts.strategies import format_timestamp
from todosync.domain.model import ConflictResolutionStrategy, EntityKind
from tests.helpers.todos import T, hours, make_list, remote_list


def _info() -> ConflictInfo:
    return ConflictInfo(
        entity_kind=EntityKind.TODO_LIST,
        local_id="local-1",
        remote_id="list-x",
        local_last_modified=T - hours(1),
        remote_last_modified=T - hours(0.5),
        last_synced_at=T - hours(3),
        modified_fields=["name"],
    )


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (ConflictResolutionStrategy.REMOTE_WINS, RemoteWinsStrategy),
        (ConflictResolutionStrategy.LOCAL_WINS, LocalWinsStrategy),
        (ConflictResolutionStrategy.MANUAL, ManualResolutionStrategy),
    ],
)
def test_build_strategy(kind: ConflictResolutionStrategy, expected: type[object]) -> None:
    strategy = build_strategy(kind)

    assert isinstance(strategy, expected)
    assert isinstance(strategy, ResolutionStrategy)
    assert strategy.kind is kind


def test_reasons_mention_both_timestamps() -> None:
    info = _info()

    remote_reason = RemoteWinsStrategy().resolution_reason(None, None, info)
    local_reason = LocalWinsStrategy().resolution_reason(None, None, info)

    for reason in (remote_reason, local_reason):
        assert "2025-03-01 11:00:00" in reason
        assert "2025-03-01 11:30:00" in reason


def test_format_timestamp_handles_unset_values() -> None:
    assert format_timestamp(None) == "never"
    assert format_timestamp(T) == "2025-03-01 12:00:00"


class KeepLongerName:
    """Field-level merge: the longer name wins."""

    kind = ConflictResolutionStrategy.REMOTE_WINS

    def should_apply_remote_changes(self, local: object, remote: object, info: ConflictInfo) -> bool:
        _ = info
        return len(remote.name) > len(local.name)  # type: ignore[attr-defined]

    def resolution_reason(self, local: object, remote: object, info: ConflictInfo) -> str:
        _ = local, remote, info
        return "Longer name kept."


def test_custom_strategy_plugs_into_resolver() -> None:
    resolver = TodoListConflictResolver(
        strategies={ConflictResolutionStrategy.REMOTE_WINS: KeepLongerName()},
        clock=lambda: T,
    )
    local = make_list("Weekly groceries", last_modified=T - hours(1))
    remote = remote_list("Food", updated_at=T - hours(0.5))

    info = resolver.resolve_conflict(local, remote)
    resolver.apply_resolution(local, remote, info)

    assert info.resolution_reason == "Longer name kept."
    assert local.name == "Weekly groceries"
    assert local.is_sync_pending
