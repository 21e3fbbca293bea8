"""Pull phase: bring remote lists into the local store."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.domain.errors import ManualResolutionRequiredError, RemotePayloadError
from todosync.domain.model import TodoItem, TodoList

from .context import ENTITY_FAILURES
from .results import EntityFailure, PhaseReport, SyncResult

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime

    from todosync.domain.model import RemoteTodoItem, RemoteTodoList
    from todosync.domain.ports.unit_of_work import SyncRepositories
    from todosync.domain.sync_state import SyncStateTracker

    from .context import CycleControl, ReconciliationContext

log = getLogger(__name__)


@dataclass(slots=True)
class _ListPull:
    result: SyncResult
    deleted: int = 0
    restored: int = 0
    failures: list[EntityFailure] = field(default_factory=list)


@dataclass(slots=True)
class _ItemsPull:
    changed: int = 0
    deleted: int = 0
    failures: list[EntityFailure] = field(default_factory=list)


class PullPhase:
    def __init__(
        self,
        context: ReconciliationContext,
        tracker: SyncStateTracker,
        *,
        delta_sync: bool = False,
    ) -> None:
        self._ctx = context
        self._tracker = tracker
        self._delta_sync = delta_sync

    def watermark(self) -> datetime | None:
        """Lower bound for a delta fetch, or None when a full fetch is due."""
        return self._tracker.get_last_sync_timestamp() if self._delta_sync else None

    def run(self, control: CycleControl, since: datetime | None = None) -> PhaseReport:
        report = PhaseReport(phase="pull")
        remote_lists = self._fetch(since)
        log.info(
            "Pull phase started: %s remote list(s) (%s)",
            len(remote_lists),
            f"modified since {since.isoformat()}" if since else "full fetch",
        )

        for remote_list in remote_lists:
            if control.should_stop():
                report.cancelled = True
                break
            try:
                outcome = self._ctx.policies.reconciliation_call.execute(
                    lambda remote_list=remote_list: self._ctx.policies.persistence_call.execute(
                        lambda: self._pull_list(remote_list)
                    )
                )
            except RemotePayloadError:
                raise
            except ManualResolutionRequiredError as exc:
                log.error("Remote list %s needs manual resolution: %s", remote_list.id, exc)  # noqa: TRY400
                report.record_failure(remote_list.id, exc, fatal=True)
            except ENTITY_FAILURES as exc:
                log.error("Failed to pull remote list %s: %s", remote_list.id, exc)  # noqa: TRY400
                report.record_failure(remote_list.id, exc, fatal=False)
            else:
                report.record(outcome.result)
                report.deleted += outcome.deleted
                report.restored += outcome.restored
                report.failures.extend(outcome.failures)

        # absence from a delta fetch says nothing about deletion
        if since is None and not report.cancelled:
            active_ids = {remote_list.id for remote_list in remote_lists}
            report.deleted += self._ctx.policies.persistence_call.execute(
                lambda: self._tombstone_orphaned_lists(active_ids)
            )

        if report.changed_anything:
            self._tracker.update_last_sync_timestamp(self._ctx.clock())

        log.info("Pull phase finished: %s", report.summary())
        return report

    def _fetch(self, since: datetime | None) -> list[RemoteTodoList]:
        if since is None:
            return self._ctx.remote.list_todo_lists()
        return self._ctx.remote.list_todo_lists_modified_since(since)

    def _pull_list(self, remote_list: RemoteTodoList) -> _ListPull:
        now = self._ctx.clock()
        with self._ctx.unit_of_work_factory() as uow:
            repositories = uow.repositories
            local = repositories.todo_lists.get_by_external_id(remote_list.id)
            if local is None:
                local = _new_local_list(remote_list, now)
                repositories.todo_lists.add(local)
                log.info(
                    "Created local list %s from remote list %s with %s item(s)",
                    local.id,
                    remote_list.id,
                    len(local.items),
                )
                outcome = _ListPull(result=SyncResult.created())
            elif local.is_deleted:
                outcome = self._restore(repositories, local, remote_list, now)
            else:
                outcome = self._reconcile(repositories, local, remote_list, now)
            uow.commit()
        return outcome

    def _restore(
        self,
        repositories: SyncRepositories,
        local: TodoList,
        remote_list: RemoteTodoList,
        now: datetime,
    ) -> _ListPull:
        local.restore()
        local.name = remote_list.name
        local.last_modified = remote_list.updated_at
        local.mark_synced(now)

        for remote_item in remote_list.items:
            item = local.item_by_external_id(remote_item.id)
            if item is None:
                local.add_item(_new_local_item(remote_item, now))
                continue
            item.restore()
            _copy_remote_item(item, remote_item, now)

        deleted = self._tombstone_orphaned_items(repositories, local, remote_list.item_ids(), now)
        log.info("Restored list %s from remote list %s", local.id, remote_list.id)
        return _ListPull(result=SyncResult.updated(), deleted=deleted, restored=1)

    def _reconcile(
        self,
        repositories: SyncRepositories,
        local: TodoList,
        remote_list: RemoteTodoList,
        now: datetime,
    ) -> _ListPull:
        resolver = self._ctx.list_resolver
        info = resolver.resolve_conflict(local, remote_list)
        changed = bool(info.modified_fields) and resolver.remote_changes_apply(
            local, remote_list, info
        )
        resolver.apply_resolution(local, remote_list, info, at=now)

        items = self._reconcile_items(local, remote_list, now)
        items.deleted += self._tombstone_orphaned_items(
            repositories, local, remote_list.item_ids(), now
        )

        if info.conflict_resolved:
            result = SyncResult.conflict_resolved(info.resolution_reason)
        elif changed or items.changed or items.deleted:
            result = SyncResult.updated()
        else:
            result = SyncResult.unchanged()
        return _ListPull(result=result, deleted=items.deleted, failures=items.failures)

    def _reconcile_items(
        self, local: TodoList, remote_list: RemoteTodoList, now: datetime
    ) -> _ItemsPull:
        resolver = self._ctx.item_resolver
        outcome = _ItemsPull()
        for remote_item in remote_list.items:
            item = local.item_by_external_id(remote_item.id)
            if item is None:
                local.add_item(_new_local_item(remote_item, now))
                outcome.changed += 1
                continue
            if item.is_deleted:
                if item.is_sync_pending:
                    # local deletion not pushed yet
                    continue
                item.restore()
                _copy_remote_item(item, remote_item, now)
                outcome.changed += 1
                continue

            try:
                info = resolver.resolve_conflict(item, remote_item)
            except ManualResolutionRequiredError as exc:
                log.error("Item %s of list %s needs manual resolution", item.id, local.id)  # noqa: TRY400
                outcome.failures.append(EntityFailure(entity_id=item.id, error=str(exc), fatal=True))
                continue
            if info.modified_fields and resolver.remote_changes_apply(item, remote_item, info):
                outcome.changed += 1
            resolver.apply_resolution(item, remote_item, info, at=now)
        return outcome

    def _tombstone_orphaned_items(
        self,
        repositories: SyncRepositories,
        local: TodoList,
        active_ids: Collection[str],
        now: datetime,
    ) -> int:
        orphans = repositories.todo_items.orphaned(active_ids, todo_list_id=local.id)
        for item in orphans:
            item.soft_delete(now, pending=False)
            item.stamp_synced(now)
            log.info(
                "Item %s (External: %s) no longer exists remotely; soft-deleted locally",
                item.id,
                item.external_id,
            )
        return len(orphans)

    def _tombstone_orphaned_lists(self, active_ids: Collection[str]) -> int:
        now = self._ctx.clock()
        with self._ctx.unit_of_work_factory() as uow:
            orphans = uow.repositories.todo_lists.orphaned(active_ids)
            for todo_list in orphans:
                items_deleted = todo_list.soft_delete_with_items(now, pending=False)
                todo_list.stamp_synced(now)
                for item in todo_list.items:
                    item.stamp_synced(now)
                log.info(
                    "List %s (External: %s) no longer exists remotely; soft-deleted with %s "
                    "item(s)",
                    todo_list.id,
                    todo_list.external_id,
                    items_deleted,
                )
            uow.commit()
        return len(orphans)


def _new_local_item(remote_item: RemoteTodoItem, now: datetime) -> TodoItem:
    return TodoItem(
        description=remote_item.description,
        is_completed=remote_item.completed,
        external_id=remote_item.id,
        last_modified=remote_item.updated_at,
        last_synced_at=now,
    )


def _new_local_list(remote_list: RemoteTodoList, now: datetime) -> TodoList:
    todo_list = TodoList(
        name=remote_list.name,
        external_id=remote_list.id,
        last_modified=remote_list.updated_at,
        last_synced_at=now,
    )
    for remote_item in remote_list.items:
        todo_list.add_item(_new_local_item(remote_item, now))
    return todo_list


def _copy_remote_item(item: TodoItem, remote_item: RemoteTodoItem, now: datetime) -> None:
    item.description = remote_item.description
    item.is_completed = remote_item.completed
    item.last_modified = remote_item.updated_at
    item.mark_synced(now)
