"""Push phase: send pending local changes to the remote service."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.domain.errors import (
    ManualResolutionRequiredError,
    RemoteNotFoundError,
    RemotePayloadError,
)
from todosync.domain.model import (
    NewRemoteTodoItem,
    NewRemoteTodoList,
    RemoteTodoItemUpdate,
    RemoteTodoListUpdate,
)

from .context import ENTITY_FAILURES
from .results import PhaseReport, SyncResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from todosync.domain.model import RemoteTodoItem, TodoItem, TodoList

    from .context import CycleControl, ReconciliationContext

log = getLogger(__name__)


@dataclass(slots=True)
class _ListPush:
    result: SyncResult = field(default_factory=SyncResult.unchanged)
    deleted: int = 0
    skipped: int = 0


class PushPhase:
    def __init__(self, context: ReconciliationContext) -> None:
        self._ctx = context

    def run(self, control: CycleControl) -> PhaseReport:
        report = PhaseReport(phase="push")
        list_ids = self._pending_list_ids()
        log.info("Push phase started: %s list(s) with pending changes", len(list_ids))

        for list_id in list_ids:
            if control.should_stop():
                report.cancelled = True
                break
            try:
                outcome = self._ctx.policies.push_call.execute(
                    lambda list_id=list_id: self._push_list(list_id)
                )
            except RemotePayloadError:
                raise
            except ManualResolutionRequiredError as exc:
                log.error("Push of list %s needs manual resolution: %s", list_id, exc)  # noqa: TRY400
                report.record_failure(list_id, exc, fatal=True)
            except ENTITY_FAILURES as exc:
                log.error("Failed to push list %s: %s", list_id, exc)  # noqa: TRY400
                report.record_failure(list_id, exc, fatal=False)
            else:
                report.record(outcome.result)
                report.deleted += outcome.deleted
                report.skipped += outcome.skipped

        log.info("Push phase finished: %s", report.summary())
        return report

    def _pending_list_ids(self) -> list[UUID]:
        with self._ctx.unit_of_work_factory() as uow:
            return [todo_list.id for todo_list in uow.repositories.todo_lists.pending()]

    def _push_list(self, list_id: UUID) -> _ListPush:
        now = self._ctx.clock()
        with self._ctx.unit_of_work_factory() as uow:
            todo_list = uow.repositories.todo_lists.get(list_id)
            if todo_list is None:
                log.warning("List %s vanished before it could be pushed", list_id)
                return _ListPush(skipped=1)

            if todo_list.is_deleted:
                outcome = self._push_deletion(todo_list, now)
            elif todo_list.external_id is None:
                outcome = self._push_creation(todo_list, now)
            else:
                outcome = self._push_changes(todo_list, todo_list.external_id, now)
            uow.commit()
        return outcome

    def _push_deletion(self, todo_list: TodoList, now: datetime) -> _ListPush:
        deleted = 0
        if todo_list.external_id is not None:
            try:
                self._ctx.remote.delete_todo_list(todo_list.external_id)
            except RemoteNotFoundError:
                log.info(
                    "List %s (External: %s) was already deleted remotely",
                    todo_list.id,
                    todo_list.external_id,
                )
            deleted = 1
            log.info("Deleted list %s (External: %s) remotely", todo_list.id, todo_list.external_id)

        for item in todo_list.items:
            if not item.is_deleted:
                item.soft_delete(now, pending=False)
            item.mark_synced(now)
        todo_list.mark_synced(now)
        return _ListPush(deleted=deleted)

    def _push_creation(self, todo_list: TodoList, now: datetime) -> _ListPush:
        source_id = self._ctx.remote.source_id
        local_items = list(todo_list.active_items())
        request = NewRemoteTodoList(
            source_id=source_id,
            name=todo_list.name,
            items=tuple(
                NewRemoteTodoItem(
                    source_id=source_id,
                    description=item.description,
                    completed=item.is_completed,
                )
                for item in local_items
            ),
        )
        created = self._ctx.remote.create_todo_list(request)

        todo_list.external_id = created.id
        todo_list.last_modified = created.updated_at
        todo_list.mark_synced(now)

        for item, remote_item in _match_created_items(local_items, created.items):
            if remote_item is None:
                log.warning(
                    "No remote item matched local item %s ('%s') of list %s; left pending",
                    item.id,
                    item.description,
                    todo_list.id,
                )
                continue
            item.external_id = remote_item.id
            item.last_modified = remote_item.updated_at
            item.mark_synced(now)

        # deleted before the list ever reached the remote side
        for item in todo_list.items:
            if item.is_deleted:
                item.mark_synced(now)

        log.info(
            "Created list %s remotely as %s with %s item(s)",
            todo_list.id,
            created.id,
            len(created.items),
        )
        return _ListPush(result=SyncResult.created())

    def _push_changes(self, todo_list: TodoList, external_id: str, now: datetime) -> _ListPush:
        remote = self._ctx.remote
        outcome = _ListPush()
        calls = 0

        if todo_list.is_sync_pending:
            try:
                updated = remote.update_todo_list(
                    external_id, RemoteTodoListUpdate(name=todo_list.name)
                )
            except RemoteNotFoundError:
                log.warning(
                    "List %s (External: %s) no longer exists remotely; soft-deleting locally",
                    todo_list.id,
                    external_id,
                )
                todo_list.soft_delete_with_items(now, pending=False)
                for item in todo_list.items:
                    item.mark_synced(now)
                todo_list.mark_synced(now)
                return _ListPush(deleted=1)
            todo_list.last_modified = updated.updated_at
            calls += 1

        for item in list(todo_list.pending_items()):
            if item.is_deleted:
                if item.external_id is not None:
                    self._delete_item(external_id, item, item.external_id)
                    calls += 1
                    outcome.deleted += 1
                item.mark_synced(now)
            elif item.external_id is None:
                log.warning(
                    "Item %s of list %s cannot be pushed: the remote API only creates items "
                    "together with a new list",
                    item.id,
                    todo_list.id,
                )
                outcome.skipped += 1
            else:
                calls += 1
                if self._update_item(external_id, item, item.external_id, now):
                    outcome.deleted += 1
                item.mark_synced(now)

        todo_list.mark_synced(now)
        if calls:
            outcome.result = SyncResult.updated()
        return outcome

    def _delete_item(self, list_external_id: str, item: TodoItem, item_external_id: str) -> None:
        try:
            self._ctx.remote.delete_todo_item(list_external_id, item_external_id)
        except RemoteNotFoundError:
            log.info("Item %s (External: %s) was already deleted remotely", item.id, item.external_id)

    def _update_item(
        self, list_external_id: str, item: TodoItem, item_external_id: str, now: datetime
    ) -> bool:
        """Send the item's content; returns True when the item turned out to be gone remotely."""
        try:
            updated = self._ctx.remote.update_todo_item(
                list_external_id,
                item_external_id,
                RemoteTodoItemUpdate(description=item.description, completed=item.is_completed),
            )
        except RemoteNotFoundError:
            log.warning(
                "Item %s (External: %s) no longer exists remotely; soft-deleting locally",
                item.id,
                item.external_id,
            )
            item.soft_delete(now, pending=False)
            return True
        item.last_modified = updated.updated_at
        return False


def _match_created_items(
    local_items: Sequence[TodoItem],
    remote_items: Sequence[RemoteTodoItem],
) -> list[tuple[TodoItem, RemoteTodoItem | None]]:
    """Pair items sent in one create call with the items the remote service returned.

    Equal descriptions pair first, each remote item at most once; leftovers pair up in
    submission order.
    """

    unmatched_remote = list(remote_items)
    pairs: dict[int, RemoteTodoItem] = {}
    for index, item in enumerate(local_items):
        for candidate in unmatched_remote:
            if candidate.description == item.description:
                pairs[index] = candidate
                unmatched_remote.remove(candidate)
                break

    leftovers = iter(unmatched_remote)
    matched: list[tuple[TodoItem, RemoteTodoItem | None]] = []
    for index, item in enumerate(local_items):
        remote_item = pairs.get(index)
        if remote_item is None:
            remote_item = next(leftovers, None)
        matched.append((item, remote_item))
    return matched
