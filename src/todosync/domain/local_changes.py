"""Local mutations that keep the pending-sync flags honest.

Every edit stamps ``last_modified`` and marks the entity pending; item edits also mark
the owning list pending so the push phase picks the list up.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from todosync.domain.clock import utcnow
from todosync.domain.errors import LocalEntityNotFoundError
from todosync.domain.model import EntityKind, TodoItem, TodoList

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from todosync.domain.clock import Clock
    from todosync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork

log = getLogger(__name__)


class LocalTodoService:
    def __init__(
        self,
        unit_of_work_factory: Callable[[], SyncUnitOfWork],
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def create_list(self, name: str, item_descriptions: Iterable[str] = ()) -> UUID:
        now = self._clock()
        todo_list = TodoList(name=name)
        todo_list.touch(now)
        for description in item_descriptions:
            item = todo_list.add_item(TodoItem(description=description))
            item.touch(now)
        with self._unit_of_work_factory() as uow:
            uow.repositories.todo_lists.add(todo_list)
            uow.commit()
        log.info("Created list %s with %s item(s)", todo_list.id, len(todo_list.items))
        return todo_list.id

    def rename_list(self, list_id: UUID, name: str) -> None:
        with self._unit_of_work_factory() as uow:
            todo_list = self._require_list(uow.repositories, list_id)
            todo_list.name = name
            todo_list.touch(self._clock())
            uow.commit()

    def delete_list(self, list_id: UUID) -> None:
        with self._unit_of_work_factory() as uow:
            todo_list = self._require_list(uow.repositories, list_id)
            deleted = todo_list.soft_delete_with_items(self._clock(), pending=True)
            uow.commit()
        log.info("Soft-deleted list %s and %s item(s)", list_id, deleted)

    def add_item(self, list_id: UUID, description: str, *, completed: bool = False) -> UUID:
        now = self._clock()
        with self._unit_of_work_factory() as uow:
            todo_list = self._require_list(uow.repositories, list_id)
            item = todo_list.add_item(TodoItem(description=description, is_completed=completed))
            item.touch(now)
            todo_list.touch(now)
            uow.repositories.todo_items.add(item)
            uow.commit()
            return item.id

    def update_item(
        self,
        item_id: UUID,
        *,
        description: str | None = None,
        completed: bool | None = None,
    ) -> None:
        now = self._clock()
        with self._unit_of_work_factory() as uow:
            item = self._require_item(uow.repositories, item_id)
            if description is not None:
                item.description = description
            if completed is not None:
                item.is_completed = completed
            item.touch(now)
            if item.todo_list is not None:
                item.todo_list.touch(now)
            uow.commit()

    def delete_item(self, item_id: UUID) -> None:
        now = self._clock()
        with self._unit_of_work_factory() as uow:
            item = self._require_item(uow.repositories, item_id)
            item.soft_delete(now, pending=True)
            if item.todo_list is not None:
                item.todo_list.touch(now)
            uow.commit()

    def pending_changes_count(self) -> int:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.sync_state.pending_changes_count()

    @staticmethod
    def _require_list(repositories: SyncRepositories, list_id: UUID) -> TodoList:
        todo_list = repositories.todo_lists.get(list_id)
        if todo_list is None or todo_list.is_deleted:
            raise LocalEntityNotFoundError(EntityKind.TODO_LIST, list_id)
        return todo_list

    @staticmethod
    def _require_item(repositories: SyncRepositories, item_id: UUID) -> TodoItem:
        item = repositories.todo_items.get(item_id)
        if item is None or item.is_deleted:
            raise LocalEntityNotFoundError(EntityKind.TODO_ITEM, item_id)
        return item
