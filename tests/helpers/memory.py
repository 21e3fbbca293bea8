"""Dictionary-backed repositories and unit of work (no rollback support)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from todosync.domain.ports.unit_of_work import SyncRepositories

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator
    from datetime import datetime
    from types import TracebackType
    from uuid import UUID

    from todosync.domain.model import SyncedEntity, TodoItem, TodoList


class InMemoryTodoStore:
    def __init__(self) -> None:
        self.lists: dict[UUID, TodoList] = {}

    def items(self) -> Iterator[TodoItem]:
        for todo_list in self.lists.values():
            yield from todo_list.items

    def entities(self) -> Iterator[SyncedEntity]:
        for todo_list in self.lists.values():
            yield todo_list
            yield from todo_list.items


class InMemoryTodoListRepository:
    def __init__(self, store: InMemoryTodoStore) -> None:
        self.store = store

    def add(self, entity: TodoList) -> None:
        self.store.lists[entity.id] = entity

    def get(self, entity_id: UUID) -> TodoList | None:
        return self.store.lists.get(entity_id)

    def get_by_external_id(self, external_id: str) -> TodoList | None:
        for todo_list in self.store.lists.values():
            if todo_list.external_id == external_id:
                return todo_list
        return None

    def pending(self) -> list[TodoList]:
        return [
            todo_list
            for todo_list in self.store.lists.values()
            if todo_list.is_sync_pending
            or (todo_list.external_id is None and not todo_list.is_deleted)
            or any(item.is_sync_pending for item in todo_list.items)
        ]

    def orphaned(self, active_external_ids: Collection[str]) -> list[TodoList]:
        return [
            todo_list
            for todo_list in self.store.lists.values()
            if todo_list.external_id is not None
            and not todo_list.is_deleted
            and todo_list.external_id not in active_external_ids
        ]


class InMemoryTodoItemRepository:
    def __init__(self, store: InMemoryTodoStore) -> None:
        self.store = store

    def add(self, entity: TodoItem) -> None:
        _ = entity

    def get(self, entity_id: UUID) -> TodoItem | None:
        return next((item for item in self.store.items() if item.id == entity_id), None)

    def get_by_external_id(self, external_id: str) -> TodoItem | None:
        return next(
            (item for item in self.store.items() if item.external_id == external_id), None
        )

    def orphaned(
        self,
        active_external_ids: Collection[str],
        *,
        todo_list_id: UUID | None = None,
    ) -> list[TodoItem]:
        return [
            item
            for item in self.store.items()
            if item.external_id is not None
            and not item.is_deleted
            and item.external_id not in active_external_ids
            and (todo_list_id is None or (item.todo_list and item.todo_list.id == todo_list_id))
        ]


class InMemorySyncStateRepository:
    def __init__(self, store: InMemoryTodoStore) -> None:
        self.store = store

    def latest_synced_at(self) -> datetime | None:
        stamps = [e.last_synced_at for e in self.store.entities() if e.last_synced_at]
        return max(stamps, default=None)

    def earliest_modified_at(self) -> datetime | None:
        stamps = [e.last_modified for e in self.store.entities() if e.last_modified]
        return min(stamps, default=None)

    def stamp_synchronized(self, at: datetime) -> int:
        touched = 0
        for entity in self.store.entities():
            if entity.external_id is None:
                continue
            if entity.last_synced_at is None or entity.last_synced_at < at:
                entity.last_synced_at = at
                touched += 1
        return touched

    def pending_changes_count(self) -> int:
        return sum(1 for entity in self.store.entities() if entity.is_sync_pending)


class InMemoryUnitOfWork:
    def __init__(self, store: InMemoryTodoStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0
        self._repositories = SyncRepositories(
            todo_lists=InMemoryTodoListRepository(store),
            todo_items=InMemoryTodoItemRepository(store),
            sync_state=InMemorySyncStateRepository(store),
        )

    @property
    def repositories(self) -> SyncRepositories:
        return self._repositories

    def __enter__(self) -> InMemoryUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
