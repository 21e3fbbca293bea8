"""Ports for persisting todo lists and their sync metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from todosync.domain.model import TodoItem, TodoList

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...

    def get_by_external_id(self, external_id: str) -> TEntity | None: ...


@runtime_checkable
class TodoListRepository(Repository[TodoList], Protocol):
    """Persistence contract for todo lists (soft-deleted rows included)."""

    def pending(self) -> list[TodoList]:
        """Lists that are pending, never synchronized, or own a pending item."""
        ...

    def orphaned(self, active_external_ids: Collection[str]) -> list[TodoList]:
        """Live synchronized lists whose external id is not in ``active_external_ids``."""
        ...


@runtime_checkable
class TodoItemRepository(Repository[TodoItem], Protocol):
    """Persistence contract for todo items."""

    def orphaned(
        self,
        active_external_ids: Collection[str],
        *,
        todo_list_id: UUID | None = None,
    ) -> list[TodoItem]: ...


@runtime_checkable
class SyncStateRepository(Protocol):
    """Aggregate queries over the sync metadata of every list and item."""

    def latest_synced_at(self) -> datetime | None: ...

    def earliest_modified_at(self) -> datetime | None: ...

    def stamp_synchronized(self, at: datetime) -> int: ...

    def pending_changes_count(self) -> int: ...
