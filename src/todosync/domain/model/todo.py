"""Local todo lists and their items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .base import SyncedEntity
from .enums import EntityKind

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class TodoItem(SyncedEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.TODO_ITEM

    description: str
    is_completed: bool = False
    todo_list: TodoList | None = field(default=None, repr=False)


@dataclass(eq=False, kw_only=True)
class TodoList(SyncedEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.TODO_LIST

    name: str
    items: list[TodoItem] = field(default_factory=list, repr=False)

    def add_item(self, item: TodoItem) -> TodoItem:
        # append first: the collection side is what cascades a mapped item into the session
        if item not in self.items:
            self.items.append(item)
        item.todo_list = self
        return item

    def active_items(self) -> Iterator[TodoItem]:
        return (item for item in self.items if not item.is_deleted)

    def pending_items(self) -> Iterator[TodoItem]:
        return (item for item in self.items if item.is_sync_pending)

    def item_by_external_id(self, external_id: str) -> TodoItem | None:
        for item in self.items:
            if item.external_id == external_id:
                return item
        return None

    def soft_delete_with_items(self, at: datetime, *, pending: bool) -> int:
        """Soft delete the list and every live item; returns the number of items deleted."""
        self.soft_delete(at, pending=pending)
        deleted = 0
        for item in self.items:
            if item.is_deleted:
                continue
            item.soft_delete(at, pending=pending)
            deleted += 1
        return deleted
