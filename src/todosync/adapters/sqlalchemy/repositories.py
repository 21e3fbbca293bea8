"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import and_, exists, func, or_, select, union_all, update

from todosync.adapters.sqlalchemy.mappings import todo_item_table, todo_list_table
from todosync.domain.model import TodoItem, TodoList

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session


class SqlAlchemyTodoListRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TodoList) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TodoList | None:
        return self.session.get(TodoList, entity_id)

    def get_by_external_id(self, external_id: str) -> TodoList | None:
        stmt = select(TodoList).where(todo_list_table.c.external_id == external_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def pending(self) -> list[TodoList]:
        has_pending_item = exists().where(
            todo_item_table.c.todo_list_id == todo_list_table.c.id,
            todo_item_table.c.is_sync_pending.is_(True),
        )
        never_pushed = and_(
            todo_list_table.c.external_id.is_(None),
            todo_list_table.c.is_deleted.is_(False),
        )
        stmt = (
            select(TodoList)
            .where(or_(todo_list_table.c.is_sync_pending.is_(True), never_pushed, has_pending_item))
            .order_by(todo_list_table.c.last_modified)
        )
        return list(self.session.execute(stmt).scalars())

    def orphaned(self, active_external_ids: Collection[str]) -> list[TodoList]:
        stmt = select(TodoList).where(
            todo_list_table.c.external_id.is_not(None),
            todo_list_table.c.is_deleted.is_(False),
        )
        if active_external_ids:
            stmt = stmt.where(todo_list_table.c.external_id.not_in(list(active_external_ids)))
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyTodoItemRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TodoItem) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TodoItem | None:
        return self.session.get(TodoItem, entity_id)

    def get_by_external_id(self, external_id: str) -> TodoItem | None:
        stmt = select(TodoItem).where(todo_item_table.c.external_id == external_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def orphaned(
        self,
        active_external_ids: Collection[str],
        *,
        todo_list_id: UUID | None = None,
    ) -> list[TodoItem]:
        stmt = select(TodoItem).where(
            todo_item_table.c.external_id.is_not(None),
            todo_item_table.c.is_deleted.is_(False),
        )
        if todo_list_id is not None:
            stmt = stmt.where(todo_item_table.c.todo_list_id == todo_list_id)
        if active_external_ids:
            stmt = stmt.where(todo_item_table.c.external_id.not_in(list(active_external_ids)))
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySyncStateRepository:
    """Aggregates over both synced tables; unset timestamps are NULL and never count."""

    _TABLES: tuple[Table, ...] = (todo_list_table, todo_item_table)

    def __init__(self, session: Session) -> None:
        self.session = session

    def latest_synced_at(self) -> datetime | None:
        timestamps = union_all(
            *(select(table.c.last_synced_at.label("at")) for table in self._TABLES)
        ).subquery()
        return self.session.execute(select(func.max(timestamps.c.at))).scalar_one_or_none()

    def earliest_modified_at(self) -> datetime | None:
        timestamps = union_all(
            *(select(table.c.last_modified.label("at")) for table in self._TABLES)
        ).subquery()
        return self.session.execute(select(func.min(timestamps.c.at))).scalar_one_or_none()

    def stamp_synchronized(self, at: datetime) -> int:
        touched = 0
        for table in self._TABLES:
            stmt = (
                update(table)
                .where(table.c.external_id.is_not(None))
                .where(or_(table.c.last_synced_at.is_(None), table.c.last_synced_at < at))
                .values(last_synced_at=at)
            )
            touched += self.session.execute(stmt).rowcount
        return touched

    def pending_changes_count(self) -> int:
        total = 0
        for table in self._TABLES:
            stmt = select(func.count()).select_from(table).where(table.c.is_sync_pending.is_(True))
            total += self.session.execute(stmt).scalar_one()
        return total
