"""SQLAlchemy mapping metadata for the todo domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import configure_mappers, relationship

from todosync.domain.model import TodoItem, TodoList

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _sync_columns() -> list[Column[object]]:
    return [
        Column("external_id", String(255), nullable=True),
        Column("last_modified", UTCDateTime(), nullable=True),
        Column("last_synced_at", UTCDateTime(), nullable=True),
        Column("is_sync_pending", Boolean, nullable=False, default=False),
        Column("is_deleted", Boolean, nullable=False, default=False),
        Column("deleted_at", UTCDateTime(), nullable=True),
    ]


todo_list_table = Table(
    "todo_list",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("name", String(255), nullable=False),
    *_sync_columns(),
    Index("ix_todo_list_external_id", "external_id"),
)

todo_item_table = Table(
    "todo_item",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column(
        "todo_list_id",
        UUIDColumnType,
        ForeignKey("todo_list.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False, default=0),
    Column("description", String(1024), nullable=False),
    Column("is_completed", Boolean, nullable=False, default=False),
    *_sync_columns(),
    Index("ix_todo_item_todo_list_id", "todo_list_id"),
    Index("ix_todo_item_external_id", "external_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        TodoList,
        todo_list_table,
        properties={
            "items": relationship(
                TodoItem,
                back_populates="todo_list",
                cascade="all, delete-orphan",
                order_by=todo_item_table.c.position,
                collection_class=ordering_list("_position"),
            ),
        },
    )

    mapper_registry.map_imperatively(
        TodoItem,
        todo_item_table,
        properties={
            "_position": todo_item_table.c.position,
            "todo_list": relationship(TodoList, back_populates="items"),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
