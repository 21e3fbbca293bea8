"""SQLAlchemy adapter package for todosync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemySyncStateRepository,
    SqlAlchemyTodoItemRepository,
    SqlAlchemyTodoListRepository,
)
from .unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemySyncStateRepository",
    "SqlAlchemySyncUnitOfWork",
    "SqlAlchemyTodoItemRepository",
    "SqlAlchemyTodoListRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
