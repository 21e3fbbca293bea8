"""Ports (interfaces) used by the domain services."""

from __future__ import annotations

from .persistence import (
    Repository,
    SyncStateRepository,
    TodoItemRepository,
    TodoListRepository,
)
from .remote import TodoRemote
from .unit_of_work import RepositoryCollection, SyncRepositories, SyncUnitOfWork, UnitOfWork

__all__ = [
    "Repository",
    "RepositoryCollection",
    "SyncRepositories",
    "SyncStateRepository",
    "SyncUnitOfWork",
    "TodoItemRepository",
    "TodoListRepository",
    "TodoRemote",
    "UnitOfWork",
]
