"""Domain model for synchronized todo lists."""

from __future__ import annotations

from .base import Entity, SyncedEntity, new_id
from .enums import ConflictResolutionStrategy, EntityKind, SyncOrder
from .remote import (
    NewRemoteTodoItem,
    NewRemoteTodoList,
    RemoteTodoItem,
    RemoteTodoItemUpdate,
    RemoteTodoList,
    RemoteTodoListUpdate,
)
from .todo import TodoItem, TodoList

__all__ = [
    "ConflictResolutionStrategy",
    "Entity",
    "EntityKind",
    "NewRemoteTodoItem",
    "NewRemoteTodoList",
    "RemoteTodoItem",
    "RemoteTodoItemUpdate",
    "RemoteTodoList",
    "RemoteTodoListUpdate",
    "SyncOrder",
    "SyncedEntity",
    "TodoItem",
    "TodoList",
    "new_id",
]
