"""Conflict detection and resolution for synchronized todo lists."""

from __future__ import annotations

from .info import ConflictInfo
from .resolver import ConflictResolver, TodoItemConflictResolver, TodoListConflictResolver
from .strategies import (
    LocalWinsStrategy,
    ManualResolutionStrategy,
    RemoteWinsStrategy,
    ResolutionStrategy,
    build_strategy,
)

__all__ = [
    "ConflictInfo",
    "ConflictResolver",
    "LocalWinsStrategy",
    "ManualResolutionStrategy",
    "RemoteWinsStrategy",
    "ResolutionStrategy",
    "TodoItemConflictResolver",
    "TodoListConflictResolver",
    "build_strategy",
]
