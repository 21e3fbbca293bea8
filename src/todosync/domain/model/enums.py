"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator used in conflict reports and log lines."""

    TODO_LIST = "TodoList"
    TODO_ITEM = "TodoItem"


class ConflictResolutionStrategy(StrEnum):
    REMOTE_WINS = "remote-wins"
    LOCAL_WINS = "local-wins"
    MANUAL = "manual"


class SyncOrder(StrEnum):
    PULL_FIRST = "pull-first"
    PUSH_FIRST = "push-first"
