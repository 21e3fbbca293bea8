"""Field-level conflict detection between a local entity and its remote twin."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Protocol

from todosync.domain.clock import utcnow
from todosync.domain.model import (
    ConflictResolutionStrategy,
    EntityKind,
    RemoteTodoItem,
    RemoteTodoList,
    SyncedEntity,
    TodoItem,
    TodoList,
)

from .info import ConflictInfo
from .strategies import builtin_strategies

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from todosync.domain.clock import Clock

    from .strategies import ResolutionStrategy


class RemoteRecord(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def updated_at(self) -> datetime: ...


class ConflictResolver[TLocal: SyncedEntity, TRemote: RemoteRecord](ABC):
    """Decide which side's values survive when a local entity meets its remote twin.

    Subclasses only say which fields are compared and how remote values are copied;
    detection, strategy dispatch and the sync stamps are shared.
    """

    entity_kind: ClassVar[EntityKind]

    def __init__(
        self,
        *,
        default_strategy: ConflictResolutionStrategy = ConflictResolutionStrategy.REMOTE_WINS,
        strategies: Mapping[ConflictResolutionStrategy, ResolutionStrategy] | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.default_strategy = default_strategy
        self._strategies = builtin_strategies()
        if strategies:
            self._strategies.update(strategies)
        self._clock = clock

    @abstractmethod
    def detect_modified_fields(self, local: TLocal, remote: TRemote) -> list[str]: ...

    @abstractmethod
    def copy_remote_fields(self, local: TLocal, remote: TRemote) -> None: ...

    def resolve_conflict(
        self,
        local: TLocal,
        remote: TRemote,
        strategy: ConflictResolutionStrategy | None = None,
    ) -> ConflictInfo:
        info = ConflictInfo(
            entity_kind=self.entity_kind,
            local_id=str(local.id),
            remote_id=remote.id,
            local_last_modified=local.last_modified,
            remote_last_modified=remote.updated_at,
            last_synced_at=local.last_synced_at,
            modified_fields=self.detect_modified_fields(local, remote),
        )
        if not info.has_conflict:
            return info

        chosen = strategy or self.default_strategy
        implementation = self._strategies.get(chosen)
        if implementation is None:
            raise ValueError(f"No conflict resolution strategy registered for {chosen}")
        info.resolution = chosen
        info.resolution_reason = implementation.resolution_reason(local, remote, info)
        info.apply_remote_changes = implementation.should_apply_remote_changes(
            local, remote, info
        )
        return info

    def remote_changes_apply(self, local: TLocal, remote: TRemote, info: ConflictInfo) -> bool:
        if info.has_conflict:
            return info.apply_remote_changes
        return local.last_modified is None or remote.updated_at > local.last_modified

    def apply_resolution(
        self,
        local: TLocal,
        remote: TRemote,
        info: ConflictInfo,
        *,
        at: datetime | None = None,
    ) -> None:
        """Mutate ``local`` according to ``info`` and stamp it as synchronized."""

        if self.remote_changes_apply(local, remote, info):
            self.copy_remote_fields(local, remote)
            local.last_modified = remote.updated_at
            local.is_sync_pending = False
        elif info.has_conflict:
            # local won; the next push has to carry its values out
            local.is_sync_pending = True
        local.stamp_synced(at or self._clock())


class TodoListConflictResolver(ConflictResolver[TodoList, RemoteTodoList]):
    entity_kind = EntityKind.TODO_LIST

    def detect_modified_fields(self, local: TodoList, remote: RemoteTodoList) -> list[str]:
        return ["name"] if local.name != remote.name else []

    def copy_remote_fields(self, local: TodoList, remote: RemoteTodoList) -> None:
        local.name = remote.name


class TodoItemConflictResolver(ConflictResolver[TodoItem, RemoteTodoItem]):
    entity_kind = EntityKind.TODO_ITEM

    def detect_modified_fields(self, local: TodoItem, remote: RemoteTodoItem) -> list[str]:
        fields: list[str] = []
        if local.description != remote.description:
            fields.append("description")
        if local.is_completed != remote.completed:
            fields.append("is_completed")
        return fields

    def copy_remote_fields(self, local: TodoItem, remote: RemoteTodoItem) -> None:
        local.description = remote.description
        local.is_completed = remote.completed
