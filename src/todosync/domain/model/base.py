"""
Base building blocks:
identity and the synchronization metadata shared by lists and items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import EntityKind


def new_id() -> UUID:
    return uuid4()


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)

    # class-level discriminator; subclasses must override
    ENTITY_KIND: ClassVar[EntityKind]

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND


@dataclass(eq=False, kw_only=True)
class SyncedEntity(Entity):
    """Local entity that mirrors a record held by the remote service.

    ``None`` timestamps mean "never touched". ``last_synced_at`` only moves forward.
    """

    external_id: str | None = None
    last_modified: datetime | None = None
    last_synced_at: datetime | None = None
    is_sync_pending: bool = False
    is_deleted: bool = False
    deleted_at: datetime | None = None

    @property
    def is_synchronized(self) -> bool:
        return self.external_id is not None

    def touch(self, at: datetime) -> None:
        """Record a local edit that still has to be pushed."""
        self.last_modified = at
        self.is_sync_pending = True

    def stamp_synced(self, at: datetime) -> None:
        if self.last_synced_at is None or at > self.last_synced_at:
            self.last_synced_at = at

    def mark_synced(self, at: datetime) -> None:
        self.is_sync_pending = False
        self.stamp_synced(at)

    def soft_delete(self, at: datetime, *, pending: bool) -> None:
        self.is_deleted = True
        self.deleted_at = at
        self.last_modified = at
        self.is_sync_pending = pending

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None
