"""Per-attempt description of how a local entity and its remote twin diverge."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from todosync.domain.model import ConflictResolutionStrategy, EntityKind


@dataclass(slots=True, kw_only=True)
class ConflictInfo:
    entity_kind: EntityKind
    local_id: str
    remote_id: str
    local_last_modified: datetime | None
    remote_last_modified: datetime | None
    last_synced_at: datetime | None
    modified_fields: list[str] = field(default_factory=list)
    resolution: ConflictResolutionStrategy | None = None
    resolution_reason: str = ""
    apply_remote_changes: bool = False

    @property
    def has_conflict(self) -> bool:
        """Both sides were touched since they last agreed and their content differs."""
        if not self.modified_fields:
            return False
        if self.local_last_modified is None or self.remote_last_modified is None:
            return False
        if self.last_synced_at is None:
            return False
        return (
            self.local_last_modified > self.last_synced_at
            or self.remote_last_modified > self.last_synced_at
        )

    @property
    def conflict_resolved(self) -> bool:
        return self.has_conflict and bool(self.resolution_reason)

    def describe_fields(self) -> str:
        return ", ".join(self.modified_fields)
