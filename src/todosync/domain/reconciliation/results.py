"""Outcomes and aggregate counts reported by the reconciliation phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


class SyncOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT_RESOLVED = "conflict_resolved"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of reconciling one entity; ``reason`` is only set for resolved conflicts."""

    outcome: SyncOutcome
    reason: str | None = None

    @classmethod
    def created(cls) -> SyncResult:
        return cls(SyncOutcome.CREATED)

    @classmethod
    def updated(cls) -> SyncResult:
        return cls(SyncOutcome.UPDATED)

    @classmethod
    def unchanged(cls) -> SyncResult:
        return cls(SyncOutcome.UNCHANGED)

    @classmethod
    def conflict_resolved(cls, reason: str) -> SyncResult:
        return cls(SyncOutcome.CONFLICT_RESOLVED, reason)


@dataclass(frozen=True, slots=True)
class EntityFailure:
    entity_id: UUID | str
    error: str
    fatal: bool = False


@dataclass(slots=True)
class PhaseReport:
    """Aggregate counts for one push or pull phase."""

    phase: str
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    conflicts_resolved: int = 0
    deleted: int = 0
    restored: int = 0
    skipped: int = 0
    failures: list[EntityFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> int:
        return self.created + self.updated + self.unchanged + self.conflicts_resolved

    @property
    def changed_anything(self) -> bool:
        return bool(
            self.created or self.updated or self.conflicts_resolved or self.deleted or self.restored
        )

    def record(self, result: SyncResult) -> None:
        match result.outcome:
            case SyncOutcome.CREATED:
                self.created += 1
            case SyncOutcome.UPDATED:
                self.updated += 1
            case SyncOutcome.UNCHANGED:
                self.unchanged += 1
            case SyncOutcome.CONFLICT_RESOLVED:
                self.conflicts_resolved += 1

    def record_failure(self, entity_id: UUID | str, error: Exception, *, fatal: bool) -> None:
        self.failures.append(EntityFailure(entity_id=entity_id, error=str(error), fatal=fatal))

    def summary(self) -> str:
        return (
            f"{self.phase}: created={self.created}, updated={self.updated}, "
            f"unchanged={self.unchanged}, conflicts={self.conflicts_resolved}, "
            f"deleted={self.deleted}, restored={self.restored}, skipped={self.skipped}, "
            f"failed={self.failed}"
        )


@dataclass(slots=True)
class CycleReport:
    started_at: datetime
    pull: PhaseReport | None = None
    push: PhaseReport | None = None
    finished_at: datetime | None = None

    @property
    def cancelled(self) -> bool:
        return any(report.cancelled for report in (self.pull, self.push) if report is not None)

    @property
    def failed(self) -> int:
        return sum(report.failed for report in (self.pull, self.push) if report is not None)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0 and not self.cancelled
