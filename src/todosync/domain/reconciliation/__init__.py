"""Reconciliation of local todo lists with the remote todo service."""

from __future__ import annotations

from .context import CycleControl, ReconciliationContext
from .orchestrator import ReconciliationOrchestrator
from .results import CycleReport, EntityFailure, PhaseReport, SyncOutcome, SyncResult

__all__ = [
    "CycleControl",
    "CycleReport",
    "EntityFailure",
    "PhaseReport",
    "ReconciliationContext",
    "ReconciliationOrchestrator",
    "SyncOutcome",
    "SyncResult",
]
