"""Watermark bookkeeping for delta synchronization."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from todosync.resilience import ResiliencePipeline

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from todosync.domain.ports.unit_of_work import SyncUnitOfWork

log = getLogger(__name__)


class SyncStateTracker:
    """Reads and advances the sync watermark stored on the local entities.

    There is no separate watermark table: the watermark is the newest
    ``last_synced_at`` of any list or item, and unset timestamps never count.
    """

    def __init__(
        self,
        unit_of_work_factory: Callable[[], SyncUnitOfWork],
        *,
        persistence: ResiliencePipeline | None = None,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._persistence = persistence or ResiliencePipeline.passthrough("persistence-call")

    def get_last_sync_timestamp(self) -> datetime | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.sync_state.latest_synced_at()

    def update_last_sync_timestamp(self, at: datetime) -> int:
        """Stamp every synchronized entity with ``at``; returns the number of rows touched."""

        def stamp() -> int:
            with self._unit_of_work_factory() as uow:
                touched = uow.repositories.sync_state.stamp_synchronized(at)
                uow.commit()
                return touched

        touched = self._persistence.execute(stamp)
        log.info("Advanced sync watermark to %s on %s entities", at.isoformat(), touched)
        return touched

    def is_delta_sync_available(self) -> bool:
        return self.get_last_sync_timestamp() is not None

    def get_earliest_last_modified(self) -> datetime | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.sync_state.earliest_modified_at()

    def get_pending_changes_count(self) -> int:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.sync_state.pending_changes_count()
