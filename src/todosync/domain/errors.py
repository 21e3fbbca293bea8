"""Error taxonomy for synchronization.

Transient remote failures are retried by the resilience pipelines, terminal ones fail
only the entity being reconciled, and ``RemotePayloadError`` aborts the whole phase.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from todosync.domain.conflicts.info import ConflictInfo

TRANSIENT_STATUS_CODES = frozenset({408, 429})


class SyncError(RuntimeError):
    """Base class for failures raised while reconciling lists and items."""


class RemoteError(SyncError):
    """Raised when the remote todo service cannot complete a request."""


class RemoteTransportError(RemoteError):
    """Network level failure (connection refused, reset, timed out)."""


class RemoteStatusError(RemoteError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500 or self.status_code in TRANSIENT_STATUS_CODES


class RemoteNotFoundError(RemoteStatusError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class RemotePayloadError(SyncError):
    """The remote service answered with a payload that violates its contract."""


class ManualResolutionRequiredError(SyncError):
    """Both sides changed an entity and the configured strategy refuses to pick one."""

    def __init__(self, message: str, *, conflict: ConflictInfo) -> None:
        super().__init__(message)
        self.conflict = conflict


class LocalEntityNotFoundError(SyncError):
    def __init__(self, kind: str, entity_id: UUID) -> None:
        super().__init__(f"{kind} {entity_id} does not exist")
        self.kind = kind
        self.entity_id = entity_id
