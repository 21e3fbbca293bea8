"""Conflict resolution strategies.

A strategy answers two questions about a detected conflict: should the remote values
overwrite the local ones, and how should the decision be explained to an operator.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from todosync.domain.errors import ManualResolutionRequiredError
from todosync.domain.model import ConflictResolutionStrategy

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from .info import ConflictInfo

log = getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "never"
    return value.strftime(_TIMESTAMP_FORMAT)


@runtime_checkable
class ResolutionStrategy(Protocol):
    kind: ConflictResolutionStrategy

    def should_apply_remote_changes(
        self, local: object, remote: object, info: ConflictInfo
    ) -> bool: ...

    def resolution_reason(self, local: object, remote: object, info: ConflictInfo) -> str: ...


def _log_conflict(info: ConflictInfo, resolution: str, *, level: Callable[..., None]) -> None:
    level(
        "CONFLICT DETECTED: %s %s (External: %s) - Both local and external modified since "
        "last sync. Resolution: %s. Fields in conflict: %s",
        info.entity_kind,
        info.local_id,
        info.remote_id,
        resolution,
        info.describe_fields(),
    )


class RemoteWinsStrategy:
    kind = ConflictResolutionStrategy.REMOTE_WINS

    def should_apply_remote_changes(
        self, local: object, remote: object, info: ConflictInfo
    ) -> bool:
        _ = local, remote
        _log_conflict(info, "External changes will be applied", level=log.warning)
        return True

    def resolution_reason(self, local: object, remote: object, info: ConflictInfo) -> str:
        _ = local, remote
        return (
            "External API changes take precedence. Local changes made at "
            f"{format_timestamp(info.local_last_modified)} will be overwritten by external "
            f"changes made at {format_timestamp(info.remote_last_modified)}."
        )


class LocalWinsStrategy:
    kind = ConflictResolutionStrategy.LOCAL_WINS

    def should_apply_remote_changes(
        self, local: object, remote: object, info: ConflictInfo
    ) -> bool:
        _ = local, remote
        _log_conflict(info, "Local changes will be preserved", level=log.warning)
        return False

    def resolution_reason(self, local: object, remote: object, info: ConflictInfo) -> str:
        _ = local, remote
        return (
            "Local changes take precedence. External changes made at "
            f"{format_timestamp(info.remote_last_modified)} will be ignored in favor of local "
            f"changes made at {format_timestamp(info.local_last_modified)}."
        )


class ManualResolutionStrategy:
    """Refuses to decide; reconciliation of the entity stops with an operator-facing error."""

    kind = ConflictResolutionStrategy.MANUAL

    def should_apply_remote_changes(
        self, local: object, remote: object, info: ConflictInfo
    ) -> bool:
        reason = info.resolution_reason or self.resolution_reason(local, remote, info)
        _log_conflict(info, "Manual resolution required", level=log.error)
        raise ManualResolutionRequiredError(
            f"Manual conflict resolution required for {info.entity_kind} {info.local_id} "
            f"(External: {info.remote_id}). Local modified at "
            f"{format_timestamp(info.local_last_modified)}, external modified at "
            f"{format_timestamp(info.remote_last_modified)}, last synced at "
            f"{format_timestamp(info.last_synced_at)}. Conflicting fields: "
            f"{info.describe_fields()}. {reason}",
            conflict=info,
        )

    def resolution_reason(self, local: object, remote: object, info: ConflictInfo) -> str:
        _ = local, remote
        return (
            "Manual resolution required. Local changes made at "
            f"{format_timestamp(info.local_last_modified)} conflict with external changes made "
            f"at {format_timestamp(info.remote_last_modified)}. Human intervention needed to "
            "resolve the conflict."
        )


_BUILTIN: Mapping[ConflictResolutionStrategy, Callable[[], ResolutionStrategy]] = {
    ConflictResolutionStrategy.REMOTE_WINS: RemoteWinsStrategy,
    ConflictResolutionStrategy.LOCAL_WINS: LocalWinsStrategy,
    ConflictResolutionStrategy.MANUAL: ManualResolutionStrategy,
}


def build_strategy(kind: ConflictResolutionStrategy) -> ResolutionStrategy:
    try:
        factory = _BUILTIN[kind]
    except KeyError as exc:
        raise ValueError(f"Unsupported conflict resolution strategy: {kind}") from exc
    return factory()


def builtin_strategies() -> dict[ConflictResolutionStrategy, ResolutionStrategy]:
    return {kind: build_strategy(kind) for kind in _BUILTIN}
