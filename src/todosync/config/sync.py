"""Synchronization defaults for the reconciliation cycle."""

from __future__ import annotations

from dataclasses import dataclass

from todosync.domain.model.enums import ConflictResolutionStrategy, SyncOrder

from .env import env_bool, env_float, env_str
from .errors import ConfigurationError

DEFAULT_MAX_SYNC_DURATION_SECONDS = 600.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    conflict_strategy: ConflictResolutionStrategy = ConflictResolutionStrategy.REMOTE_WINS
    order: SyncOrder = SyncOrder.PUSH_FIRST
    delta_sync: bool = False
    max_duration_seconds: float | None = DEFAULT_MAX_SYNC_DURATION_SECONDS


def _parse_enum[TEnum: (ConflictResolutionStrategy, SyncOrder)](
    enum_cls: type[TEnum], name: str, default: TEnum
) -> TEnum:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return enum_cls(raw.lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"{name} must be one of: {allowed}") from exc


def get_sync_config() -> SyncConfig:
    max_duration = env_float(
        "TODOSYNC_SYNC_MAX_DURATION_SECONDS", DEFAULT_MAX_SYNC_DURATION_SECONDS, minimum=0.0
    )
    return SyncConfig(
        conflict_strategy=_parse_enum(
            ConflictResolutionStrategy,
            "TODOSYNC_SYNC_CONFLICT_STRATEGY",
            ConflictResolutionStrategy.REMOTE_WINS,
        ),
        order=_parse_enum(SyncOrder, "TODOSYNC_SYNC_ORDER", SyncOrder.PUSH_FIRST),
        delta_sync=env_bool("TODOSYNC_SYNC_DELTA", False),
        # 0 disables the cycle deadline
        max_duration_seconds=max_duration or None,
    )
