from __future__ import annotations

import argparse
import logging
import os
import sys
import threading
from dataclasses import replace
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from todosync.app import (
    pull_remote_changes,
    push_local_changes,
    run_sync_cycle,
    sync_status,
)
from todosync.config import (
    ConfigurationError,
    configure_logging,
    get_sync_config,
    parse_log_level,
)
from todosync.domain.model import ConflictResolutionStrategy, SyncOrder

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from todosync.config import SyncConfig

log = logging.getLogger(__name__)

_CANCEL = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise local todo lists with the remote")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("sync", "Push local changes, then pull remote changes (order is configurable)"),
        ("push", "Push pending local changes only"),
        ("pull", "Pull remote changes only"),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument(
            "--strategy",
            choices=[strategy.value for strategy in ConflictResolutionStrategy],
            help="Conflict resolution strategy (defaults to config)",
        )
        command.add_argument(
            "--delta",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Only fetch remote lists modified since the last sync (defaults to config)",
        )
        command.add_argument(
            "--max-duration",
            type=float,
            help="Stop starting new lists after this many seconds (0 disables the limit)",
        )
        if name == "sync":
            command.add_argument(
                "--order",
                choices=[order.value for order in SyncOrder],
                help="Phase order of the cycle (defaults to config)",
            )

    subparsers.add_parser("status", help="Show pending changes and the sync watermark")

    return parser.parse_args(list(argv))


def _sync_config(args: argparse.Namespace) -> SyncConfig:
    config = get_sync_config()
    max_duration = config.max_duration_seconds
    if args.max_duration is not None:
        if args.max_duration < 0:
            raise ValueError("Max duration must be non-negative")
        max_duration = args.max_duration or None
    order = getattr(args, "order", None)
    return replace(
        config,
        conflict_strategy=(
            ConflictResolutionStrategy(args.strategy) if args.strategy else config.conflict_strategy
        ),
        order=SyncOrder(order) if order else config.order,
        delta_sync=config.delta_sync if args.delta is None else args.delta,
        max_duration_seconds=max_duration,
    )


def _show_status() -> None:
    status = sync_status()
    log.info(
        "Pending changes: %s, last synced: %s, earliest modification: %s, delta sync: %s",
        status.pending_changes,
        status.last_synced_at.isoformat() if status.last_synced_at else "never",
        status.earliest_modified_at.isoformat() if status.earliest_modified_at else "n/a",
        "available" if status.delta_sync_available else "unavailable",
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        configure_logging(level=parse_log_level(os.getenv("TODOSYNC_LOG_LEVEL")))
        parsed_args = _parse_args(args_list)
        config = _sync_config(parsed_args) if parsed_args.command != "status" else None
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    failed = 0
    try:
        if parsed_args.command == "sync":
            failed = run_sync_cycle(cancel_event=_CANCEL, config=config).failed
        elif parsed_args.command == "push":
            failed = push_local_changes(cancel_event=_CANCEL, config=config).failed
        elif parsed_args.command == "pull":
            failed = pull_remote_changes(cancel_event=_CANCEL, config=config).failed
        elif parsed_args.command == "status":
            _show_status()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    if failed:
        log.error("%s entities failed to synchronise", failed)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """First Ctrl+C stops the cycle between lists; the second one exits immediately."""
    if _CANCEL.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(130)
    log.warning("Stopping after the current list (press Ctrl+C again to abort)")
    _CANCEL.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
