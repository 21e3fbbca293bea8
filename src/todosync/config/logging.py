"""Shared logging helpers for todosync."""

from __future__ import annotations

import logging

from .errors import ConfigurationError


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def parse_log_level(value: str | None, *, default: int = logging.INFO) -> int:
    """Translate a level name such as ``"debug"`` into a ``logging`` constant."""

    if value is None or not value.strip():
        return default
    candidate = logging.getLevelNamesMapping().get(value.strip().upper())
    if candidate is None:
        raise ConfigurationError(f"Unknown log level: {value}")
    return candidate
