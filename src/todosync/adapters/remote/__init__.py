"""Adapter for the remote todo HTTP API."""

from __future__ import annotations

from .client import HttpTodoRemote

__all__ = ["HttpTodoRemote"]
