"""Remote-side representations of lists and items.

These mirror what the remote service reports and are never persisted locally. The
``updated_at`` stamps are assigned by the remote service and are authoritative for
"when did the remote side change".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteTodoItem:
    id: str
    source_id: str | None
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteTodoList:
    id: str
    source_id: str | None
    name: str
    created_at: datetime
    updated_at: datetime
    items: tuple[RemoteTodoItem, ...] = ()

    def item_ids(self) -> set[str]:
        return {item.id for item in self.items}


@dataclass(frozen=True, slots=True, kw_only=True)
class NewRemoteTodoItem:
    source_id: str
    description: str
    completed: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class NewRemoteTodoList:
    source_id: str
    name: str
    items: tuple[NewRemoteTodoItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteTodoListUpdate:
    name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteTodoItemUpdate:
    description: str
    completed: bool
