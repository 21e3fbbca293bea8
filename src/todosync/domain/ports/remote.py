"""Port for the remote todo service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from todosync.domain.model import (
        NewRemoteTodoList,
        RemoteTodoItem,
        RemoteTodoItemUpdate,
        RemoteTodoList,
        RemoteTodoListUpdate,
    )


@runtime_checkable
class TodoRemote(Protocol):
    """Remote store of todo lists.

    Implementations raise ``RemoteTransportError`` for network failures,
    ``RemoteNotFoundError`` for unknown ids and ``RemoteStatusError`` for any other
    non-success answer.
    """

    @property
    def source_id(self) -> str: ...

    def list_todo_lists(self) -> list[RemoteTodoList]: ...

    def list_todo_lists_modified_since(self, since: datetime) -> list[RemoteTodoList]: ...

    def create_todo_list(self, request: NewRemoteTodoList) -> RemoteTodoList: ...

    def update_todo_list(self, list_id: str, request: RemoteTodoListUpdate) -> RemoteTodoList: ...

    def delete_todo_list(self, list_id: str) -> None: ...

    def update_todo_item(
        self, list_id: str, item_id: str, request: RemoteTodoItemUpdate
    ) -> RemoteTodoItem: ...

    def delete_todo_item(self, list_id: str, item_id: str) -> None: ...
