"""HTTP client for the remote todo API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from todosync.adapters.http_resilience import ResilientClient
from todosync.domain.errors import (
    RemoteNotFoundError,
    RemotePayloadError,
    RemoteStatusError,
    RemoteTransportError,
)
from todosync.resilience import ResiliencePipeline

from .schema import (
    CreateTodoListRequest,
    TodoItemPayload,
    TodoListPayload,
    UpdateTodoItemRequest,
    UpdateTodoListRequest,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from datetime import datetime
    from types import TracebackType

    from todosync.config.http_resilience import ResilienceConfig
    from todosync.config.remote import RemoteApiConfig
    from todosync.domain.model import (
        NewRemoteTodoList,
        RemoteTodoItem,
        RemoteTodoItemUpdate,
        RemoteTodoList,
        RemoteTodoListUpdate,
    )

log = getLogger(__name__)

LISTS_PATH = "/todolists"


class HttpTodoRemote:
    """Blocking facade over the async HTTP client.

    Each public call runs once under the remote-call pipeline (the circuit breaker);
    transient failures are retried by the client's transport. All calls share one
    event loop and one underlying ``ResilientClient`` so connection pooling and the
    rate limit span the whole sync cycle; call ``close()`` (or use ``with``) when done.
    """

    def __init__(
        self,
        *,
        config: RemoteApiConfig,
        pipeline: ResiliencePipeline | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._pipeline = pipeline or ResiliencePipeline.passthrough("remote-call")
        self._client_factory = client_factory or ResilientClient
        self._runner: asyncio.Runner | None = None
        self._client: ResilientClient | None = None

    @property
    def source_id(self) -> str:
        return self._config.source_id

    def __enter__(self) -> HttpTodoRemote:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is None:
            return
        if self._client is not None:
            self._runner.run(self._client.aclose())
            self._client = None
        self._runner.close()
        self._runner = None

    def list_todo_lists(self) -> list[RemoteTodoList]:
        return self._call(lambda: self._list_async(params=None))

    def list_todo_lists_modified_since(self, since: datetime) -> list[RemoteTodoList]:
        lists = self._call(lambda: self._list_async(params={"modified_since": since.isoformat()}))
        # the server may ignore the filter
        return [todo_list for todo_list in lists if todo_list.updated_at >= since]

    def create_todo_list(self, request: NewRemoteTodoList) -> RemoteTodoList:
        body = CreateTodoListRequest.from_domain(request).model_dump(mode="json")
        return self._call(lambda: self._send_list_async("POST", LISTS_PATH, body))

    def update_todo_list(self, list_id: str, request: RemoteTodoListUpdate) -> RemoteTodoList:
        body = UpdateTodoListRequest.from_domain(request).model_dump(mode="json")
        return self._call(lambda: self._send_list_async("PATCH", _list_path(list_id), body))

    def delete_todo_list(self, list_id: str) -> None:
        self._call(lambda: self._delete_async(_list_path(list_id)))

    def update_todo_item(
        self, list_id: str, item_id: str, request: RemoteTodoItemUpdate
    ) -> RemoteTodoItem:
        body = UpdateTodoItemRequest.from_domain(request).model_dump(mode="json")
        return self._call(lambda: self._send_item_async(_item_path(list_id, item_id), body))

    def delete_todo_item(self, list_id: str, item_id: str) -> None:
        self._call(lambda: self._delete_async(_item_path(list_id, item_id)))

    def _call[T](self, operation: Callable[[], Coroutine[Any, Any, T]]) -> T:
        return self._pipeline.execute(lambda: self._run(operation()))

    def _run[T](self, coroutine: Coroutine[Any, Any, T]) -> T:
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(coroutine)

    async def _list_async(self, *, params: dict[str, str] | None) -> list[RemoteTodoList]:
        response = await self._request("GET", LISTS_PATH, params=params)
        payload = _json(response)
        if not isinstance(payload, list):
            raise RemotePayloadError("Unexpected remote todo list payload: expected a JSON array")
        return [_parse(TodoListPayload, entry).to_domain() for entry in payload]

    async def _send_list_async(
        self, method: str, path: str, body: dict[str, object]
    ) -> RemoteTodoList:
        response = await self._request(method, path, json=body)
        return _parse(TodoListPayload, _json(response)).to_domain()

    async def _send_item_async(self, path: str, body: dict[str, object]) -> RemoteTodoItem:
        response = await self._request("PATCH", path, json=body)
        return _parse(TodoItemPayload, _json(response)).to_domain()

    async def _delete_async(self, path: str) -> None:
        await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
    ) -> httpx.Response:
        if self._resilience.base_url is None:
            raise RemoteStatusError("Missing remote todo API base_url", status_code=0)
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TransportError as exc:
            raise RemoteTransportError(f"{method} {path} failed: {exc}") from exc

        log.debug("%s %s -> %s", method, path, response.status_code)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RemoteNotFoundError(f"{method} {path} returned 404 Not Found")
        if response.is_error:
            raise RemoteStatusError(
                f"Remote todo API returned {response.status_code} {response.reason_phrase} "
                f"for {method} {path}",
                status_code=response.status_code,
            )
        return response


def _list_path(list_id: str) -> str:
    return f"{LISTS_PATH}/{list_id}"


def _item_path(list_id: str, item_id: str) -> str:
    return f"{LISTS_PATH}/{list_id}/todoitems/{item_id}"


def _json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise RemotePayloadError(f"Remote todo API returned invalid JSON: {exc}") from exc


def _parse[TModel: (TodoListPayload, TodoItemPayload)](
    model: type[TModel], payload: object
) -> TModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RemotePayloadError(f"Unexpected remote {model.__name__} payload: {exc}") from exc
