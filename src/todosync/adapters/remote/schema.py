"""Wire schemas for the remote todo API (snake_case JSON)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from todosync.domain.clock import ensure_aware
from todosync.domain.model import (
    NewRemoteTodoList,
    RemoteTodoItem,
    RemoteTodoItemUpdate,
    RemoteTodoList,
    RemoteTodoListUpdate,
)


class RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class TodoItemPayload(RemoteModel):
    id: str
    source_id: str | None = None
    description: str
    completed: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalise_timestamp(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def to_domain(self) -> RemoteTodoItem:
        return RemoteTodoItem(
            id=self.id,
            source_id=self.source_id,
            description=self.description,
            completed=self.completed,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class TodoListPayload(RemoteModel):
    id: str
    source_id: str | None = None
    name: str
    created_at: datetime
    updated_at: datetime
    items: list[TodoItemPayload] = Field(default_factory=list)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalise_timestamp(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def to_domain(self) -> RemoteTodoList:
        return RemoteTodoList(
            id=self.id,
            source_id=self.source_id,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            items=tuple(item.to_domain() for item in self.items),
        )


class CreateTodoItemRequest(RemoteModel):
    source_id: str
    description: str
    completed: bool = False


class CreateTodoListRequest(RemoteModel):
    source_id: str
    name: str
    items: list[CreateTodoItemRequest] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, request: NewRemoteTodoList) -> CreateTodoListRequest:
        return cls(
            source_id=request.source_id,
            name=request.name,
            items=[
                CreateTodoItemRequest(
                    source_id=item.source_id,
                    description=item.description,
                    completed=item.completed,
                )
                for item in request.items
            ],
        )


class UpdateTodoListRequest(RemoteModel):
    name: str

    @classmethod
    def from_domain(cls, request: RemoteTodoListUpdate) -> UpdateTodoListRequest:
        return cls(name=request.name)


class UpdateTodoItemRequest(RemoteModel):
    description: str
    completed: bool

    @classmethod
    def from_domain(cls, request: RemoteTodoItemUpdate) -> UpdateTodoItemRequest:
        return cls(description=request.description, completed=request.completed)
