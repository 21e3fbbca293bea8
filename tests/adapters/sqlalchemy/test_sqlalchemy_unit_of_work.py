from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect

from todosync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from tests.helpers.todos import make_item, make_list

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemySyncUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_runs_migrations(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    tables = set(inspect(sqlite_engine).get_table_names())
    assert {"todo_list", "todo_item", "alembic_version"} <= tables


def test_unit_of_work_persists_lists_with_items(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    todo_list = make_list(pending=True)
    todo_list.add_item(make_item("Milk"))
    todo_list.add_item(make_item("Eggs", external_id="item-2", completed=True))

    with SqlAlchemySyncUnitOfWork() as uow:
        uow.repositories.todo_lists.add(todo_list)
        uow.commit()

    with SqlAlchemySyncUnitOfWork() as uow:
        loaded = uow.repositories.todo_lists.get(todo_list.id)
        assert loaded is not None
        assert loaded.is_sync_pending
        assert [item.description for item in loaded.items] == ["Milk", "Eggs"]
        assert loaded.items[1].is_completed
        assert loaded.items[0].todo_list is loaded
        assert loaded.last_modified == todo_list.last_modified


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    todo_list = make_list()

    with pytest.raises(RuntimeError), SqlAlchemySyncUnitOfWork() as uow:
        uow.repositories.todo_lists.add(todo_list)
        uow.session.flush()
        raise RuntimeError("boom")

    with SqlAlchemySyncUnitOfWork() as uow:
        assert uow.repositories.todo_lists.get(todo_list.id) is None


def test_repositories_require_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemySyncUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories
