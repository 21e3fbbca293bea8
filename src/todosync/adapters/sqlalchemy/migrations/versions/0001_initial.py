"""Create the todo_list and todo_item tables.

Revision ID: 0001_initial
Revises:
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from todosync.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _sync_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("last_modified", UTCDateTime(), nullable=True),
        sa.Column("last_synced_at", UTCDateTime(), nullable=True),
        sa.Column("is_sync_pending", sa.Boolean(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", UTCDateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "todo_list",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_sync_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_todo_list")),
    )
    op.create_index("ix_todo_list_external_id", "todo_list", ["external_id"])

    op.create_table(
        "todo_item",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("todo_list_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=1024), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        *_sync_columns(),
        sa.ForeignKeyConstraint(
            ["todo_list_id"],
            ["todo_list.id"],
            name=op.f("fk_todo_item_todo_list_id_todo_list"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_todo_item")),
    )
    op.create_index("ix_todo_item_todo_list_id", "todo_item", ["todo_list_id"])
    op.create_index("ix_todo_item_external_id", "todo_item", ["external_id"])


def downgrade() -> None:
    op.drop_index("ix_todo_item_external_id", table_name="todo_item")
    op.drop_index("ix_todo_item_todo_list_id", table_name="todo_item")
    op.drop_table("todo_item")
    op.drop_index("ix_todo_list_external_id", table_name="todo_list")
    op.drop_table("todo_list")
