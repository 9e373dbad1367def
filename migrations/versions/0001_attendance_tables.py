"""Create attendance_events and work_sessions tables

Revision ID: 0001_attendance_tables
Revises:
Create Date: 2024-01-08

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_attendance_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLite only autoincrements INTEGER PRIMARY KEY
identifier = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "attendance_events",
        sa.Column("ae_id", identifier, autoincrement=True, nullable=False),
        sa.Column("ae_user_id", sa.BigInteger(), nullable=False),
        sa.Column(
            "ae_kind",
            sa.Enum("clock_in", "clock_out", name="event_kind", native_enum=False, length=10),
            nullable=False,
        ),
        sa.Column("ae_occurred_at", sa.DateTime(), nullable=False),
        sa.Column("ae_is_modified", sa.Boolean(), nullable=False),
        sa.Column("ae_original_occurred_at", sa.DateTime(), nullable=True),
        sa.Column("ae_created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("ae_updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("ae_id", name=op.f("pk_attendance_events")),
    )
    op.create_index(op.f("ix_attendance_events_ae_user_id"), "attendance_events", ["ae_user_id"], unique=False)
    op.create_index(
        "ix_attendance_events_user_occurred", "attendance_events", ["ae_user_id", "ae_occurred_at"], unique=False
    )

    op.create_table(
        "work_sessions",
        sa.Column("ws_id", identifier, autoincrement=True, nullable=False),
        sa.Column("ws_user_id", sa.BigInteger(), nullable=False),
        sa.Column("ws_start_at", sa.DateTime(), nullable=False),
        sa.Column("ws_end_at", sa.DateTime(), nullable=True),
        sa.Column("ws_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("ws_is_completed", sa.Boolean(), nullable=False),
        sa.Column("ws_work_date", sa.Date(), nullable=False),
        sa.Column("ws_created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("ws_id", name=op.f("pk_work_sessions")),
    )
    op.create_index(op.f("ix_work_sessions_ws_user_id"), "work_sessions", ["ws_user_id"], unique=False)
    op.create_index("ix_work_sessions_user_date", "work_sessions", ["ws_user_id", "ws_work_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_work_sessions_user_date", table_name="work_sessions")
    op.drop_index(op.f("ix_work_sessions_ws_user_id"), table_name="work_sessions")
    op.drop_table("work_sessions")
    op.drop_index("ix_attendance_events_user_occurred", table_name="attendance_events")
    op.drop_index(op.f("ix_attendance_events_ae_user_id"), table_name="attendance_events")
    op.drop_table("attendance_events")
