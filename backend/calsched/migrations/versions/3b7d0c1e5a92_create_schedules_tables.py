"""create schedules, participants and events tables

Revision ID: 3b7d0c1e5a92
Revises:
Create Date: 2026-10-19 10:12:44.018306
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b7d0c1e5a92"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PARTICIPANT_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", name="participantstatus", native_enum=False, length=16)
EVENT_TYPE = sa.Enum("OFFICIAL", "TEAM", "OTHER", name="eventtype", native_enum=False, length=16)


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Integer(), nullable=False),
        sa.Column("end_time", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("activity_description", sa.String(length=2000), nullable=True),
        sa.Column("location_text", sa.String(length=255), nullable=True),
        sa.Column("task_id", sa.String(length=64), nullable=True),
        sa.Column("project_id", sa.String(length=64), nullable=True),
        sa.Column("free_note", sa.String(length=2000), nullable=True),
        sa.Column("series_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_schedules_id", "schedules", ["id"])
    op.create_index("ix_schedules_owner_id", "schedules", ["owner_id"])
    op.create_index("ix_schedules_date", "schedules", ["date"])
    op.create_index("ix_schedules_series_id", "schedules", ["series_id"])

    op.create_table(
        "schedule_participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("status", PARTICIPANT_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("schedule_id", "user_id", name="uq_participant_schedule_user"),
    )
    op.create_index("ix_schedule_participants_id", "schedule_participants", ["id"])
    op.create_index("ix_schedule_participants_schedule_id", "schedule_participants", ["schedule_id"])
    op.create_index("ix_schedule_participants_user_id", "schedule_participants", ["user_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", EVENT_TYPE, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Integer(), nullable=True),
        sa.Column("end_time", sa.Integer(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_date", "events", ["date"])


def downgrade() -> None:
    op.drop_index("ix_events_date", table_name="events")
    op.drop_index("ix_events_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_schedule_participants_user_id", table_name="schedule_participants")
    op.drop_index("ix_schedule_participants_schedule_id", table_name="schedule_participants")
    op.drop_index("ix_schedule_participants_id", table_name="schedule_participants")
    op.drop_table("schedule_participants")
    op.drop_index("ix_schedules_series_id", table_name="schedules")
    op.drop_index("ix_schedules_date", table_name="schedules")
    op.drop_index("ix_schedules_owner_id", table_name="schedules")
    op.drop_index("ix_schedules_id", table_name="schedules")
    op.drop_table("schedules")
