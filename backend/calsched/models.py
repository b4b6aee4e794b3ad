from __future__ import annotations
from typing import Optional
import datetime as dt
import enum

from sqlalchemy import Integer, String, Date, DateTime, Boolean, ForeignKey, UniqueConstraint, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ParticipantStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EventType(str, enum.Enum):
    OFFICIAL = "OFFICIAL"
    TEAM = "TEAM"
    OTHER = "OTHER"


class Schedule(Base):
    __tablename__ = "schedules"

    id:       Mapped[int]            = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str]            = mapped_column(String(64), nullable=False, index=True)
    date:     Mapped[dt.date]           = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    # minute of day, 0..1440
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)
    end_time:   Mapped[int] = mapped_column(Integer, nullable=False)
    title:      Mapped[str] = mapped_column(String(200), nullable=False)
    activity_description: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    location_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    task_id:       Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    project_id:    Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    free_note:     Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)
    series_id:     Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    participants: Mapped[list["ScheduleParticipant"]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ScheduleParticipant.id",
    )


class ScheduleParticipant(Base):
    __tablename__ = "schedule_participants"
    __table_args__ = (UniqueConstraint("schedule_id", "user_id", name="uq_participant_schedule_user"),)

    id:          Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    schedule_id: Mapped[int] = mapped_column(ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id:     Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[ParticipantStatus] = mapped_column(
        Enum(ParticipantStatus, native_enum=False, length=16), default=ParticipantStatus.PENDING, nullable=False
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    schedule: Mapped[Schedule] = relationship(back_populates="participants")


class Event(Base):
    """Externally sourced; this service only reads it."""

    __tablename__ = "events"

    id:   Mapped[int]       = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str]       = mapped_column(String(200), nullable=False)
    type: Mapped[EventType] = mapped_column(Enum(EventType, native_enum=False, length=16), nullable=False)
    date: Mapped[dt.date]      = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    end_time:   Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed:  Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
