# backend/calsched/schemas.py
from __future__ import annotations
from typing import Literal, Optional
import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from .models import EventType, ParticipantStatus
from .participants import ParticipantCounts, count_statuses, normalize_participant_intents
from .recurrence import RecurrenceRule
from .timeaxis import format_hhmm, parse_hhmm


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _hhmm(v):
    return format_hhmm(v) if isinstance(v, int) else v


# ───────────────────────── schedules ────────────────────────────────
class ScheduleIn(CamelModel):
    """Request schema for schedule creation/update."""
    date:       dt.date
    end_date:   Optional[dt.date] = None
    start_time: str
    end_time:   str
    title:      str = Field(min_length=1, max_length=200)
    activity_description: Optional[str] = Field(default=None, max_length=2000)
    location_text: Optional[str] = Field(default=None, max_length=255)
    task_id:       Optional[str] = None
    project_id:    Optional[str] = None
    free_note:     Optional[str] = Field(default=None, max_length=2000)
    participant_user_ids: Optional[list[str]] = None
    recurrence: Optional[RecurrenceRule] = None

    @field_validator("end_date")
    @classmethod
    def _end_date_not_before_date(cls, v, info):
        start = info.data.get("date")
        if v and start and v < start:
            raise ValueError("end date must not be before the date")
        return v

    @field_validator("start_time")
    @classmethod
    def _start_format(cls, v):
        parse_hhmm(v)
        return v

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        end = parse_hhmm(v, allow_end_of_day=True)
        start_raw = info.data.get("start_time")
        if start_raw is None:
            return v
        same_day = info.data.get("end_date") in (None, info.data.get("date"))
        if same_day and end <= parse_hhmm(start_raw):
            raise ValueError("end time must be after start time")
        return v

    @property
    def start_minute(self) -> int:
        return parse_hhmm(self.start_time)

    @property
    def end_minute(self) -> int:
        return parse_hhmm(self.end_time, allow_end_of_day=True)

    @classmethod
    def duplicate_of(cls, schedule: "ScheduleOut", today: dt.date, owner_id: Optional[str] = None) -> "ScheduleIn":
        """
        Clone ``schedule`` for a new record on ``today``. Invitees are carried
        over as fresh invitations; the source is not touched. ``owner_id`` is
        whoever will own the clone and is never invited to it.
        """
        span = (schedule.end_date - schedule.date) if schedule.end_date else None
        intents = normalize_participant_intents(schedule.participants, source="duplicate")
        return cls(
            date=today,
            end_date=(today + span) if span else None,
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            title=schedule.title,
            activity_description=schedule.activity_description,
            location_text=schedule.location_text,
            task_id=schedule.task_id,
            project_id=schedule.project_id,
            free_note=schedule.free_note,
            participant_user_ids=[i.user_id for i in intents if i.user_id != owner_id],
        )


class ParticipantOut(CamelModel):
    id: int
    schedule_id: int
    user_id: str
    status: ParticipantStatus
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class ScheduleOut(CamelModel):
    """Response schema for a schedule row (includes ID and participants)."""
    id: int
    owner_id: str
    date: dt.date
    end_date: Optional[dt.date] = None
    start_time: str
    end_time: str
    title: str
    activity_description: Optional[str] = None
    location_text: Optional[str] = None
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    free_note: Optional[str] = None
    series_id: Optional[str] = None
    participants: list[ParticipantOut] = []
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _minutes_to_hhmm(cls, v):
        return _hhmm(v)

    @computed_field
    @property
    def participant_counts(self) -> dict[str, int]:
        counts = self.counts()
        return {"approved": counts.approved, "pending": counts.pending, "rejected": counts.rejected}

    def counts(self) -> ParticipantCounts:
        return count_statuses(self.participants)

    @property
    def start_minute(self) -> int:
        return parse_hhmm(self.start_time)

    @property
    def end_minute(self) -> int:
        return parse_hhmm(self.end_time, allow_end_of_day=True)

    @property
    def participant_user_ids(self) -> list[str]:
        return [p.user_id for p in self.participants]


class RespondIn(CamelModel):
    decision: Literal["APPROVED", "REJECTED"]


# ───────────────────────── events ───────────────────────────────────
class EventOut(CamelModel):
    id: int
    name: str
    type: EventType
    date: dt.date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    completed: bool = False

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _minutes_to_hhmm(cls, v):
        return _hhmm(v)

    @property
    def start_minute(self) -> Optional[int]:
        return parse_hhmm(self.start_time) if self.start_time else None

    @property
    def end_minute(self) -> Optional[int]:
        return parse_hhmm(self.end_time, allow_end_of_day=True) if self.end_time else None


# ───────────────────────── calendar grid ────────────────────────────
class CalendarDayOut(CamelModel):
    date: dt.date
    is_saturday: bool
    is_sunday: bool
    is_holiday: bool
    is_in_current_month: bool
    is_today: bool


class CalendarOut(CamelModel):
    view: str
    reference: dt.date
    start: dt.date
    end: dt.date
    days: list[CalendarDayOut]


# ───────────────────────── quick input ──────────────────────────────
class ParseIn(CamelModel):
    prompt: str


class ParseOut(CamelModel):
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    title: Optional[str] = None
    location_text: Optional[str] = None
    missing_fields: list[str] = []
