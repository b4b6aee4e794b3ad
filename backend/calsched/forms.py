# backend/calsched/forms.py
"""
The create/edit form as the client holds it: loose strings, checked locally
before anything is sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from .errors import ValidationFailed
from .participants import normalize_participant_intents
from .schemas import ScheduleIn
from .timeaxis import format_hhmm, parse_hhmm

REQUIRED_MESSAGES = {
    "date": "Date is required",
    "startTime": "Start time is required",
    "endTime": "End time is required",
    "title": "Title is required",
}


@dataclass
class ScheduleForm:
    date: str = ""
    start_time: str = "09:00"
    end_time: str = "17:00"
    title: str = ""
    end_date: str = ""
    activity_description: str = ""
    location_text: str = ""
    task_id: str = ""
    project_id: str = ""
    free_note: str = ""
    participant_user_ids: list[str] = field(default_factory=list)
    schedule_id: Optional[int] = None

    @property
    def is_edit(self) -> bool:
        return self.schedule_id is not None

    # ── prefill ──────────────────────────────────────────────────────
    @classmethod
    def from_drag(cls, day: date, start_minute: int, end_minute: int) -> "ScheduleForm":
        return cls(date=day.isoformat(), start_time=format_hhmm(start_minute), end_time=format_hhmm(end_minute))

    @classmethod
    def for_day(cls, day: date) -> "ScheduleForm":
        return cls(date=day.isoformat())

    @classmethod
    def from_schedule(cls, schedule: Any) -> "ScheduleForm":
        intents = normalize_participant_intents(schedule.participants, source="edit")
        return cls(
            date=schedule.date.isoformat(),
            end_date=schedule.end_date.isoformat() if schedule.end_date else "",
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            title=schedule.title,
            activity_description=schedule.activity_description or "",
            location_text=schedule.location_text or "",
            task_id=schedule.task_id or "",
            project_id=schedule.project_id or "",
            free_note=schedule.free_note or "",
            participant_user_ids=[i.user_id for i in intents],
            schedule_id=schedule.id,
        )

    # ── validation ───────────────────────────────────────────────────
    def errors(self) -> dict[str, list[str]]:
        """Field-level messages; empty means the form may be submitted."""
        errs: dict[str, list[str]] = {}
        values = {"date": self.date, "startTime": self.start_time, "endTime": self.end_time, "title": self.title}
        for key, value in values.items():
            if not (value or "").strip():
                errs[key] = [REQUIRED_MESSAGES[key]]

        start = end = None
        if "startTime" not in errs:
            try:
                start = parse_hhmm(self.start_time)
            except ValueError as exc:
                errs["startTime"] = [str(exc)]
        if "endTime" not in errs:
            try:
                end = parse_hhmm(self.end_time, allow_end_of_day=True)
            except ValueError as exc:
                errs["endTime"] = [str(exc)]

        day = end_day = None
        if "date" not in errs:
            try:
                day = date.fromisoformat(self.date)
            except ValueError:
                errs["date"] = ["Date must be YYYY-MM-DD"]
        if self.end_date.strip():
            try:
                end_day = date.fromisoformat(self.end_date)
            except ValueError:
                errs["endDate"] = ["End date must be YYYY-MM-DD"]
        if day and end_day and end_day < day:
            errs["endDate"] = ["End date must not be before the date"]

        same_day = end_day is None or end_day == day
        if start is not None and end is not None and same_day and end <= start:
            errs["endTime"] = ["End time must be after start time"]
        return errs

    def validate(self) -> None:
        errs = self.errors()
        if errs:
            raise ValidationFailed(errs)

    def to_payload(self) -> ScheduleIn:
        """Validated request body; raises ValidationFailed before any network call."""
        self.validate()
        return ScheduleIn(
            date=self.date,
            end_date=self.end_date or None,
            start_time=self.start_time,
            end_time=self.end_time,
            title=self.title.strip(),
            activity_description=self.activity_description or None,
            location_text=self.location_text or None,
            task_id=self.task_id or None,
            project_id=self.project_id or None,
            free_note=self.free_note or None,
            participant_user_ids=list(self.participant_user_ids),
        )

