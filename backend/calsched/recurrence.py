# backend/calsched/recurrence.py
"""Expand a repeat rule into the dates of a schedule series."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule
from pydantic import BaseModel, Field, model_validator

MAX_OCCURRENCES = 366

_FREQ = {"DAILY": DAILY, "WEEKLY": WEEKLY, "MONTHLY": MONTHLY}


class RecurrenceRule(BaseModel):
    """Repeat settings; weekdays use date.weekday() numbering (0=Monday)."""
    frequency: Literal["DAILY", "WEEKLY", "MONTHLY"] = "WEEKLY"
    interval: int = Field(default=1, ge=1, le=52)
    until: date
    weekdays: Optional[list[int]] = None

    @model_validator(mode="after")
    def _check(self):
        if self.weekdays is not None:
            if self.frequency != "WEEKLY":
                raise ValueError("weekdays only apply to WEEKLY repeats")
            if not self.weekdays or any(not 0 <= d <= 6 for d in self.weekdays):
                raise ValueError("weekdays must be a non-empty list of 0..6")
        return self

    def occurrences(self, start: date) -> list[date]:
        """All dates from ``start`` through ``until`` inclusive, capped at MAX_OCCURRENCES."""
        if self.until < start:
            raise ValueError("until must not be before the first date")
        kwargs = {}
        if self.frequency == "WEEKLY":
            kwargs["byweekday"] = sorted(set(self.weekdays or [start.weekday()]))
        rule = rrule(
            _FREQ[self.frequency],
            dtstart=datetime(start.year, start.month, start.day),
            interval=self.interval,
            until=datetime(self.until.year, self.until.month, self.until.day),
            **kwargs,
        )
        out: list[date] = []
        for dt in rule:
            out.append(dt.date())
            if len(out) >= MAX_OCCURRENCES:
                break
        return out
