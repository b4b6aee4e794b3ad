# backend/calsched/timeaxis.py
"""
Vertical geometry of a 24-hour day column.

One hour of elapsed time maps to a constant pixel height. ``position_for``
and ``minute_for`` are exact inverses of each other; the drag selector relies
on that to turn pointer movement back into minutes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Iterable, Optional

from . import config

MINUTES_PER_DAY = 24 * 60
TICK_MINUTES = 15

HHMM_RE = re.compile(r"^(?P<h>\d{2}):(?P<m>\d{2})$")


def parse_hhmm(value: str, *, allow_end_of_day: bool = False) -> int:
    """``"09:30"`` → 570. ``"24:00"`` is accepted only as an end time."""
    m = HHMM_RE.match(value or "")
    if not m:
        raise ValueError(f"Time must be HH:MM, got {value!r}")
    h, mm = int(m.group("h")), int(m.group("m"))
    if allow_end_of_day and h == 24 and mm == 0:
        return MINUTES_PER_DAY
    if h > 23 or mm > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return h * 60 + mm


def format_hhmm(minute: int) -> str:
    if not 0 <= minute <= MINUTES_PER_DAY:
        raise ValueError(f"Minute out of range: {minute}")
    return f"{minute // 60:02d}:{minute % 60:02d}"


def snap(minute: float, tick: int = TICK_MINUTES) -> int:
    """Nearest tick; halves round up so 7.5 → 15."""
    return int((minute + tick / 2) // tick) * tick


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class TimeInterval:
    start_minute: int
    end_minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY:
            raise ValueError(f"Invalid interval {self.start_minute}..{self.end_minute}")

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute

    def as_hhmm(self) -> tuple[str, str]:
        return format_hhmm(self.start_minute), format_hhmm(self.end_minute)


@dataclass(frozen=True)
class BlockGeometry:
    top: float
    height: float


@dataclass(frozen=True)
class PositionedBlock:
    kind: str                 # "schedule" | "event"
    item_id: int
    label: str
    start_minute: int
    end_minute: int
    geometry: BlockGeometry
    z_index: int
    approved_count: int = 0
    color_key: Optional[str] = None
    dimmed: bool = False


@dataclass(frozen=True)
class DayColumn:
    date: date
    blocks: list[PositionedBlock]
    all_day: list[Any]


class TimeAxisRenderer:
    """Maps minute-of-day to pixels for a fixed hour height."""

    def __init__(self, hour_height: Optional[float] = None, min_block_height: Optional[float] = None) -> None:
        self.hour_height = float(hour_height if hour_height is not None else config.HOUR_HEIGHT_PX)
        self.min_block_height = float(min_block_height if min_block_height is not None else config.MIN_BLOCK_HEIGHT_PX)
        if self.hour_height <= 0:
            raise ValueError("hour_height must be positive")

    @property
    def column_height(self) -> float:
        return 24 * self.hour_height

    @property
    def pixels_per_tick(self) -> float:
        return self.hour_height * TICK_MINUTES / 60

    def position_for(self, minute: float) -> float:
        return minute / 60 * self.hour_height

    def minute_for(self, px: float) -> float:
        return px / self.hour_height * 60

    def geometry_for(self, start_minute: int, end_minute: int) -> BlockGeometry:
        top = self.position_for(start_minute)
        height = self.position_for(end_minute) - top
        return BlockGeometry(top=top, height=max(height, self.min_block_height))

    def hour_lines(self) -> list[tuple[int, float]]:
        return [(h, self.position_for(h * 60)) for h in range(24)]

    # ── layout ───────────────────────────────────────────────────────
    @staticmethod
    def span_on_day(schedule: Any, day: date) -> Optional[tuple[int, int]]:
        """Portion of a (possibly multi-day) schedule that falls on ``day``."""
        first = schedule.date
        last = schedule.end_date or schedule.date
        if day < first or day > last:
            return None
        start = schedule.start_minute if day == first else 0
        end = schedule.end_minute if day == last else MINUTES_PER_DAY
        if end <= start:
            return None
        return start, end

    def layout_day(self, day: date, schedules: Iterable[Any], events: Iterable[Any] = ()) -> DayColumn:
        placed: list[tuple[int, int, PositionedBlock]] = []
        all_day: list[Any] = []

        for s in schedules:
            span = self.span_on_day(s, day)
            if span is None:
                continue
            approved = sum(1 for p in (s.participants or []) if _enum_value(getattr(p, "status", p)) == "APPROVED")
            placed.append((span[0], 0, PositionedBlock(
                kind="schedule",
                item_id=s.id,
                label=s.title,
                start_minute=span[0],
                end_minute=span[1],
                geometry=self.geometry_for(*span),
                z_index=0,
                approved_count=approved,
                color_key=s.owner_id,
            )))

        for e in events:
            if e.date != day:
                continue
            if e.start_minute is None:
                all_day.append(e)
                continue
            end = e.end_minute if e.end_minute is not None else e.start_minute
            end = max(end, e.start_minute)
            placed.append((e.start_minute, 1, PositionedBlock(
                kind="event",
                item_id=e.id,
                label=e.name,
                start_minute=e.start_minute,
                end_minute=end,
                geometry=self.geometry_for(e.start_minute, end),
                z_index=0,
                color_key=_enum_value(e.type),
                dimmed=bool(e.completed),
            )))

        # later starts paint above earlier ones
        placed.sort(key=lambda t: (t[0], t[1], t[2].item_id))
        blocks = [
            replace(b, z_index=10 + i)
            for i, (_, _, b) in enumerate(placed)
        ]
        return DayColumn(date=day, blocks=blocks, all_day=all_day)

    def layout_days(self, days: Iterable[date], schedules: list[Any], events: list[Any] = ()) -> list[DayColumn]:
        return [self.layout_day(d, schedules, events) for d in days]


def _enum_value(value: Any) -> str:
    return getattr(value, "value", value)
