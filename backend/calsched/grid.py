# backend/calsched/grid.py
"""
Visible date sequences for the calendar views.

Week grids are always 7 consecutive days starting on the configured weekday.
Month grids are padded with days from the neighbouring months so that every
row is complete; only days inside the reference month are flagged as
``is_in_current_month``. Weekday numbering follows ``date.weekday()``
(0=Monday ... 6=Sunday).
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import holidays
from dateutil.relativedelta import relativedelta

from . import config

logger = logging.getLogger(__name__)

HolidayOracle = Callable[[date], bool]

VIEWS = ("day", "week", "month")


@dataclass(frozen=True)
class CalendarDay:
    date: date
    is_saturday: bool
    is_sunday: bool
    is_holiday: bool
    is_in_current_month: bool
    is_today: bool

    @property
    def is_weekend(self) -> bool:
        return self.is_saturday or self.is_sunday

    @property
    def is_day_off(self) -> bool:
        return self.is_weekend or self.is_holiday


def local_today() -> date:
    """Today in the configured application timezone; server and client share it."""
    return datetime.now(ZoneInfo(config.APP_TIMEZONE)).date()


def no_holidays(_d: date) -> bool:
    return False


def holiday_oracle(country: Optional[str] = None) -> HolidayOracle:
    """Build an ``is_holiday(date)`` oracle backed by the ``holidays`` package."""
    code = country or config.HOLIDAY_COUNTRY
    try:
        table = holidays.country_holidays(code)
    except NotImplementedError:
        logger.warning("No holiday calendar for country %r; weekends only", code)
        return no_holidays
    return lambda d: d in table


def _make_day(d: date, *, in_month: bool, is_holiday: HolidayOracle, today: date) -> CalendarDay:
    wd = d.weekday()
    return CalendarDay(
        date=d,
        is_saturday=wd == 5,
        is_sunday=wd == 6,
        is_holiday=bool(is_holiday(d)),
        is_in_current_month=in_month,
        is_today=d == today,
    )


def _check_week_start(week_start_day: int) -> None:
    if not 0 <= week_start_day <= 6:
        raise ValueError(f"week_start_day must be 0..6, got {week_start_day}")


def start_of_week(reference: date, week_start_day: int = 0) -> date:
    _check_week_start(week_start_day)
    return reference - timedelta(days=(reference.weekday() - week_start_day) % 7)


def week_dates(
    reference: date,
    week_start_day: int = 0,
    is_holiday: Optional[HolidayOracle] = None,
    today: Optional[date] = None,
) -> list[CalendarDay]:
    oracle = is_holiday or no_holidays
    today = today or local_today()
    first = start_of_week(reference, week_start_day)
    return [_make_day(first + timedelta(days=i), in_month=True, is_holiday=oracle, today=today) for i in range(7)]


def month_dates(
    reference: date,
    week_start_day: int = 0,
    is_holiday: Optional[HolidayOracle] = None,
    today: Optional[date] = None,
) -> list[CalendarDay]:
    oracle = is_holiday or no_holidays
    today = today or local_today()
    first_of_month = reference.replace(day=1)
    last_of_month = reference.replace(day=calendar.monthrange(reference.year, reference.month)[1])

    grid_start = start_of_week(first_of_month, week_start_day)
    # last column of the grid is the day before the next week start
    grid_end = last_of_month + timedelta(days=(week_start_day - 1 - last_of_month.weekday()) % 7)

    days = []
    d = grid_start
    while d <= grid_end:
        in_month = d.month == reference.month and d.year == reference.year
        days.append(_make_day(d, in_month=in_month, is_holiday=oracle, today=today))
        d += timedelta(days=1)
    return days


def day_dates(
    reference: date,
    week_start_day: int = 0,
    is_holiday: Optional[HolidayOracle] = None,
    today: Optional[date] = None,
) -> list[CalendarDay]:
    oracle = is_holiday or no_holidays
    return [_make_day(reference, in_month=True, is_holiday=oracle, today=today or local_today())]


def dates_for_view(
    view: str,
    reference: date,
    week_start_day: int = 0,
    is_holiday: Optional[HolidayOracle] = None,
    today: Optional[date] = None,
) -> list[CalendarDay]:
    builders = {"day": day_dates, "week": week_dates, "month": month_dates}
    try:
        build = builders[view]
    except KeyError:
        raise ValueError(f"Unknown view {view!r}; expected one of {', '.join(VIEWS)}") from None
    return build(reference, week_start_day, is_holiday, today)


def visible_range(days: list[CalendarDay]) -> tuple[date, date]:
    """First and last date of a grid; range-bounded fetches wait on this."""
    if not days:
        raise ValueError("Empty calendar grid")
    return days[0].date, days[-1].date


def shift_reference(reference: date, view: str, steps: int) -> date:
    """Move the reference date by ``steps`` pages of the given view."""
    if view == "day":
        return reference + timedelta(days=steps)
    if view == "week":
        return reference + timedelta(weeks=steps)
    if view == "month":
        # relativedelta clamps Jan 31 + 1 month to Feb 28/29
        return reference + relativedelta(months=steps)
    raise ValueError(f"Unknown view {view!r}")
