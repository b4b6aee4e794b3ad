# backend/calsched/quickinput.py
"""
Free text → pre-filled schedule form.

"Site visit tomorrow 9-11am @ Town hall" becomes a form for tomorrow,
09:00–11:00, titled "Site visit", at "Town hall". Whatever cannot be found
is reported in ``missing`` so the form can ask for it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as dtparse

from .forms import ScheduleForm
from .timeaxis import format_hhmm

WEEKDAY = {"mon": 0, "tue": 1, "tues": 1, "wed": 2, "thu": 3, "thur": 3, "thurs": 3, "fri": 4, "sat": 5, "sun": 6}

TIME_RANGE_RE = re.compile(r"""
    (?P<s_h>\d{1,2})
    (?::(?P<s_m>\d{2}))?
    \s*(?P<s_ampm>[ap]m)?
    \s*(?:-|–|~|to)\s*
    (?P<e_h>\d{1,2})
    (?::(?P<e_m>\d{2}))?
    \s*(?P<e_ampm>[ap]m)?
""", re.IGNORECASE | re.VERBOSE)

TIME_SINGLE_RE = re.compile(r"\b(?P<h>\d{1,2})(?::(?P<m>\d{2}))\s*(?P<ampm>[ap]m)?\b|\b(?P<h2>\d{1,2})\s*(?P<ampm2>[ap]m)\b", re.IGNORECASE)
DATE_TOKEN_RE = re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b|\b\d{4}-\d{2}-\d{2}\b")
RELATIVE_RE = re.compile(r"\b(today|tomorrow|(?:this|next)\s+(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)\w*)\b", re.IGNORECASE)
LOCATION_RE = re.compile(r"(?:@|\bat\b(?=\s+\D))\s+(?P<loc>[^,.;\n]+)", re.IGNORECASE)

DEFAULT_DURATION = 60


@dataclass
class QuickDraft:
    form: ScheduleForm
    missing: list[str] = field(default_factory=list)


def to_24h(h: int, m: int, ampm: Optional[str]) -> tuple[int, int]:
    if ampm:
        a = ampm.lower()
        if a == "pm" and h != 12: h += 12
        if a == "am" and h == 12: h = 0
    return h, m


def _valid(h: int, m: int) -> bool:
    return 0 <= h <= 23 and 0 <= m <= 59


def _weekday_index(word: str) -> int:
    for n in (5, 4, 3):
        if word[:n] in WEEKDAY:
            return WEEKDAY[word[:n]]
    raise ValueError(f"Not a weekday: {word!r}")


def _next_weekday(base: date, target: int, inclusive: bool) -> date:
    delta = (target - base.weekday()) % 7
    if delta == 0 and not inclusive:
        delta = 7
    return base + timedelta(days=delta)


def parse_date(text: str, today: date) -> Optional[date]:
    m = RELATIVE_RE.search(text)
    if m:
        word = m.group(1).lower()
        if word == "today":
            return today
        if word == "tomorrow":
            return today + timedelta(days=1)
        kind, day = word.split()
        return _next_weekday(today, _weekday_index(day), inclusive=(kind == "this"))
    m = DATE_TOKEN_RE.search(text)
    if m:
        try:
            return dtparse.parse(m.group(0), default=_at_midnight(today)).date()
        except (ValueError, OverflowError):
            return None
    return None


def _at_midnight(d: date) -> datetime:
    return datetime(d.year, d.month, d.day)


def parse_times(text: str) -> tuple[Optional[int], Optional[int]]:
    # date tokens like 6/3 would otherwise read as times
    text = DATE_TOKEN_RE.sub(" ", text)
    m = TIME_RANGE_RE.search(text)
    if m and (m.group("s_m") or m.group("e_m") or m.group("s_ampm") or m.group("e_ampm")):
        s_ampm, e_ampm = m.group("s_ampm"), m.group("e_ampm")
        # "9-11am": one side's am/pm applies to both
        s_ampm, e_ampm = (s_ampm or e_ampm), (e_ampm or s_ampm)
        s_h, s_m = to_24h(int(m.group("s_h")), int(m.group("s_m") or 0), s_ampm)
        e_h, e_m = to_24h(int(m.group("e_h")), int(m.group("e_m") or 0), e_ampm)
        if _valid(s_h, s_m) and _valid(e_h, e_m):
            return s_h * 60 + s_m, e_h * 60 + e_m
    m = TIME_SINGLE_RE.search(text)
    if m:
        if m.group("h") is not None:
            h, mm = to_24h(int(m.group("h")), int(m.group("m")), m.group("ampm"))
        else:
            h, mm = to_24h(int(m.group("h2")), 0, m.group("ampm2"))
        if _valid(h, mm):
            start = h * 60 + mm
            return start, min(start + DEFAULT_DURATION, 24 * 60)
    return None, None


def scrub_title(text: str) -> str:
    t = LOCATION_RE.sub("", text)
    t = RELATIVE_RE.sub("", t)
    t = DATE_TOKEN_RE.sub("", t)
    t = TIME_RANGE_RE.sub("", t)
    t = TIME_SINGLE_RE.sub("", t)
    t = re.sub(r"\s{2,}", " ", t).strip(" ,.-\n\t")
    return t


def parse_quick_input(text: str, today: date) -> QuickDraft:
    text = (text or "").strip()
    form = ScheduleForm(start_time="", end_time="")
    missing: list[str] = []

    day = parse_date(text, today)
    if day:
        form.date = day.isoformat()
    else:
        missing.append("date")

    start, end = parse_times(text)
    if start is not None and end is not None and end > start:
        form.start_time, form.end_time = format_hhmm(start), format_hhmm(end)
    else:
        missing.append("time")

    loc = LOCATION_RE.search(text)
    if loc:
        form.location_text = loc.group("loc").strip()

    form.title = scrub_title(text)
    if not form.title:
        missing.append("title")
    return QuickDraft(form=form, missing=missing)
