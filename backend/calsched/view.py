# backend/calsched/view.py
"""
The calendar screen's controller.

Holds the reference date, the view (day / week / month) and the view mode,
and talks to a schedule repository. Every mutation is followed by a refetch
of the visible range; nothing is patched into local state optimistically.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Protocol

from . import config, grid
from .drag import DragIntervalSelector, PointerHost
from .errors import ScheduleNotFound
from .forms import ScheduleForm
from .grid import CalendarDay
from .schemas import EventOut, ParticipantOut, ScheduleIn, ScheduleOut
from .timeaxis import DayColumn, TimeAxisRenderer
from .viewmode import DELETE, DUPLICATE, EDIT, Presentation, ViewContext, ViewMode, present

logger = logging.getLogger(__name__)


class ScheduleSource(Protocol):
    """What the view needs from a repository (``ApiScheduleRepository`` satisfies it)."""

    def list_schedules(self, start: date, end: date, *, owner_id: Optional[str] = None,
                       all_members: bool = False) -> list[ScheduleOut]: ...
    def list_events(self, start: date, end: date) -> list[EventOut]: ...
    def get(self, schedule_id: int) -> ScheduleOut: ...
    def create(self, payload: ScheduleIn) -> ScheduleOut: ...
    def update(self, schedule_id: int, payload: ScheduleIn) -> ScheduleOut: ...
    def delete(self, schedule_id: int) -> None: ...
    def respond(self, schedule_id: int, decision: str) -> ParticipantOut: ...


@dataclass
class CalendarSnapshot:
    view: str
    reference: date
    days: list[CalendarDay]
    schedules: list[ScheduleOut] = field(default_factory=list)
    events: list[EventOut] = field(default_factory=list)
    # time-axis columns; month view has none
    columns: list[DayColumn] = field(default_factory=list)

    def schedules_on(self, day: date) -> list[ScheduleOut]:
        return [s for s in self.schedules if s.date <= day <= (s.end_date or s.date)]

    def events_on(self, day: date) -> list[EventOut]:
        return [e for e in self.events if e.date == day]


@dataclass(frozen=True)
class OpenSchedule:
    schedule: ScheduleOut
    presentation: Presentation


class CalendarView:
    def __init__(
        self,
        repository: ScheduleSource,
        context: ViewContext,
        *,
        host: Optional[PointerHost] = None,
        is_holiday: Optional[Callable[[date], bool]] = None,
        renderer: Optional[TimeAxisRenderer] = None,
        week_start_day: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.repository = repository
        self.context = context
        self.host = host
        self.is_holiday = is_holiday or grid.no_holidays
        self.renderer = renderer or TimeAxisRenderer()
        self.week_start_day = config.WEEK_START_DAY if week_start_day is None else week_start_day
        self._today = today or grid.local_today

        self.view = "week"
        self.reference = self._today()
        self.snapshot: Optional[CalendarSnapshot] = None
        self.draft: Optional[ScheduleForm] = None
        self._selector: Optional[DragIntervalSelector] = None

    # ── grid & fetch ─────────────────────────────────────────────────
    def visible_days(self, reference: Optional[date] = None, view: Optional[str] = None) -> list[CalendarDay]:
        return grid.dates_for_view(
            view or self.view,
            reference or self.reference,
            self.week_start_day,
            self.is_holiday,
            self._today(),
        )

    def refresh(self, reference: Optional[date] = None, view: Optional[str] = None) -> CalendarSnapshot:
        """Rebuild the grid, then fetch schedules and events for its range side by side."""
        if view is not None:
            self.view = view
        if reference is not None:
            self.reference = reference
        days = self.visible_days()
        start, end = grid.visible_range(days)
        all_members = self.context.view_mode == ViewMode.ALL

        with ThreadPoolExecutor(max_workers=2) as pool:
            schedules_f = pool.submit(self.repository.list_schedules, start, end, all_members=all_members)
            events_f = pool.submit(self.repository.list_events, start, end)
            schedules, events = schedules_f.result(), events_f.result()

        columns: list[DayColumn] = []
        if self.view != "month":
            columns = self.renderer.layout_days([d.date for d in days], schedules, events)
        self.snapshot = CalendarSnapshot(self.view, self.reference, days, schedules, events, columns)
        logger.debug("Refreshed %s view %s..%s: %d schedules, %d events",
                     self.view, start, end, len(schedules), len(events))
        return self.snapshot

    def navigate(self, steps: int) -> CalendarSnapshot:
        return self.refresh(grid.shift_reference(self.reference, self.view, steps))

    def set_view_mode(self, mode: ViewMode) -> CalendarSnapshot:
        self.context = ViewContext(self.context.current_user_id, mode)
        return self.refresh()

    # ── detail ───────────────────────────────────────────────────────
    def open_schedule(self, schedule_id: int) -> Optional[OpenSchedule]:
        """Detail plus what may be done with it; ``None`` when it no longer exists."""
        try:
            schedule = self.repository.get(schedule_id)
        except ScheduleNotFound:
            logger.info("Schedule %s is gone; closing detail", schedule_id)
            return None
        return OpenSchedule(schedule, present(schedule, self.context))

    # ── drag-to-create ───────────────────────────────────────────────
    def begin_drag(self, day: date, anchor_minute: int, client_y: float) -> DragIntervalSelector:
        if self.host is None:
            raise RuntimeError("CalendarView has no pointer host to drag on")
        if self._selector is None:
            self._selector = DragIntervalSelector(self.host, self._open_draft, self.renderer)
        self._selector.pointer_down(day, anchor_minute, client_y)
        return self._selector

    def _open_draft(self, day: date, start_minute: int, end_minute: int) -> None:
        self.draft = ScheduleForm.from_drag(day, start_minute, end_minute)

    def open_create(self, day: date) -> ScheduleForm:
        self.draft = ScheduleForm.for_day(day)
        return self.draft

    def open_edit(self, schedule_id: int) -> Optional[ScheduleForm]:
        opened = self.open_schedule(schedule_id)
        if opened is None:
            return None
        opened.presentation.require(EDIT)
        self.draft = ScheduleForm.from_schedule(opened.schedule)
        return self.draft

    # ── mutations ────────────────────────────────────────────────────
    def submit(self, form: ScheduleForm) -> ScheduleOut:
        payload = form.to_payload()
        if form.is_edit:
            saved = self.repository.update(form.schedule_id, payload)
        else:
            saved = self.repository.create(payload)
        self.draft = None
        self.refresh()
        return saved

    def delete(self, schedule_id: int) -> None:
        self._present(schedule_id).require(DELETE)
        self.repository.delete(schedule_id)
        self.refresh()

    def duplicate(self, schedule_id: int) -> ScheduleOut:
        source = self.repository.get(schedule_id)
        present(source, self.context).require(DUPLICATE)
        payload = ScheduleIn.duplicate_of(source, self._today(), owner_id=self.context.current_user_id)
        created = self.repository.create(payload)
        self.refresh()
        return created

    def respond(self, schedule_id: int, decision: str) -> ParticipantOut:
        participant = self.repository.respond(schedule_id, decision)
        self.refresh()
        return participant

    def _present(self, schedule_id: int) -> Presentation:
        return present(self.repository.get(schedule_id), self.context)

    # ── lifecycle ────────────────────────────────────────────────────
    def close(self) -> None:
        if self._selector is not None:
            self._selector.teardown()

    def __enter__(self) -> "CalendarView":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

