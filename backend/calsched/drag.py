# backend/calsched/drag.py
"""
Drag-to-create on a day column.

The gesture is a two-state machine::

    Idle --pointer_down--> Dragging(anchor, current) --pointer_up--> Idle

While dragging, the selector holds window-level move/up subscriptions on the
host. Those are acquired in one scope and released on every exit path:
pointer-up (even when the commit callback raises) and teardown of the owning
component in the middle of a drag.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Protocol, Union

from .timeaxis import MINUTES_PER_DAY, TICK_MINUTES, TimeAxisRenderer, TimeInterval, clamp, snap

logger = logging.getLogger(__name__)

POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"

CreateCallback = Callable[[date, int, int], None]


class PointerHost(Protocol):
    """Something that can deliver global pointer events (a window, a test double)."""

    def subscribe(self, event_type: str, handler: Callable[[float], None]) -> Callable[[], None]:
        """Register ``handler`` and return the matching unsubscribe callable."""
        ...


class ListenerRegistry:
    """In-process ``PointerHost``: dispatches client-y coordinates to subscribers."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[[float], None]]] = {}

    def subscribe(self, event_type: str, handler: Callable[[float], None]) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def dispatch(self, event_type: str, client_y: float) -> None:
        for handler in list(self._handlers.get(event_type, [])):
            handler(client_y)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(v) for v in self._handlers.values())


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    date: date
    anchor_minute: int
    current_minute: int
    origin_y: float


DragState = Union[Idle, Dragging]

IDLE = Idle()


def commit_interval(anchor_minute: int, current_minute: int) -> TimeInterval:
    """Order the two ends and enforce the one-tick minimum."""
    start = min(anchor_minute, current_minute)
    end = max(anchor_minute, current_minute)
    end = max(end, start + TICK_MINUTES)
    return TimeInterval(start, end)


class DragIntervalSelector:
    def __init__(
        self,
        host: PointerHost,
        on_create_schedule: CreateCallback,
        renderer: Optional[TimeAxisRenderer] = None,
    ) -> None:
        self._host = host
        self._on_create_schedule = on_create_schedule
        self._renderer = renderer or TimeAxisRenderer()
        self._state: DragState = IDLE
        self._subscriptions: Optional[ExitStack] = None

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return isinstance(self._state, Dragging)

    def pointer_down(self, day: date, anchor_minute: int, client_y: float) -> None:
        if self.is_dragging:
            logger.debug("pointer_down ignored: drag already in progress")
            return
        if anchor_minute % TICK_MINUTES or not 0 <= anchor_minute < MINUTES_PER_DAY:
            raise ValueError(f"Anchor must be a {TICK_MINUTES}-minute tick inside the day, got {anchor_minute}")

        with ExitStack() as stack:
            stack.callback(self._host.subscribe(POINTER_MOVE, self.pointer_move))
            stack.callback(self._host.subscribe(POINTER_UP, self.pointer_up))
            # both acquired; hand ownership to the selector
            self._subscriptions = stack.pop_all()

        self._state = Dragging(date=day, anchor_minute=anchor_minute, current_minute=anchor_minute, origin_y=client_y)

    def pointer_move(self, client_y: float) -> None:
        state = self._state
        if not isinstance(state, Dragging):
            logger.debug("pointer_move ignored while idle")
            return
        minute_delta = self._renderer.minute_for(client_y - state.origin_y)
        if abs(minute_delta) < TICK_MINUTES:
            # less than one tick away still selects the anchor's own tick
            current = state.anchor_minute
        else:
            current = snap(clamp(state.anchor_minute + minute_delta, 0, MINUTES_PER_DAY - 1))
        if current != state.current_minute:
            self._state = Dragging(state.date, state.anchor_minute, current, state.origin_y)

    def pointer_up(self, client_y: Optional[float] = None) -> Optional[TimeInterval]:
        state = self._state
        if not isinstance(state, Dragging):
            logger.debug("pointer_up ignored while idle")
            return None
        if client_y is not None:
            self.pointer_move(client_y)
            state = self._state

        interval = commit_interval(state.anchor_minute, state.current_minute)
        try:
            self._on_create_schedule(state.date, interval.start_minute, interval.end_minute)
        finally:
            self._release()
        return interval

    def preview(self) -> Optional[TimeInterval]:
        """Interval a commit would produce right now."""
        state = self._state
        if not isinstance(state, Dragging):
            return None
        return commit_interval(state.anchor_minute, state.current_minute)

    def teardown(self) -> None:
        """Owner is going away; drop any in-flight drag without committing."""
        if self.is_dragging:
            logger.debug("teardown during active drag; releasing listeners")
        self._release()

    def _release(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, None
        self._state = IDLE
        if subscriptions is not None:
            subscriptions.close()

    def __enter__(self) -> "DragIntervalSelector":
        return self

    def __exit__(self, *exc_info) -> None:
        self.teardown()
