# backend/calsched/viewmode.py
"""Whether a schedule opens editable or read-only under the current view mode."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .errors import PermissionDenied

EDIT = "edit"
DELETE = "delete"
DUPLICATE = "duplicate"
OWNER_ACTIONS = frozenset({EDIT, DELETE, DUPLICATE})


class ViewMode(str, enum.Enum):
    INDIVIDUAL = "individual"
    ALL = "all"


@dataclass(frozen=True)
class ViewContext:
    current_user_id: str
    view_mode: ViewMode = ViewMode.INDIVIDUAL


@dataclass(frozen=True)
class Presentation:
    editable: bool
    actions: frozenset

    @property
    def read_only(self) -> bool:
        return not self.editable

    def allows(self, action: str) -> bool:
        return action in self.actions

    def require(self, action: str) -> None:
        if action not in self.actions:
            raise PermissionDenied(f"'{action}' is not available on a read-only schedule")


READ_ONLY = Presentation(editable=False, actions=frozenset())
EDITABLE = Presentation(editable=True, actions=OWNER_ACTIONS)


def is_editable(owner_id: str, ctx: ViewContext) -> bool:
    if ctx.view_mode == ViewMode.INDIVIDUAL:
        return True
    return owner_id == ctx.current_user_id


def present(schedule: Any, ctx: ViewContext) -> Presentation:
    return EDITABLE if is_editable(schedule.owner_id, ctx) else READ_ONLY
