# backend/calsched/errors.py
"""Domain exceptions shared by the repository, the API and the HTTP client."""

from __future__ import annotations

from typing import Mapping, Optional


class CalendarError(Exception):
    """Base class for every error raised by calsched."""

    code = "calendar_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ScheduleNotFound(CalendarError):
    code = "not_found"

    def __init__(self, schedule_id: Optional[int] = None, message: str = "") -> None:
        super().__init__(message or f"Schedule {schedule_id} not found")
        self.schedule_id = schedule_id


class Unauthenticated(CalendarError):
    """No caller identity came with the request."""

    code = "unauthenticated"


class PermissionDenied(CalendarError):
    code = "forbidden"


class InvalidTransition(CalendarError):
    code = "invalid_transition"


class ValidationFailed(CalendarError):
    """One or more fields were rejected; every message is kept as reported."""

    code = "validation_failed"

    def __init__(self, fields: Mapping[str, list[str]], message: str = "") -> None:
        self.fields: dict[str, list[str]] = {k: list(v) for k, v in fields.items()}
        super().__init__(message or "; ".join(f"{k}: {m}" for k, msgs in self.fields.items() for m in msgs))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls({field: [message]})


class ServerError(CalendarError):
    """Generic failure on the far side; detail is whatever the server sent."""

    code = "server_error"

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"Server error ({status_code})" + (f": {detail}" if detail else ""))
        self.status_code = status_code
        self.detail = detail
