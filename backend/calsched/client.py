# backend/calsched/client.py
"""
HTTP-side ScheduleRepository: the operations the calendar view consumes,
spoken over the calsched API with httpx.

Error responses come back as domain exceptions; nothing is retried.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import httpx

from .errors import (
    InvalidTransition, PermissionDenied, ScheduleNotFound, ServerError, Unauthenticated, ValidationFailed,
)
from .schemas import EventOut, ParticipantOut, ParseOut, ScheduleIn, ScheduleOut

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


def _body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    return data if isinstance(data, dict) else {"message": str(data)}


def raise_for_response(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    body = _body(response)
    message = str(body.get("message") or body.get("detail") or "")
    if status in (400, 422):
        fields = body.get("fields") or {}
        if not fields:
            fields = {"_form": [message or "Request rejected"]}
        raise ValidationFailed(fields)
    if status == 401:
        raise Unauthenticated(message)
    if status == 403:
        raise PermissionDenied(message)
    if status == 404:
        raise ScheduleNotFound(message=message or "Schedule not found")
    if status == 409:
        raise InvalidTransition(message)
    if status >= 500:
        logger.error("Server error %s: %s", status, message)
    raise ServerError(status, message)


class ApiScheduleRepository:
    def __init__(self, client: httpx.Client, user_id: str) -> None:
        self._client = client
        self.user_id = user_id

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {USER_HEADER: self.user_id, **kwargs.pop("headers", {})}
        response = self._client.request(method, url, headers=headers, **kwargs)
        raise_for_response(response)
        return response

    # ── schedules ────────────────────────────────────────────────────
    def list_schedules(
        self, start: date, end: date, *, owner_id: Optional[str] = None, all_members: bool = False
    ) -> list[ScheduleOut]:
        params: dict[str, Any] = {"start": start.isoformat(), "end": end.isoformat()}
        if owner_id:
            params["ownerId"] = owner_id
        if all_members:
            params["allMembers"] = "true"
        data = self._request("GET", "/schedules", params=params).json()
        return [ScheduleOut.model_validate(row) for row in data]

    def list_invitations(self, status: Optional[str] = None) -> list[ScheduleOut]:
        params = {"status": status} if status else None
        data = self._request("GET", "/schedules/invitations", params=params).json()
        return [ScheduleOut.model_validate(row) for row in data]

    def get(self, schedule_id: int) -> ScheduleOut:
        return ScheduleOut.model_validate(self._request("GET", f"/schedules/{schedule_id}").json())

    def create(self, payload: ScheduleIn) -> ScheduleOut:
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return ScheduleOut.model_validate(self._request("POST", "/schedules", json=body).json())

    def update(self, schedule_id: int, payload: ScheduleIn) -> ScheduleOut:
        body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return ScheduleOut.model_validate(self._request("PUT", f"/schedules/{schedule_id}", json=body).json())

    def delete(self, schedule_id: int) -> None:
        self._request("DELETE", f"/schedules/{schedule_id}")

    def duplicate(self, schedule_id: int, today: date) -> ScheduleOut:
        """Client-side clone + create; there is no duplicate verb on the server."""
        source = self.get(schedule_id)
        return self.create(ScheduleIn.duplicate_of(source, today, owner_id=self.user_id))

    def respond(self, schedule_id: int, decision: str) -> ParticipantOut:
        data = self._request("POST", f"/schedules/{schedule_id}/respond", json={"decision": decision}).json()
        return ParticipantOut.model_validate(data)

    # ── read-only feeds ──────────────────────────────────────────────
    def list_events(self, start: date, end: date) -> list[EventOut]:
        params = {"start": start.isoformat(), "end": end.isoformat()}
        return [EventOut.model_validate(row) for row in self._request("GET", "/events", params=params).json()]

    def parse(self, prompt: str) -> ParseOut:
        return ParseOut.model_validate(self._request("POST", "/parse", json={"prompt": prompt}).json())
