# backend/calsched/repository.py
"""
Persistence for schedules, participants and (read-only) events.

Every mutation is a single-record operation committed on its own; nothing
locks across records and updates are last-write-wins.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session, selectinload

from .errors import PermissionDenied, ScheduleNotFound, ValidationFailed
from .models import Event, ParticipantStatus, Schedule, ScheduleParticipant
from .participants import find_participant, normalize_participant_intents, plan_invitations, respond
from .schemas import ScheduleIn

logger = logging.getLogger(__name__)


def _overlapping(start: date, end: date):
    # multi-day schedules count on every day they cover
    return and_(Schedule.date <= end, func.coalesce(Schedule.end_date, Schedule.date) >= start)


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationFailed.single("end", "end must not be before start")


class ScheduleRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # ── reads ────────────────────────────────────────────────────────
    def list_schedules(
        self,
        start: date,
        end: date,
        *,
        viewer_id: str,
        owner_id: Optional[str] = None,
        all_members: bool = False,
    ) -> list[Schedule]:
        """Schedules in [start, end]; the viewer's own unless told otherwise."""
        _check_range(start, end)
        q = select(Schedule).options(selectinload(Schedule.participants)).where(_overlapping(start, end))
        if not all_members:
            q = q.where(Schedule.owner_id == (owner_id or viewer_id))
        elif owner_id:
            q = q.where(Schedule.owner_id == owner_id)
        q = q.order_by(Schedule.date.asc(), Schedule.start_time.asc(), Schedule.id.asc())
        return list(self.db.execute(q).scalars().all())

    def list_invitations(self, user_id: str, status: Optional[ParticipantStatus] = None) -> list[Schedule]:
        q = (
            select(Schedule)
            .join(ScheduleParticipant, ScheduleParticipant.schedule_id == Schedule.id)
            .options(selectinload(Schedule.participants))
            .where(ScheduleParticipant.user_id == user_id)
        )
        if status is not None:
            q = q.where(ScheduleParticipant.status == status)
        q = q.order_by(Schedule.date.asc(), Schedule.start_time.asc())
        return list(self.db.execute(q).scalars().unique().all())

    def get(self, schedule_id: int) -> Schedule:
        schedule = self.db.get(Schedule, schedule_id)
        if schedule is None:
            raise ScheduleNotFound(schedule_id)
        return schedule

    def list_events(self, start: date, end: date) -> list[Event]:
        _check_range(start, end)
        q = (
            select(Event)
            .where(and_(Event.date >= start, Event.date <= end))
            .order_by(Event.date.asc(), Event.start_time.asc())
        )
        return list(self.db.execute(q).scalars().all())

    # ── writes ───────────────────────────────────────────────────────
    def create(self, owner_id: str, payload: ScheduleIn) -> Schedule:
        """Create one schedule, or a whole series when a recurrence is given; returns the first."""
        return self.create_series(owner_id, payload)[0]

    def create_series(self, owner_id: str, payload: ScheduleIn) -> list[Schedule]:
        intents = normalize_participant_intents(payload.participant_user_ids)
        plan = plan_invitations(owner_id, owner_id, [], intents)

        if payload.recurrence is not None:
            try:
                dates = payload.recurrence.occurrences(payload.date)
            except ValueError as exc:
                raise ValidationFailed.single("recurrence", str(exc)) from exc
            series_id = uuid.uuid4().hex
        else:
            dates, series_id = [payload.date], None
        span = (payload.end_date - payload.date) if payload.end_date else None

        created: list[Schedule] = []
        for d in dates:
            schedule = Schedule(owner_id=owner_id, series_id=series_id)
            self._apply_fields(schedule, payload)
            schedule.date = d
            schedule.end_date = (d + span) if span else None
            schedule.participants = [
                ScheduleParticipant(user_id=uid, status=ParticipantStatus.PENDING) for uid in plan.create
            ]
            self.db.add(schedule)
            created.append(schedule)
        self.db.commit()
        for schedule in created:
            self.db.refresh(schedule)
        logger.info(
            "Created %d schedule(s) for owner=%s first_id=%s invitees=%d",
            len(created), owner_id, created[0].id, len(plan.create),
        )
        return created

    def update(self, schedule_id: int, actor_id: str, payload: ScheduleIn) -> Schedule:
        schedule = self._owned(schedule_id, actor_id)
        if payload.recurrence is not None:
            raise ValidationFailed.single("recurrence", "Repeat settings can only be given when creating")
        self._apply_fields(schedule, payload)

        if payload.participant_user_ids is not None:
            intents = normalize_participant_intents(payload.participant_user_ids)
            plan = plan_invitations(schedule.owner_id, actor_id, schedule.participants, intents)
            for user_id in plan.remove:
                schedule.participants.remove(find_participant(schedule.participants, user_id))
            for user_id in plan.create:
                schedule.participants.append(ScheduleParticipant(user_id=user_id, status=ParticipantStatus.PENDING))
            if plan.remove:
                # flush removals before inserts so re-added users get a fresh row
                self.db.flush()

        self.db.commit()
        self.db.refresh(schedule)
        logger.info("Updated schedule id=%s by %s", schedule.id, actor_id)
        return schedule

    def delete(self, schedule_id: int, actor_id: str) -> None:
        schedule = self._owned(schedule_id, actor_id)
        self.db.delete(schedule)
        self.db.commit()
        logger.info("Deleted schedule id=%s by %s", schedule_id, actor_id)

    def respond(self, schedule_id: int, actor_id: str, decision) -> ScheduleParticipant:
        schedule = self.get(schedule_id)
        participant = find_participant(schedule.participants, actor_id)
        if participant is None:
            raise PermissionDenied("You are not invited to this schedule")
        changed = respond(participant, actor_id, decision)
        if changed:
            self.db.commit()
            self.db.refresh(participant)
            logger.info("Participant %s %s schedule id=%s", actor_id, participant.status.value, schedule_id)
        return participant

    # ── helpers ──────────────────────────────────────────────────────
    def _owned(self, schedule_id: int, actor_id: str) -> Schedule:
        schedule = self.get(schedule_id)
        if schedule.owner_id != actor_id:
            raise PermissionDenied("Only the owner can change this schedule")
        return schedule

    @staticmethod
    def _apply_fields(schedule: Schedule, payload: ScheduleIn) -> None:
        schedule.date = payload.date
        schedule.end_date = payload.end_date if payload.end_date != payload.date else None
        schedule.start_time = payload.start_minute
        schedule.end_time = payload.end_minute
        schedule.title = payload.title
        schedule.activity_description = payload.activity_description
        schedule.location_text = payload.location_text
        schedule.task_id = payload.task_id
        schedule.project_id = payload.project_id
        schedule.free_note = payload.free_note
