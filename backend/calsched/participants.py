# backend/calsched/participants.py
"""
Invite / approve / reject rules for collaborative schedules.

Each participant record moves PENDING -> APPROVED or PENDING -> REJECTED and
then stays put. Only the schedule owner decides who is invited; only the
invited user decides their own answer.

Re-invitation: a REJECTED record stays REJECTED for as long as the user is
listed on the schedule. Removing the user deletes the record; listing them
again in a later save creates a fresh PENDING record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Sequence, Union

from .errors import InvalidTransition, PermissionDenied, ValidationFailed
from .models import ParticipantStatus

DECISIONS = (ParticipantStatus.APPROVED, ParticipantStatus.REJECTED)
PARTICIPANT_FIELD = "participantUserIds"


# ── tagged intents ──────────────────────────────────────────────────
@dataclass(frozen=True)
class InviteParticipant:
    """Create a new PENDING record for this user."""
    user_id: str
    kind: Literal["invite"] = "invite"


@dataclass(frozen=True)
class KeepParticipant:
    """Carry over an existing record unchanged."""
    user_id: str
    status: ParticipantStatus
    participant_id: Optional[int] = None
    kind: Literal["keep"] = "keep"


ParticipantIntent = Union[InviteParticipant, KeepParticipant]


def _user_id_of(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        for key in ("userId", "user_id"):
            if item.get(key):
                return str(item[key])
        user = item.get("user")
        if isinstance(user, dict) and user.get("id"):
            return str(user["id"])
        return None
    value = getattr(item, "user_id", None)
    return str(value) if value else None


def _status_of(item: Any) -> Optional[ParticipantStatus]:
    raw = item.get("status") if isinstance(item, dict) else getattr(item, "status", None)
    if raw is None:
        return None
    return ParticipantStatus(getattr(raw, "value", raw))


def _id_of(item: Any) -> Optional[int]:
    raw = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
    return int(raw) if raw is not None else None


def normalize_participant_intents(
    raw: Union[None, str, Iterable[Any]],
    source: Literal["edit", "duplicate"] = "edit",
) -> list[ParticipantIntent]:
    """
    Turn every historical participant shape into one list of tagged intents.

    Accepted shapes:
      - ``None`` / empty
      - comma-separated string of user ids (legacy ``attendees`` column)
      - list of user-id strings (``participantUserIds``)
      - list of dicts with ``userId`` / ``user_id`` / ``user.id``
      - participant records (ORM rows or API models) carrying a status

    For ``source="duplicate"`` every entry becomes an invite, so a cloned
    schedule starts with all statuses back at PENDING. For ``source="edit"``
    entries that carry a status are kept as they are.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")

    seen: set[str] = set()
    out: list[ParticipantIntent] = []
    for item in raw:
        user_id = _user_id_of(item)
        if not user_id or user_id in seen:
            continue
        seen.add(user_id)
        status = None if isinstance(item, str) else _status_of(item)
        if source == "edit" and status is not None:
            out.append(KeepParticipant(user_id=user_id, status=status, participant_id=_id_of(item)))
        else:
            out.append(InviteParticipant(user_id=user_id))
    return out


# ── owner side ──────────────────────────────────────────────────────
@dataclass
class InvitationPlan:
    create: list[str] = field(default_factory=list)
    keep: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)


def plan_invitations(
    owner_id: str,
    actor_id: str,
    existing: Iterable[Any],
    intents: Sequence[ParticipantIntent],
) -> InvitationPlan:
    """
    Decide which participant records to create, keep and remove when the owner
    saves a schedule. ``existing`` are the records already stored.
    """
    if actor_id != owner_id:
        raise PermissionDenied("Only the schedule owner can change participants")

    wanted = [i.user_id for i in intents]
    if owner_id in wanted:
        raise ValidationFailed.single(PARTICIPANT_FIELD, "The owner cannot be invited to their own schedule")

    current = {p.user_id for p in existing}
    plan = InvitationPlan()
    for user_id in wanted:
        (plan.keep if user_id in current else plan.create).append(user_id)
    plan.remove = sorted(current - set(wanted))
    return plan


# ── invitee side ────────────────────────────────────────────────────
def parse_decision(value: Any) -> ParticipantStatus:
    raw = getattr(value, "value", value)
    try:
        decision = ParticipantStatus(str(raw).upper())
    except ValueError:
        decision = None
    if decision not in DECISIONS:
        raise ValidationFailed.single("decision", "Decision must be APPROVED or REJECTED")
    return decision


def respond(participant: Any, actor_id: str, decision: Any) -> bool:
    """
    Apply an invitee's answer to ``participant`` in place.

    Returns True when the status changed, False for a repeated identical
    answer. Anyone other than the invited user (the owner included) is
    refused.
    """
    decision = parse_decision(decision)
    if participant.user_id != actor_id:
        raise PermissionDenied("Only the invited user can answer this invitation")

    current = ParticipantStatus(getattr(participant.status, "value", participant.status))
    if current == decision:
        return False
    if current != ParticipantStatus.PENDING:
        raise InvalidTransition(f"Invitation already {current.value.lower()}")
    participant.status = decision
    return True


def find_participant(participants: Iterable[Any], user_id: str) -> Optional[Any]:
    for p in participants:
        if p.user_id == user_id:
            return p
    return None


# ── aggregates ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class ParticipantCounts:
    approved: int = 0
    pending: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.approved + self.pending + self.rejected


def count_statuses(participants: Iterable[Any]) -> ParticipantCounts:
    tally = {s: 0 for s in ParticipantStatus}
    for p in participants or ():
        tally[ParticipantStatus(getattr(p.status, "value", p.status))] += 1
    return ParticipantCounts(
        approved=tally[ParticipantStatus.APPROVED],
        pending=tally[ParticipantStatus.PENDING],
        rejected=tally[ParticipantStatus.REJECTED],
    )
