import unittest
from types import SimpleNamespace

from calsched.errors import InvalidTransition, PermissionDenied, ValidationFailed
from calsched.models import ParticipantStatus
from calsched.participants import (
    InviteParticipant, KeepParticipant, count_statuses, find_participant,
    normalize_participant_intents, plan_invitations, respond,
)


def _p(user_id, status=ParticipantStatus.PENDING, id=None):
    return SimpleNamespace(id=id, user_id=user_id, status=status)


class TestNormalize(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(normalize_participant_intents(None), [])
        self.assertEqual(normalize_participant_intents(""), [])
        self.assertEqual(normalize_participant_intents([]), [])

    def test_comma_string_dedupes(self) -> None:
        intents = normalize_participant_intents("B, C,B,")
        self.assertEqual(intents, [InviteParticipant("B"), InviteParticipant("C")])

    def test_dict_shapes(self) -> None:
        intents = normalize_participant_intents([{"userId": "B"}, {"user_id": "C"}, {"user": {"id": "D"}}, {}])
        self.assertEqual([i.user_id for i in intents], ["B", "C", "D"])
        self.assertTrue(all(i.kind == "invite" for i in intents))

    def test_edit_keeps_records(self) -> None:
        intents = normalize_participant_intents(
            [_p("B", ParticipantStatus.APPROVED, id=7), {"userId": "C", "status": "REJECTED"}], source="edit",
        )
        self.assertEqual(intents[0], KeepParticipant("B", ParticipantStatus.APPROVED, 7))
        self.assertEqual(intents[1].status, ParticipantStatus.REJECTED)

    def test_duplicate_resets_everything_to_invites(self) -> None:
        intents = normalize_participant_intents(
            [_p("B", ParticipantStatus.APPROVED), _p("C", ParticipantStatus.REJECTED)], source="duplicate",
        )
        self.assertEqual(intents, [InviteParticipant("B"), InviteParticipant("C")])


class TestPlanInvitations(unittest.TestCase):
    def test_create_keep_remove(self) -> None:
        existing = [_p("B", ParticipantStatus.REJECTED), _p("C")]
        plan = plan_invitations("A", "A", existing, normalize_participant_intents(["B", "D"]))
        self.assertEqual(plan.create, ["D"])
        self.assertEqual(plan.keep, ["B"])
        self.assertEqual(plan.remove, ["C"])

    def test_owner_cannot_be_invited(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            plan_invitations("A", "A", [], normalize_participant_intents(["A", "B"]))
        self.assertIn("participantUserIds", ctx.exception.fields)

    def test_only_owner_changes_participants(self) -> None:
        with self.assertRaises(PermissionDenied):
            plan_invitations("A", "B", [], normalize_participant_intents(["C"]))


class TestRespond(unittest.TestCase):
    def test_approve_then_idempotent(self) -> None:
        p = _p("B")
        self.assertTrue(respond(p, "B", "APPROVED"))
        self.assertEqual(p.status, ParticipantStatus.APPROVED)
        self.assertFalse(respond(p, "B", "approved"))
        self.assertEqual(p.status, ParticipantStatus.APPROVED)

    def test_terminal_states_do_not_flip(self) -> None:
        p = _p("B", ParticipantStatus.REJECTED)
        with self.assertRaises(InvalidTransition):
            respond(p, "B", ParticipantStatus.APPROVED)
        self.assertEqual(p.status, ParticipantStatus.REJECTED)

    def test_only_invitee_may_answer(self) -> None:
        p = _p("B")
        with self.assertRaises(PermissionDenied):
            respond(p, "A", "APPROVED")
        self.assertEqual(p.status, ParticipantStatus.PENDING)

    def test_bad_decision(self) -> None:
        for bad in ("PENDING", "maybe", None):
            with self.assertRaises(ValidationFailed, msg=bad):
                respond(_p("B"), "B", bad)


class TestCounts(unittest.TestCase):
    def test_counts(self) -> None:
        people = [
            _p("B", ParticipantStatus.APPROVED),
            _p("C", "APPROVED"),
            _p("D"),
            _p("E", ParticipantStatus.REJECTED),
        ]
        counts = count_statuses(people)
        self.assertEqual((counts.approved, counts.pending, counts.rejected, counts.total), (2, 1, 1, 4))
        self.assertEqual(count_statuses([]).total, 0)

    def test_find(self) -> None:
        people = [_p("B"), _p("C")]
        self.assertIs(find_participant(people, "C"), people[1])
        self.assertIsNone(find_participant(people, "Z"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
