import unittest
from datetime import date

from apptest import ApiHarness

from calsched.models import Event, EventType, ScheduleParticipant

MEETING = {
    "date": "2024-06-03",
    "startTime": "09:00",
    "endTime": "10:30",
    "title": "Meeting",
    "activityDescription": "weekly sync",
    "participantUserIds": ["B"],
}


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.h = ApiHarness()
        self.client = self.h.client

    def tearDown(self) -> None:
        self.h.close()

    def create(self, owner="A", **overrides) -> dict:
        body = {**MEETING, **overrides}
        r = self.client.post("/schedules", json=body, headers=self.h.as_user(owner))
        self.assertEqual(r.status_code, 201, r.text)
        return r.json()


class TestLifecycle(ApiTestCase):
    def test_health_root_dbcheck(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
        self.assertIn("message", self.client.get("/").json())
        self.assertEqual(self.client.get("/dbcheck").json(), {"db": "ok"})

    def test_identity_required(self) -> None:
        r = self.client.get("/schedules", params={"start": "2024-06-03", "end": "2024-06-09"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"error": "unauthenticated", "message": "Missing X-User-Id header"})


class TestApprovalFlow(ApiTestCase):
    def test_create_respond_and_count(self) -> None:
        created = self.create()
        self.assertEqual(created["ownerId"], "A")
        self.assertEqual((created["startTime"], created["endTime"]), ("09:00", "10:30"))
        self.assertEqual([p["userId"] for p in created["participants"]], ["B"])
        self.assertEqual(created["participants"][0]["status"], "PENDING")
        self.assertEqual(created["participantCounts"], {"approved": 0, "pending": 1, "rejected": 0})

        sid = created["id"]
        r = self.client.post(f"/schedules/{sid}/respond", json={"decision": "APPROVED"}, headers=self.h.as_user("B"))
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["status"], "APPROVED")

        detail = self.client.get(f"/schedules/{sid}", headers=self.h.as_user("A")).json()
        self.assertEqual(detail["participantCounts"]["approved"], 1)

        # same answer again is a no-op; flipping is refused
        again = self.client.post(f"/schedules/{sid}/respond", json={"decision": "APPROVED"}, headers=self.h.as_user("B"))
        self.assertEqual(again.status_code, 200)
        flip = self.client.post(f"/schedules/{sid}/respond", json={"decision": "REJECTED"}, headers=self.h.as_user("B"))
        self.assertEqual(flip.status_code, 409)
        self.assertEqual(flip.json()["error"], "invalid_transition")

    def test_owner_and_strangers_cannot_respond(self) -> None:
        sid = self.create()["id"]
        for user in ("A", "Z"):
            r = self.client.post(f"/schedules/{sid}/respond", json={"decision": "APPROVED"}, headers=self.h.as_user(user))
            self.assertEqual(r.status_code, 403, user)

    def test_bad_decision(self) -> None:
        sid = self.create()["id"]
        r = self.client.post(f"/schedules/{sid}/respond", json={"decision": "MAYBE"}, headers=self.h.as_user("B"))
        self.assertEqual(r.status_code, 400)
        self.assertIn("decision", r.json()["fields"])

    def test_owner_cannot_invite_self(self) -> None:
        r = self.client.post("/schedules", json={**MEETING, "participantUserIds": ["A", "B"]},
                             headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 400)
        self.assertIn("participantUserIds", r.json()["fields"])

    def test_invitation_inbox(self) -> None:
        first = self.create()
        self.create(title="Review", participantUserIds=["C"])
        self.client.post(f"/schedules/{first['id']}/respond", json={"decision": "REJECTED"}, headers=self.h.as_user("B"))

        inbox = self.client.get("/schedules/invitations", headers=self.h.as_user("B")).json()
        self.assertEqual([s["id"] for s in inbox], [first["id"]])
        pending = self.client.get("/schedules/invitations", params={"status": "PENDING"},
                                  headers=self.h.as_user("B")).json()
        self.assertEqual(pending, [])


class TestValidationErrors(ApiTestCase):
    def test_end_before_start(self) -> None:
        r = self.client.post("/schedules", json={**MEETING, "endTime": "08:00"}, headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 400)
        body = r.json()
        self.assertEqual(body["error"], "validation_failed")
        self.assertIn("end time must be after start time", body["fields"]["endTime"][0])

    def test_every_field_reported(self) -> None:
        r = self.client.post("/schedules", json={"date": "2024-06-03", "startTime": "9am", "endTime": "10:00"},
                             headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 400)
        fields = r.json()["fields"]
        self.assertIn("startTime", fields)
        self.assertIn("title", fields)

    def test_bad_range(self) -> None:
        r = self.client.get("/schedules", params={"start": "2024-06-09", "end": "2024-06-03"},
                            headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 400)
        self.assertIn("end", r.json()["fields"])

    def test_not_found(self) -> None:
        r = self.client.get("/schedules/999", headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"], "not_found")


class TestEditing(ApiTestCase):
    def test_only_owner_updates_and_deletes(self) -> None:
        sid = self.create()["id"]
        r = self.client.put(f"/schedules/{sid}", json={**MEETING, "title": "Hijack"}, headers=self.h.as_user("B"))
        self.assertEqual(r.status_code, 403)
        r = self.client.delete(f"/schedules/{sid}", headers=self.h.as_user("B"))
        self.assertEqual(r.status_code, 403)

    def test_update_keeps_statuses_and_syncs_participants(self) -> None:
        sid = self.create(participantUserIds=["B", "C"])["id"]
        self.client.post(f"/schedules/{sid}/respond", json={"decision": "REJECTED"}, headers=self.h.as_user("B"))

        r = self.client.put(f"/schedules/{sid}", json={**MEETING, "title": "Renamed", "participantUserIds": ["B", "D"]},
                            headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body["title"], "Renamed")
        statuses = {p["userId"]: p["status"] for p in body["participants"]}
        self.assertEqual(statuses, {"B": "REJECTED", "D": "PENDING"})

        # removing B and listing them again starts a fresh invitation
        self.client.put(f"/schedules/{sid}", json={**MEETING, "participantUserIds": ["D"]}, headers=self.h.as_user("A"))
        r = self.client.put(f"/schedules/{sid}", json={**MEETING, "participantUserIds": ["D", "B"]},
                            headers=self.h.as_user("A"))
        statuses = {p["userId"]: p["status"] for p in r.json()["participants"]}
        self.assertEqual(statuses, {"B": "PENDING", "D": "PENDING"})

    def test_update_without_participants_leaves_them(self) -> None:
        sid = self.create()["id"]
        body = {k: v for k, v in MEETING.items() if k != "participantUserIds"}
        r = self.client.put(f"/schedules/{sid}", json={**body, "endTime": "11:00"}, headers=self.h.as_user("A"))
        self.assertEqual(r.json()["endTime"], "11:00")
        self.assertEqual([p["userId"] for p in r.json()["participants"]], ["B"])

    def test_delete_cascades(self) -> None:
        sid = self.create()["id"]
        r = self.client.delete(f"/schedules/{sid}", headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 204)
        self.assertEqual(self.client.get(f"/schedules/{sid}", headers=self.h.as_user("A")).status_code, 404)
        with self.h.Session() as db:
            self.assertEqual(db.query(ScheduleParticipant).count(), 0)


class TestListing(ApiTestCase):
    WEEK = {"start": "2024-06-03", "end": "2024-06-09"}

    def test_individual_and_all_members(self) -> None:
        self.create(owner="A", participantUserIds=[])
        self.create(owner="C", participantUserIds=[], startTime="13:00", endTime="14:00")
        self.create(owner="A", participantUserIds=[], date="2024-06-20")

        mine = self.client.get("/schedules", params=self.WEEK, headers=self.h.as_user("A")).json()
        self.assertEqual([s["ownerId"] for s in mine], ["A"])

        everyone = self.client.get("/schedules", params={**self.WEEK, "allMembers": "true"},
                                   headers=self.h.as_user("A")).json()
        self.assertEqual(sorted(s["ownerId"] for s in everyone), ["A", "C"])

        theirs = self.client.get("/schedules", params={**self.WEEK, "ownerId": "C"},
                                 headers=self.h.as_user("A")).json()
        self.assertEqual([s["ownerId"] for s in theirs], ["C"])

    def test_multi_day_overlap(self) -> None:
        self.create(participantUserIds=[], date="2024-06-01", endDate="2024-06-04", startTime="22:00", endTime="02:00")
        rows = self.client.get("/schedules", params=self.WEEK, headers=self.h.as_user("A")).json()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["endDate"], "2024-06-04")

    def test_recurrence_creates_series(self) -> None:
        first = self.create(recurrence={"frequency": "WEEKLY", "until": "2024-06-24"})
        self.assertIsNotNone(first["seriesId"])
        rows = self.client.get("/schedules", params={"start": "2024-06-01", "end": "2024-06-30"},
                               headers=self.h.as_user("A")).json()
        self.assertEqual([r["date"] for r in rows], ["2024-06-03", "2024-06-10", "2024-06-17", "2024-06-24"])
        self.assertEqual({r["seriesId"] for r in rows}, {first["seriesId"]})
        self.assertTrue(all(r["participants"][0]["status"] == "PENDING" for r in rows))

    def test_recurrence_until_before_start(self) -> None:
        r = self.client.post("/schedules", json={**MEETING, "recurrence": {"frequency": "DAILY", "until": "2024-06-01"}},
                             headers=self.h.as_user("A"))
        self.assertEqual(r.status_code, 400)
        self.assertIn("recurrence", r.json()["fields"])

    def test_events(self) -> None:
        with self.h.Session() as db:
            db.add_all([
                Event(name="Sports day", type=EventType.OFFICIAL, date=date(2024, 6, 5)),
                Event(name="Team lunch", type=EventType.TEAM, date=date(2024, 6, 6), start_time=720, end_time=780),
                Event(name="Later", type=EventType.OTHER, date=date(2024, 7, 1)),
            ])
            db.commit()
        rows = self.client.get("/events", params=self.WEEK, headers=self.h.as_user("A")).json()
        self.assertEqual([e["name"] for e in rows], ["Sports day", "Team lunch"])
        self.assertIsNone(rows[0]["startTime"])
        self.assertEqual((rows[1]["startTime"], rows[1]["endTime"]), ("12:00", "13:00"))


class TestCalendarAndParse(ApiTestCase):
    def test_month_grid(self) -> None:
        r = self.client.get("/calendar", params={"view": "month", "date": "2024-06-15"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual((body["start"], body["end"]), ("2024-05-27", "2024-06-30"))
        self.assertEqual(len(body["days"]), 35)
        self.assertFalse(body["days"][0]["isInCurrentMonth"])

    def test_unknown_view(self) -> None:
        r = self.client.get("/calendar", params={"view": "year", "date": "2024-06-15"})
        self.assertEqual(r.status_code, 400)
        self.assertIn("view", r.json()["fields"])

    def test_parse(self) -> None:
        r = self.client.post("/parse", json={"prompt": "Planning 14:00-15:00 @ Room 3"}, headers=self.h.as_user("A"))
        body = r.json()
        self.assertEqual((body["startTime"], body["endTime"]), ("14:00", "15:00"))
        self.assertEqual(body["title"], "Planning")
        self.assertEqual(body["locationText"], "Room 3")
        self.assertEqual(body["missingFields"], ["date"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
