import unittest
from datetime import date

from calsched.quickinput import parse_quick_input, parse_times

MONDAY = date(2024, 6, 3)


class TestQuickInput(unittest.TestCase):
    def test_full_sentence(self) -> None:
        draft = parse_quick_input("Site visit tomorrow 9-11am @ Town hall", MONDAY)
        form = draft.form
        self.assertEqual(draft.missing, [])
        self.assertEqual(form.date, "2024-06-04")
        self.assertEqual((form.start_time, form.end_time), ("09:00", "11:00"))
        self.assertEqual(form.title, "Site visit")
        self.assertEqual(form.location_text, "Town hall")
        self.assertEqual(form.errors(), {})

    def test_weekday_and_clock_range(self) -> None:
        draft = parse_quick_input("next fri standup 10:00-10:15", MONDAY)
        self.assertEqual(draft.form.date, "2024-06-07")
        self.assertEqual((draft.form.start_time, draft.form.end_time), ("10:00", "10:15"))
        self.assertEqual(draft.form.title, "standup")

    def test_single_time_defaults_to_an_hour(self) -> None:
        draft = parse_quick_input("Lunch 12:30", MONDAY)
        self.assertEqual(draft.missing, ["date"])
        self.assertEqual((draft.form.start_time, draft.form.end_time), ("12:30", "13:30"))
        self.assertEqual(draft.form.title, "Lunch")

    def test_slash_date_is_not_a_time(self) -> None:
        draft = parse_quick_input("6/10 review", MONDAY)
        self.assertEqual(draft.form.date, "2024-06-10")
        self.assertEqual(draft.missing, ["time"])
        self.assertEqual(draft.form.title, "review")

    def test_nothing_found(self) -> None:
        draft = parse_quick_input("", MONDAY)
        self.assertEqual(draft.missing, ["date", "time", "title"])

    def test_pm_ranges(self) -> None:
        self.assertEqual(parse_times("1pm-2:30pm"), (780, 870))
        self.assertEqual(parse_times("12am to 1am"), (0, 60))
        self.assertEqual(parse_times("no times here"), (None, None))


if __name__ == "__main__":
    unittest.main(verbosity=2)
