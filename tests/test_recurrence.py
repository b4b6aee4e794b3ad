import unittest
from datetime import date

from pydantic import ValidationError

from calsched.recurrence import MAX_OCCURRENCES, RecurrenceRule


class TestRecurrence(unittest.TestCase):
    def test_weekly_defaults_to_start_weekday(self) -> None:
        rule = RecurrenceRule(frequency="WEEKLY", until=date(2024, 6, 24))
        self.assertEqual(
            rule.occurrences(date(2024, 6, 3)),
            [date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24)],
        )

    def test_weekly_on_given_weekdays(self) -> None:
        rule = RecurrenceRule(frequency="WEEKLY", until=date(2024, 6, 12), weekdays=[2, 0])
        self.assertEqual(
            rule.occurrences(date(2024, 6, 3)),
            [date(2024, 6, 3), date(2024, 6, 5), date(2024, 6, 10), date(2024, 6, 12)],
        )

    def test_daily_interval(self) -> None:
        rule = RecurrenceRule(frequency="DAILY", interval=2, until=date(2024, 6, 9))
        self.assertEqual(
            rule.occurrences(date(2024, 6, 3)),
            [date(2024, 6, 3), date(2024, 6, 5), date(2024, 6, 7), date(2024, 6, 9)],
        )

    def test_monthly(self) -> None:
        rule = RecurrenceRule(frequency="MONTHLY", until=date(2024, 8, 31))
        self.assertEqual(
            rule.occurrences(date(2024, 6, 15)),
            [date(2024, 6, 15), date(2024, 7, 15), date(2024, 8, 15)],
        )

    def test_capped(self) -> None:
        rule = RecurrenceRule(frequency="DAILY", until=date(2030, 1, 1))
        self.assertEqual(len(rule.occurrences(date(2024, 1, 1))), MAX_OCCURRENCES)

    def test_until_before_start(self) -> None:
        rule = RecurrenceRule(frequency="DAILY", until=date(2024, 6, 1))
        with self.assertRaises(ValueError):
            rule.occurrences(date(2024, 6, 3))

    def test_weekdays_only_for_weekly(self) -> None:
        with self.assertRaises(ValidationError):
            RecurrenceRule(frequency="DAILY", until=date(2024, 6, 9), weekdays=[1])
        with self.assertRaises(ValidationError):
            RecurrenceRule(frequency="WEEKLY", until=date(2024, 6, 9), weekdays=[7])
        with self.assertRaises(ValidationError):
            RecurrenceRule(frequency="WEEKLY", until=date(2024, 6, 9), interval=0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
