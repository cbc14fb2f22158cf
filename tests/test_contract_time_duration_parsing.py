from __future__ import annotations

import datetime as dt
import unittest

from taskx.util.duration import format_minutes, parse_duration_to_minutes
from taskx.util.timeparse import at_local_time, fmt_hhmm, hhmm_to_minutes, parse_instant_to_ms
from taskx.util.tz import days_between, weekday_sun0

UTC = dt.timezone.utc
PLUS2 = dt.timezone(dt.timedelta(hours=2))

# 2020-01-01 UTC midnight baseline.
BASE = 1577836800000
H = 60 * 60000


class TestDurationParsingContract(unittest.TestCase):
    def test_accepted_forms(self) -> None:
        cases = {
            45: 45,
            12.6: 13,
            "30": 30,
            "PT1H30M": 90,
            "pt10m": 10,
            "PT0M40S": 1,
            "1h30m": 90,
            "2h": 120,
            "45m": 45,
            "90min": 90,
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(parse_duration_to_minutes(raw), expected)

    def test_rejected_forms(self) -> None:
        for raw in (None, True, 0, -5, "", "soon", "PT0M", "0", float("nan")):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_duration_to_minutes(raw))

    def test_format(self) -> None:
        self.assertEqual(format_minutes(45), "45m")
        self.assertEqual(format_minutes(60), "1h")
        self.assertEqual(format_minutes(95), "1h35")
        self.assertEqual(format_minutes(125), "2h05")


class TestTimeParsingContract(unittest.TestCase):
    def test_hhmm(self) -> None:
        self.assertEqual(hhmm_to_minutes("09:30"), 570)
        self.assertEqual(hhmm_to_minutes("7:05"), 425)
        for bad in ("24:00", "9h", "12:60", ""):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    hhmm_to_minutes(bad)

    def test_instants(self) -> None:
        self.assertEqual(parse_instant_to_ms("20200101T150000Z", PLUS2), BASE + 15 * H)
        self.assertEqual(parse_instant_to_ms("2020-01-01T15:00:00Z", PLUS2), BASE + 15 * H)
        self.assertEqual(parse_instant_to_ms("2020-01-01T15:00:00", PLUS2), BASE + 13 * H)
        self.assertEqual(parse_instant_to_ms("2020-01-02", PLUS2), BASE + 22 * H)
        self.assertIsNone(parse_instant_to_ms("yesterday", UTC))
        self.assertIsNone(parse_instant_to_ms("20201301T000000Z", UTC))
        self.assertIsNone(parse_instant_to_ms(None, UTC))

    def test_local_wall_clock(self) -> None:
        d = dt.date(2020, 1, 1)
        self.assertEqual(at_local_time(d, "09:00", PLUS2), BASE + 7 * H)
        self.assertEqual(fmt_hhmm(BASE + 7 * H, PLUS2), "09:00")

    def test_calendar_days(self) -> None:
        self.assertEqual(days_between(BASE + 23 * H, BASE + 25 * H, UTC), 1)
        self.assertEqual(days_between(BASE + 1 * H, BASE + 23 * H, UTC), 0)
        self.assertEqual(days_between(BASE + 25 * H, BASE + 1 * H, UTC), -1)
        # Same instants, different day boundaries.
        self.assertEqual(days_between(BASE + 23 * H, BASE + 25 * H, PLUS2), 0)

    def test_weekday_numbering(self) -> None:
        self.assertEqual(weekday_sun0(dt.date(2020, 1, 5)), 0)
        self.assertEqual(weekday_sun0(dt.date(2020, 1, 1)), 3)
        self.assertEqual(weekday_sun0(dt.date(2020, 1, 4)), 6)


if __name__ == "__main__":
    unittest.main(verbosity=2)
