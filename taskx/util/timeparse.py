# taskx/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Tuple

from .tz import datetime_from_ms

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_TW_UTC_RE = re.compile(r"^(\d{8})T(\d{6})Z$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(str(s).strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def hhmm_to_minutes(s: str) -> int:
    hh, mm = parse_hhmm(s)
    return hh * 60 + mm


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s, "%Y-%m-%d").date()


def at_local_time(d: dt.date, hhmm: str, tz: dt.tzinfo) -> int:
    """Epoch ms of wall-clock `hhmm` on day `d` in `tz`."""
    hh, mm = parse_hhmm(hhmm)
    aware = dt.datetime(d.year, d.month, d.day, hh, mm, 0, tzinfo=tz)
    return int(aware.timestamp() * 1000)


def parse_instant_to_ms(s: Optional[str], tz: dt.tzinfo) -> Optional[int]:
    """Parse a task date into epoch ms.

    Accepted forms:
      - Taskwarrior compact UTC: 20250101T093000Z
      - ISO-8601 with or without offset (naive values are read in `tz`)
      - Plain dates YYYY-MM-DD (midnight in `tz`)

    Returns None when the value cannot be parsed.
    """
    if not s:
        return None
    raw = str(s).strip()
    if not raw:
        return None

    m = _TW_UTC_RE.match(raw)
    if m:
        try:
            d = dt.datetime.strptime(m.group(1) + m.group(2), "%Y%m%d%H%M%S")
        except ValueError:
            return None
        return int(d.replace(tzinfo=dt.timezone.utc).timestamp() * 1000)

    if _DATE_RE.match(raw):
        try:
            d0 = parse_date_yyyy_mm_dd(raw)
        except ValueError:
            return None
        return int(dt.datetime(d0.year, d0.month, d0.day, tzinfo=tz).timestamp() * 1000)

    try:
        d1 = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if d1.tzinfo is None:
        d1 = d1.replace(tzinfo=tz)
    return int(d1.timestamp() * 1000)


def fmt_hhmm(ms: int, tz: dt.tzinfo) -> str:
    return datetime_from_ms(ms, tz).strftime("%H:%M")
