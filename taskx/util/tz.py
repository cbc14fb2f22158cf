# taskx/util/tz.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional
from zoneinfo import ZoneInfo

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def normalize_tz_name(name: Optional[str]) -> str:
    """Normalize a timezone identifier.

    Supported forms:
      - None/"" -> "local"
      - "local" / "system" -> "local"
      - "UTC" / "Z" / "GMT" -> "UTC"
      - IANA names, e.g. "Europe/Paris"
      - Fixed offsets: "+02:00", "+0200", "-05:00"
    """
    if name is None:
        return "local"
    s = str(name).strip()
    if not s:
        return "local"

    low = s.lower()
    if low in {"local", "system", "native"}:
        return "local"
    if low in {"utc", "z", "gmt", "utc0", "utc+0"}:
        return "UTC"
    return s


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """Resolve a timezone name into a tzinfo.

    Raises ValueError for invalid timezone identifiers.
    """
    tz_name = normalize_tz_name(name)

    if tz_name == "UTC":
        return dt.timezone.utc

    if tz_name == "local":
        tz = dt.datetime.now().astimezone().tzinfo
        return tz or dt.timezone.utc

    m = _OFFSET_RE.match(tz_name)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh = int(hh_s)
        mm = int(mm_s)
        if hh > 23 or mm > 59:
            raise ValueError(f"Invalid timezone offset: {tz_name!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(dt.timedelta(minutes=sign * (hh * 60 + mm)))

    try:
        return ZoneInfo(tz_name)
    except Exception as ex:
        raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex


def datetime_from_ms(ms: int, tz: dt.tzinfo) -> dt.datetime:
    return dt.datetime.fromtimestamp(int(ms) / 1000.0, tz=tz)


def date_from_ms(ms: int, tz: dt.tzinfo) -> dt.date:
    return datetime_from_ms(ms, tz).date()


def same_day(a_ms: int, b_ms: int, tz: dt.tzinfo) -> bool:
    return date_from_ms(a_ms, tz) == date_from_ms(b_ms, tz)


def days_between(a_ms: int, b_ms: int, tz: dt.tzinfo) -> int:
    """Whole calendar days from `a_ms` to `b_ms` in `tz` (negative when b is earlier).

    Both instants are normalized to their start of day first, so a partial day
    never counts.
    """
    return (date_from_ms(b_ms, tz) - date_from_ms(a_ms, tz)).days


def weekday_sun0(d: dt.date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7
