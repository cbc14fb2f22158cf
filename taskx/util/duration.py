# taskx/util/duration.py
from __future__ import annotations

import re
from typing import Any, Optional

# ISO-8601 durations (PT10M, PT1H30M) and the compact note form (1h30m, 45m, 2h).
_ISO_RE = re.compile(r"^P(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)$", re.IGNORECASE)
_COMPACT_RE = re.compile(r"^(?:(\d+)\s*h)?\s*(?:(\d+)\s*m(?:in)?)?$", re.IGNORECASE)


def parse_duration_to_minutes(v: Any) -> Optional[int]:
    """Parse a duration into positive whole minutes, or None."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        if v != v or v <= 0:
            return None
        total = int(round(v))
        return total if total > 0 else None

    ss = str(v).strip()
    if not ss:
        return None
    if ss.isdigit():
        n = int(ss)
        return n if n > 0 else None

    m = _ISO_RE.match(ss)
    if m:
        h = int(m.group(1) or 0)
        mn = int(m.group(2) or 0)
        sec = int(m.group(3) or 0)
        total = h * 60 + mn
        if sec >= 30:
            total += 1
        return total if total > 0 else None

    m = _COMPACT_RE.match(ss)
    if m and (m.group(1) or m.group(2)):
        total = int(m.group(1) or 0) * 60 + int(m.group(2) or 0)
        return total if total > 0 else None

    return None


def format_minutes(m: int) -> str:
    """45 -> '45m', 60 -> '1h', 95 -> '1h35'."""
    hh, mm = divmod(int(m), 60)
    if hh <= 0:
        return f"{mm}m"
    if mm == 0:
        return f"{hh}h"
    return f"{hh}h{mm:02d}"
