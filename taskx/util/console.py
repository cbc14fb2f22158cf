# taskx/util/console.py
from __future__ import annotations
import os
import sys
from typing import Any

OBS_ENV = "TASKX_OBS_LOG"


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def obs_enabled() -> bool:
    v = (os.getenv(OBS_ENV, "") or "").strip().lower()
    return v in {"1", "true", "yes", "on"}
