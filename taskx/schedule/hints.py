# taskx/schedule/hints.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..model import RankedTask, clamp0to5

LEVELS = ("low", "medium", "high")
LEVEL_RANK = {v: i for i, v in enumerate(LEVELS)}


@dataclass(frozen=True)
class SchedulingHint:
    urgency: str  # low | medium | high | critical
    value: str  # low | medium | high
    friction: str  # low | medium | high
    affinity: str  # deep | shallow | admin
    reasons: Tuple[str, ...]


def _bucket(x: int) -> str:
    if x >= 4:
        return "high"
    if x >= 2:
        return "medium"
    return "low"


def compute_scheduling_hint(task: RankedTask) -> SchedulingHint:
    """Map numeric dimensions to coarse, explainable buckets."""
    g = clamp0to5(task.dimensions.gain)
    p = clamp0to5(task.dimensions.pressure)
    f = clamp0to5(task.dimensions.friction)

    reasons = []

    if p >= 4:
        urgency = "critical"
    elif p >= 3:
        urgency = "high"
    elif p >= 2:
        urgency = "medium"
    else:
        urgency = "low"

    if task.record.has_time_constraint():
        reasons.append("time constraint (⏳/📅)")
        if urgency == "low":
            urgency = "medium"

    value = _bucket(g)
    friction = _bucket(f)

    if friction == "high":
        affinity = "deep"
    elif task.is_authority:
        affinity = "admin"
    else:
        affinity = "shallow"

    if urgency == "critical":
        reasons.append("pressure≥4")
    if value == "high":
        reasons.append("gain≥4")
    if friction == "high":
        reasons.append("friction≥4")
    if task.is_authority:
        reasons.append("authority")

    return SchedulingHint(urgency=urgency, value=value, friction=friction, affinity=affinity, reasons=tuple(reasons))
