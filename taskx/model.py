# taskx/model.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

MIN_MS = 60_000

DIM_MIN = 0
DIM_MAX = 5


class RelationKind(str, Enum):
    DEPENDS_ON = "dependsOn"  # from cannot proceed until to is resolved
    PART_OF = "partOf"  # child -> parent


# Edge direction as seen from a node.
OUT = "out"
IN = "in"


class Basin(str, Enum):
    B0 = "B0"  # intake
    B1 = "B1"  # do now
    B2 = "B2"  # candidates
    B3 = "B3"  # authority / external
    B4 = "B4"  # workshop
    B5 = "B5"  # commit / execute
    B6 = "B6"  # embargo


TRIAGE_BASINS = (Basin.B1, Basin.B2, Basin.B3)


class NextOperator(str, Enum):
    STAY = "stay"
    B4 = "B4"
    B5 = "B5"
    B6 = "B6"


def clamp0to5(x: object) -> int:
    """Floor and clamp a dimension value into [0, 5]; non-numbers and NaN become 0."""
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return DIM_MIN
    if isinstance(x, float):
        if math.isnan(x):
            return DIM_MIN
        if math.isinf(x):
            return DIM_MAX if x > 0 else DIM_MIN
        x = math.floor(x)
    return max(DIM_MIN, min(DIM_MAX, int(x)))


@dataclass(frozen=True)
class Dimensions:
    gain: int = 0
    pressure: int = 0
    friction: int = 0

    @classmethod
    def of(cls, gain: object = 0, pressure: object = 0, friction: object = 0) -> "Dimensions":
        return cls(gain=clamp0to5(gain), pressure=clamp0to5(pressure), friction=clamp0to5(friction))

    def fold(self, other: "Dimensions") -> "Dimensions":
        return fold_max(self, other)


ZERO = Dimensions()


def fold_max(a: Dimensions, b: Dimensions) -> Dimensions:
    """Element-wise max; signals pointing at the same risk never add up."""
    return Dimensions.of(
        gain=max(a.gain, b.gain),
        pressure=max(a.pressure, b.pressure),
        friction=max(a.friction, b.friction),
    )


def compute_priority_score(d: Dimensions) -> float:
    g = clamp0to5(d.gain)
    p = clamp0to5(d.pressure)
    f = clamp0to5(d.friction)
    return (g * p) / (1 + f)


@dataclass(frozen=True)
class TaskRecord:
    """Read-only snapshot of one task line.

    `depends_on` / `part_of` hold the relation targets already extracted by the
    collector. Dates are epoch ms; a missing date is None.
    """

    id: str
    markdown: str = ""
    path: str = ""
    tags: Tuple[str, ...] = ()
    created_ms: Optional[int] = None
    due_ms: Optional[int] = None
    scheduled_ms: Optional[int] = None
    duration_min: Optional[int] = None
    is_authority: bool = False
    depends_on: Tuple[str, ...] = ()
    part_of: Tuple[str, ...] = ()

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def has_any_tag(self, tags) -> bool:
        return any(t in self.tags for t in tags)

    def has_time_constraint(self) -> bool:
        return self.due_ms is not None or self.scheduled_ms is not None


@dataclass(frozen=True)
class ScoredTask:
    id: str
    dimensions: Dimensions
    score: float


@dataclass(frozen=True)
class RankedTask:
    """A task as the engines see it: record + scoring + effective duration."""

    record: TaskRecord
    dimensions: Dimensions
    score: float
    duration_min: Optional[int] = None
    is_authority: bool = False
    visual: str = field(default="", compare=False)

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def tags(self) -> Tuple[str, ...]:
        return self.record.tags

    @property
    def markdown(self) -> str:
        return self.record.markdown


__all__ = [
    "MIN_MS",
    "RelationKind",
    "OUT",
    "IN",
    "Basin",
    "TRIAGE_BASINS",
    "NextOperator",
    "clamp0to5",
    "Dimensions",
    "ZERO",
    "fold_max",
    "compute_priority_score",
    "TaskRecord",
    "ScoredTask",
    "RankedTask",
]
