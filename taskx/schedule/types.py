# taskx/schedule/types.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..model import MIN_MS, RankedTask


class BlockKind(str, Enum):
    GOVERNANCE_R0 = "governance:r0"
    GOVERNANCE_B5_COMMIT = "governance:b5-commit"
    OP_B1_DO_NOW = "op:b1-do-now"
    OP_B2_JUDGE = "op:b2-judge"
    OP_B3_CLOSE = "op:b3-close"
    OP_B4_WORKSHOP = "op:b4-workshop"
    OP_B5_EXECUTE = "op:b5-execute"
    OP_B6_EMBARGO = "op:b6-embargo"
    FIXED_MEAL = "fixed:meal"
    FIXED_SLEEP = "fixed:sleep"
    FIXED_RENDEZVOUS = "fixed:rendezvous"
    FIXED_LOGISTICS = "fixed:logistics"


class ProfileMode(str, Enum):
    DEEP = "deep"
    SHALLOW = "shallow"
    ADMIN = "admin"


URGENCIES = ("low", "medium", "high", "critical")
URGENCY_RANK = {u: i for i, u in enumerate(URGENCIES)}

ROLE_PREP = "prep"
ROLE_TRAVEL = "travel"
ROLE_RECOVER = "recover"


def minutes_between(start_ms: int, end_ms: int) -> int:
    return max(0, int(round((end_ms - start_ms) / MIN_MS)))


@dataclass(frozen=True)
class FixedEvent:
    kind: BlockKind
    start_ms: int
    end_ms: int
    label: str
    group_id: Optional[str] = None
    role: Optional[str] = None  # logistics only: prep | travel | recover

    @property
    def minutes(self) -> int:
        return minutes_between(self.start_ms, self.end_ms)

    def describe(self) -> str:
        return f"{self.kind.value}:{self.role}" if self.role else self.kind.value


@dataclass(frozen=True)
class FreeSlot:
    start_ms: int
    end_ms: int
    minutes: int


@dataclass(frozen=True)
class TimeBlockPlan:
    kind: BlockKind
    start_ms: int
    end_ms: int
    minutes: int
    profile: ProfileMode
    label: Optional[str] = None
    min_urgency: Optional[str] = None
    allow_authority: Optional[bool] = None
    max_tasks: Optional[int] = None
    priority: int = 9999
    recipe_id: Optional[str] = None

    def contains(self, ms: int) -> bool:
        return self.start_ms <= ms < self.end_ms


ITEM_BLOCK = "block"
ITEM_TASK = "task"


@dataclass(frozen=True)
class ScheduledItem:
    """One row of the day: a block header or a task placed inside `block`."""

    kind: str
    block: TimeBlockPlan
    start_ms: int
    end_ms: int
    task: Optional[RankedTask] = None

    @classmethod
    def for_block(cls, block: TimeBlockPlan) -> "ScheduledItem":
        return cls(kind=ITEM_BLOCK, block=block, start_ms=block.start_ms, end_ms=block.end_ms)

    @classmethod
    def for_task(cls, block: TimeBlockPlan, task: RankedTask, start_ms: int, end_ms: int) -> "ScheduledItem":
        return cls(kind=ITEM_TASK, block=block, start_ms=start_ms, end_ms=end_ms, task=task)

    @property
    def is_task(self) -> bool:
        return self.kind == ITEM_TASK


@dataclass(frozen=True)
class DayContext:
    now_ms: int
    tz: dt.tzinfo
    day: dt.date
    day_start_ms: int
    day_end_ms: int
    lunch_start_ms: int
    lunch_minutes: int
    is_r0_done: bool
    has_b5: bool
    weekday: int  # 0=Sunday .. 6=Saturday
    r0_reason: str = ""
    r0_task_id: Optional[str] = None

    @property
    def today_iso(self) -> str:
        return self.day.isoformat()


@dataclass(frozen=True)
class DaySchedule:
    context: DayContext
    fixed: Tuple[FixedEvent, ...]
    free_slots: Tuple[FreeSlot, ...]
    blocks: Tuple[TimeBlockPlan, ...]
    items: Tuple[ScheduledItem, ...]
    diagnostics: Tuple[str, ...]
    all_tasks: Tuple[RankedTask, ...]
    profile_id: Optional[str] = None

    def placed_task_ids(self) -> Tuple[str, ...]:
        return tuple(it.task.id for it in self.items if it.task is not None)
