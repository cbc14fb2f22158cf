# taskx/durations.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .graph import RelationGraph
from .model import IN, RelationKind, TaskRecord
from .util.duration import format_minutes

POLICY_LEAVES_ONLY = "leaves_only"
POLICY_EXPLICIT_OVERRIDES = "explicit_overrides"

OVERRIDE_WARN_DELTA_MIN = 30


@dataclass(frozen=True)
class DurationResult:
    durations: Dict[str, int] = field(default_factory=dict)
    needs_duration: List[str] = field(default_factory=list)  # leaves missing an estimate
    warnings: List[str] = field(default_factory=list)


def compute_part_of_durations(
    graph: RelationGraph,
    tasks_by_id: Mapping[str, TaskRecord],
    policy: str = POLICY_LEAVES_ONLY,
) -> DurationResult:
    """Aggregate durations bottom-up along partOf.

    Leaves must carry their own estimate. A container gets the sum of its
    children once every child is known; with `explicit_overrides` a container's
    own estimate wins (and a warning is recorded when it disagrees with the
    children by 30 minutes or more).
    """
    if policy not in (POLICY_LEAVES_ONLY, POLICY_EXPLICIT_OVERRIDES):
        raise ValueError(f"Unknown duration policy: {policy!r}")

    durations: Dict[str, int] = {}
    needs: List[str] = []
    warnings: List[str] = []

    for node_id in graph.walk_post_order_all(RelationKind.PART_OF, IN):
        rec = tasks_by_id.get(node_id)
        if rec is None:
            continue

        children = graph.neighbors(node_id, RelationKind.PART_OF, IN)
        explicit = rec.duration_min if rec.duration_min and rec.duration_min > 0 else None

        if not children:
            if explicit is None:
                needs.append(node_id)
            else:
                durations[node_id] = explicit
            continue

        known = [durations[c] for c in children if c in durations]
        missing_child = len(known) != len(children)

        if policy == POLICY_EXPLICIT_OVERRIDES and explicit is not None:
            if not missing_child:
                total = sum(known)
                if abs(explicit - total) >= OVERRIDE_WARN_DELTA_MIN:
                    warnings.append(
                        f"Duration override on {node_id}: explicit={format_minutes(explicit)} "
                        f"vs children={format_minutes(total)}"
                    )
            durations[node_id] = explicit
            continue

        if missing_child:
            continue
        durations[node_id] = sum(known)

    return DurationResult(durations=durations, needs_duration=needs, warnings=warnings)
