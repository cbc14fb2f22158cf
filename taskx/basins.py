# taskx/basins.py
"""Basin classification.

Basins describe where a task lives (explicit `#bN` tag, else a conservative
intake inference into B1/B2/B3). The next operator describes what to do with a
task seen from a triage basin (B1/B2/B3). Flags are recomputed on every call.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .graph import RelationGraphs
from .model import IN, OUT, TRIAGE_BASINS, Basin, NextOperator, RankedTask, RelationKind

SLOT_MODE_ALL = "all"
SLOT_MODE_BY_TAG = "by-tag"

_UNRANKED_SLOT = 9999


@dataclass(frozen=True)
class Thresholds:
    b1_max_minutes: int = 15
    b4_min_outgoing_links: int = 2


@dataclass(frozen=True)
class TaskFlags:
    is_leaf: bool
    children_count: int
    prereq_count: int
    parent_count: int
    outgoing_links: int  # prereqs + parents
    is_blocked_by_prereqs: bool
    has_duration: bool
    duration_min: Optional[int]
    has_time_constraint: bool
    is_authority: bool
    is_structure_smell: bool
    tagged_basin: Optional[Basin]
    inferred_basin: Basin = Basin.B2
    current_basin: Basin = Basin.B2
    next_operator: NextOperator = NextOperator.STAY
    eligible_b5: bool = False


@dataclass(frozen=True)
class DecisionHint:
    flags: TaskFlags
    blockers: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()
    next_action: Optional[str] = None
    suggested_basin: Optional[Basin] = None
    eligible_b5: Optional[bool] = None
    next_operator: Optional[NextOperator] = None


@dataclass(frozen=True)
class DecisionRow:
    task: RankedTask
    hint: DecisionHint
    visual: str

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def score(self) -> float:
        return self.task.score


@dataclass(frozen=True)
class B5SlotRule:
    slot_id: str
    match_any_tags: Tuple[str, ...]
    label: Optional[str] = None


@dataclass(frozen=True)
class B5SlotPlan:
    mode: str = SLOT_MODE_ALL
    rules: Tuple[B5SlotRule, ...] = ()
    default_slot_id: Optional[str] = None


@dataclass(frozen=True)
class B5SlotStats:
    candidate_count: int
    committed_count: int
    candidate_minutes: int
    committed_minutes: int


@dataclass(frozen=True)
class B5Slot:
    slot_id: str
    label: Optional[str]
    candidates: Tuple[RankedTask, ...]
    committed: Tuple[RankedTask, ...]
    stats: B5SlotStats


def read_tagged_basin(tags: Sequence[str]) -> Optional[Basin]:
    """First basin (B0..B6 order) whose `#bN` / `#BN` tag is present."""
    for b in Basin:
        if f"#{b.value.lower()}" in tags or f"#{b.value}" in tags:
            return b
    return None


def is_authority_task(tags: Sequence[str], authority_tags: Iterable[str] = ()) -> bool:
    if "#b3" in tags or "#B3" in tags:
        return True
    return any(t in tags for t in authority_tags)


def infer_intake_basin(flags: TaskFlags, thresholds: Thresholds = Thresholds()) -> Basin:
    """Intake routing for untagged tasks. Only ever B1, B2 or B3."""
    if flags.is_authority:
        return Basin.B3

    short_enough = (
        flags.is_leaf
        and flags.has_duration
        and not flags.is_blocked_by_prereqs
        and flags.duration_min is not None
        and flags.duration_min <= thresholds.b1_max_minutes
    )
    if short_enough and not flags.is_structure_smell:
        return Basin.B1
    return Basin.B2


def is_eligible_b5(flags: TaskFlags) -> bool:
    return flags.is_leaf and flags.has_duration and not flags.is_blocked_by_prereqs


def compute_next_operator(flags: TaskFlags) -> NextOperator:
    """Decision table for tasks currently in B1/B2/B3; first match wins."""
    if flags.current_basin not in TRIAGE_BASINS:
        return NextOperator.STAY

    if flags.current_basin is Basin.B3:
        return NextOperator.B5 if flags.eligible_b5 else NextOperator.B4
    if not flags.is_leaf and flags.children_count > 0:
        return NextOperator.B6
    if flags.eligible_b5:
        return NextOperator.B5
    if flags.is_leaf and not flags.has_duration:
        return NextOperator.B4
    if flags.is_blocked_by_prereqs:
        return NextOperator.B4
    if flags.is_structure_smell:
        return NextOperator.B4
    return NextOperator.STAY


def _short(items: Sequence[str]) -> str:
    return " · ".join(items[:2])


def format_hint_for_display(h: DecisionHint, basin: Basin) -> str:
    parts: List[str] = []

    if h.eligible_b5:
        parts.append("✅ eligible B5")
    if basin is Basin.B0 and h.suggested_basin is not None:
        parts.append(f"→ {h.suggested_basin.value}")
    if basin in TRIAGE_BASINS and h.next_operator is not None and h.next_operator is not NextOperator.STAY:
        parts.append(f"→ {h.next_operator.value}")
    if h.blockers:
        parts.append(f"⛔ {_short(h.blockers)}")
    if h.reasons and basin in (Basin.B3, Basin.B4, Basin.B5):
        parts.append(f"💡 {_short(h.reasons)}")
    if h.next_action:
        parts.append(h.next_action)

    if not parts:
        return ""
    return f"〔{' | '.join(parts)}〕"


def format_b5_slot_hint(slot: B5Slot) -> str:
    parts: List[str] = []
    if slot.label:
        parts.append(slot.label)
    parts.append(f"{slot.stats.committed_count} committed")
    parts.append(f"{slot.stats.candidate_count} candidates")
    if slot.stats.committed_minutes:
        parts.append(f"{slot.stats.committed_minutes}m committed")
    if slot.stats.candidate_minutes:
        parts.append(f"{slot.stats.candidate_minutes}m candidates")
    return f"〔{' | '.join(parts)}〕"


def _by_score(tasks: List[RankedTask]) -> List[RankedTask]:
    return sorted(tasks, key=lambda t: (-t.score, t.id))


class DecisionEngine:
    """Per-task flags, basin hints, and the B4/B5/B6 queues.

    The engine holds only the relation graphs and thresholds it was built
    with; every query recomputes flags from the task snapshot it is given.
    """

    def __init__(self, graphs: RelationGraphs, thresholds: Optional[Thresholds] = None) -> None:
        self.graphs = graphs
        self.thresholds = thresholds or Thresholds()

    # --- flags -------------------------------------------------------------

    def analyze_task(self, task: RankedTask) -> TaskFlags:
        prereq_count = len(self.graphs.depends_on.neighbors(task.id, RelationKind.DEPENDS_ON, OUT))
        children_count = len(self.graphs.part_of.neighbors(task.id, RelationKind.PART_OF, IN))
        parent_count = len(self.graphs.part_of.neighbors(task.id, RelationKind.PART_OF, OUT))

        outgoing_links = prereq_count + parent_count
        duration_min = task.duration_min

        base = TaskFlags(
            is_leaf=children_count == 0,
            children_count=children_count,
            prereq_count=prereq_count,
            parent_count=parent_count,
            outgoing_links=outgoing_links,
            # TODO: count only unresolved prerequisites once resolution state is collected.
            is_blocked_by_prereqs=prereq_count > 0,
            has_duration=duration_min is not None,
            duration_min=duration_min,
            has_time_constraint=task.record.has_time_constraint(),
            is_authority=bool(task.is_authority),
            is_structure_smell=parent_count > 1 or outgoing_links >= self.thresholds.b4_min_outgoing_links,
            tagged_basin=read_tagged_basin(task.tags),
        )

        inferred = infer_intake_basin(base, self.thresholds)
        current = base.tagged_basin or inferred
        flags = dataclasses.replace(
            base,
            inferred_basin=inferred,
            current_basin=current,
            eligible_b5=is_eligible_b5(base),
        )
        return dataclasses.replace(flags, next_operator=compute_next_operator(flags))

    # --- views -------------------------------------------------------------

    def include_in_basin_view(self, task: RankedTask, basin: Basin) -> bool:
        f = self.analyze_task(task)
        basin = Basin(basin)

        if f.tagged_basin is basin:
            return True
        if f.tagged_basin is not None:
            return False
        if basin is Basin.B0:
            return True
        if basin in TRIAGE_BASINS:
            return f.current_basin is basin
        if f.current_basin not in TRIAGE_BASINS:
            return False
        return f.next_operator.value == basin.value

    def render_for_basin(self, task: RankedTask, basin: Basin) -> DecisionHint:
        f = self.analyze_task(task)
        basin = Basin(basin)

        blockers: List[str] = []
        reasons: List[str] = []
        if not f.has_duration and f.is_leaf:
            blockers.append("missing duration ⏱️")
        if not f.is_leaf:
            reasons.append(f"container 🌿 ({f.children_count})")
        if f.is_blocked_by_prereqs:
            blockers.append(f"blocked ⛔ ({f.prereq_count})")
        if f.has_time_constraint:
            reasons.append("time constraint (⏳/📅)")
        if f.is_structure_smell:
            reasons.append("dense structure")

        if basin is Basin.B0:
            return DecisionHint(
                flags=f,
                suggested_basin=f.current_basin,
                eligible_b5=f.eligible_b5,
                reasons=("authority / external",) if f.current_basin is Basin.B3 else (),
                next_action="→ dispatch",
            )

        if basin in TRIAGE_BASINS:
            return DecisionHint(
                flags=f,
                eligible_b5=f.eligible_b5,
                next_operator=f.next_operator,
                blockers=tuple(blockers),
                reasons=tuple(reasons),
                next_action=self._triage_action(f, basin),
            )

        if basin is Basin.B4:
            return self._workshop_hint(f)

        if basin is Basin.B5:
            if not f.eligible_b5:
                why = []
                if not f.is_leaf:
                    why.append("not leaf")
                if not f.has_duration:
                    why.append("no duration")
                if f.is_blocked_by_prereqs:
                    why.append("blocked")
                return DecisionHint(
                    flags=f,
                    suggested_basin=Basin.B4,
                    eligible_b5=False,
                    blockers=("not eligible for B5", *why),
                    next_action="→ repair via B4",
                )
            return DecisionHint(
                flags=f,
                eligible_b5=True,
                reasons=("executable (leaf & unblocked)",),
                next_action="→ execute in slot" if f.tagged_basin is Basin.B5 else "→ commit: tag #b5",
            )

        # B6: embargo
        return DecisionHint(flags=f, eligible_b5=False, reasons=("embargo",), next_action="→ define exit event")

    def _triage_action(self, f: TaskFlags, basin: Basin) -> Optional[str]:
        if f.current_basin is not basin:
            return None
        op = f.next_operator
        if basin is Basin.B1:
            short_enough = (
                f.is_leaf
                and f.has_duration
                and not f.is_blocked_by_prereqs
                and (f.duration_min or 0) <= self.thresholds.b1_max_minutes
            )
            return "→ do" if short_enough and not f.is_structure_smell else "→ reclassify via B2"
        if basin is Basin.B2:
            if op is NextOperator.B5:
                return "→ commit: tag #b5 (and slot tag if used)"
            if op is NextOperator.B4:
                return "→ workshop: decompose/clarify/unblock"
            if op is NextOperator.B6:
                return "→ park: tag #b6 (embargo)"
            return "→ hold"
        return "→ commit & execute" if op is NextOperator.B5 else "→ close: accept / negotiate / refuse"

    def _workshop_hint(self, f: TaskFlags) -> DecisionHint:
        if f.is_authority:
            return DecisionHint(
                flags=f,
                suggested_basin=Basin.B3,
                eligible_b5=False,
                reasons=("authority / external",),
                next_action="→ close",
            )
        if not f.is_leaf:
            return DecisionHint(
                flags=f,
                eligible_b5=False,
                reasons=(f"container ({f.children_count})",),
                next_action="→ produce 1–3 leaf actions (🌿) + ⏱️; then park parent (B6)",
            )
        if not f.has_duration:
            return DecisionHint(
                flags=f,
                eligible_b5=False,
                blockers=("missing duration",),
                next_action="→ estimate ⏱️ (or split if fuzzy)",
            )
        if f.is_blocked_by_prereqs:
            return DecisionHint(
                flags=f,
                eligible_b5=False,
                blockers=("blocked ⛔",),
                next_action="→ turn prereqs into leaf actions upstream",
            )
        return DecisionHint(
            flags=f,
            eligible_b5=True,
            reasons=("leaf is ready",),
            next_action="→ commit: tag #b5 (and slot tag if used)",
        )

    def decide_for_task(self, task: RankedTask, basin: Basin) -> Optional[DecisionRow]:
        if not self.include_in_basin_view(task, basin):
            return None
        hint = self.render_for_basin(task, basin)
        text = format_hint_for_display(hint, Basin(basin))
        return DecisionRow(task=task, hint=hint, visual=f"{task.visual} {text}" if text else task.visual)

    def decision(self, basin: Basin, tasks: Iterable[RankedTask]) -> List[DecisionRow]:
        """Rows for one basin view, highest score first, ties by id."""
        rows: List[DecisionRow] = []
        for t in tasks:
            row = self.decide_for_task(t, basin)
            if row is not None:
                rows.append(row)
        rows.sort(key=lambda r: (-r.score, r.id))
        return rows

    # --- queues ------------------------------------------------------------

    def _collect_by_operator(self, tasks: Iterable[RankedTask], op: NextOperator, exclude_tag: Basin) -> List[RankedTask]:
        out: List[RankedTask] = []
        for t in tasks:
            f = self.analyze_task(t)
            if f.tagged_basin is exclude_tag:
                continue
            if f.current_basin not in TRIAGE_BASINS:
                continue
            if f.next_operator is op:
                out.append(t)
        return _by_score(out)

    def collect_b5_candidates(self, tasks: Iterable[RankedTask]) -> List[RankedTask]:
        return self._collect_by_operator(tasks, NextOperator.B5, Basin.B5)

    def collect_workshop_candidates(self, tasks: Iterable[RankedTask]) -> List[RankedTask]:
        return self._collect_by_operator(tasks, NextOperator.B4, Basin.B4)

    def collect_b6_candidates(self, tasks: Iterable[RankedTask]) -> List[RankedTask]:
        return self._collect_by_operator(tasks, NextOperator.B6, Basin.B6)

    def collect_committed_b5(self, tasks: Iterable[RankedTask]) -> List[RankedTask]:
        return _by_score([t for t in tasks if self.analyze_task(t).tagged_basin is Basin.B5])

    # --- B5 slots ----------------------------------------------------------

    def compute_slot_id(self, task: RankedTask, plan: B5SlotPlan) -> str:
        if plan.mode == SLOT_MODE_BY_TAG:
            for rule in plan.rules:
                if any(tag in task.tags for tag in rule.match_any_tags):
                    return rule.slot_id
        return plan.default_slot_id or "default"

    def build_b5_slots(self, tasks: Iterable[RankedTask], plan: Optional[B5SlotPlan] = None) -> List[B5Slot]:
        slot_plan = plan or B5SlotPlan(mode=SLOT_MODE_ALL, default_slot_id=SLOT_MODE_ALL)
        snapshot = list(tasks)
        candidates = self.collect_b5_candidates(snapshot)
        committed = self.collect_committed_b5(snapshot)

        grouped: Dict[str, Tuple[List[RankedTask], List[RankedTask]]] = {}

        def ensure(slot_id: str) -> Tuple[List[RankedTask], List[RankedTask]]:
            return grouped.setdefault(slot_id, ([], []))

        if slot_plan.mode == SLOT_MODE_ALL:
            cand, comm = ensure(slot_plan.default_slot_id or SLOT_MODE_ALL)
            cand.extend(candidates)
            comm.extend(committed)
        else:
            for t in candidates:
                ensure(self.compute_slot_id(t, slot_plan))[0].append(t)
            for t in committed:
                ensure(self.compute_slot_id(t, slot_plan))[1].append(t)

        labels: Dict[str, Optional[str]] = {}
        for rule in slot_plan.rules:
            labels.setdefault(rule.slot_id, rule.label)

        slots: List[B5Slot] = []
        for slot_id, (cand, comm) in grouped.items():
            slots.append(
                B5Slot(
                    slot_id=slot_id,
                    label=labels.get(slot_id),
                    candidates=tuple(_by_score(cand)),
                    committed=tuple(_by_score(comm)),
                    stats=B5SlotStats(
                        candidate_count=len(cand),
                        committed_count=len(comm),
                        candidate_minutes=sum(t.duration_min or 0 for t in cand),
                        committed_minutes=sum(t.duration_min or 0 for t in comm),
                    ),
                )
            )

        if slot_plan.mode == SLOT_MODE_BY_TAG and slot_plan.rules:
            order: Dict[str, int] = {}
            for i, rule in enumerate(slot_plan.rules):
                order.setdefault(rule.slot_id, i)
            slots.sort(key=lambda s: order.get(s.slot_id, _UNRANKED_SLOT))
        else:
            slots.sort(key=lambda s: s.slot_id)
        return slots


def normalize_b5_slot_plan(raw: Any) -> Tuple[B5SlotPlan, List[str]]:
    """Read a slot plan from JSON-like config; never raises."""
    diags: List[str] = []
    if raw is None:
        return B5SlotPlan(mode=SLOT_MODE_ALL, default_slot_id=SLOT_MODE_ALL), diags
    if not isinstance(raw, dict):
        diags.append("❌ b5_slots is not an object → using mode=all")
        return B5SlotPlan(mode=SLOT_MODE_ALL, default_slot_id=SLOT_MODE_ALL), diags

    mode = raw.get("mode", SLOT_MODE_ALL)
    if mode not in (SLOT_MODE_ALL, SLOT_MODE_BY_TAG):
        diags.append(f"⚠ b5_slots.mode={mode!r} unknown → using mode=all")
        mode = SLOT_MODE_ALL

    rules: List[B5SlotRule] = []
    rules_raw = raw.get("rules") or []
    if not isinstance(rules_raw, list):
        diags.append("⚠ b5_slots.rules is not a list → ignored")
        rules_raw = []
    for i, r in enumerate(rules_raw):
        if not isinstance(r, dict):
            diags.append(f"❌ b5_slots.rules[{i}] is not an object → skipped")
            continue
        slot_id = r.get("slot_id")
        tags = r.get("match_any_tags")
        if not isinstance(slot_id, str) or not slot_id.strip():
            diags.append(f"❌ b5_slots.rules[{i}] missing slot_id → skipped")
            continue
        if not isinstance(tags, list):
            diags.append(f"❌ b5_slots rule {slot_id!r} missing match_any_tags[] → skipped")
            continue
        label = r.get("label")
        rules.append(
            B5SlotRule(
                slot_id=slot_id.strip(),
                match_any_tags=tuple(t for t in tags if isinstance(t, str)),
                label=label if isinstance(label, str) else None,
            )
        )

    default_slot_id = raw.get("default_slot_id")
    if not isinstance(default_slot_id, str) or not default_slot_id.strip():
        default_slot_id = SLOT_MODE_ALL if mode == SLOT_MODE_ALL else None

    return B5SlotPlan(mode=mode, rules=tuple(rules), default_slot_id=default_slot_id), diags


def normalize_thresholds(raw: Any) -> Tuple[Thresholds, List[str]]:
    """Read intake thresholds from JSON-like config; never raises."""
    diags: List[str] = []
    if raw is None:
        return Thresholds(), diags
    if not isinstance(raw, dict):
        diags.append("❌ thresholds is not an object → using defaults")
        return Thresholds(), diags

    base = Thresholds()
    values: Dict[str, int] = {}
    for key, minimum in (("b1_max_minutes", 1), ("b4_min_outgoing_links", 1)):
        v = raw.get(key)
        if v is None:
            continue
        if isinstance(v, bool) or not isinstance(v, (int, float)) or v != v or v < minimum:
            diags.append(f"⚠ thresholds.{key}={v!r} must be a number >= {minimum} → using {getattr(base, key)}")
            continue
        values[key] = int(v)
    return dataclasses.replace(base, **values), diags
