# taskx/schedule/render.py
"""Plain-text renderers for basin rows, B5 slots, the day table and the now view."""

from __future__ import annotations

from typing import List, Sequence

from ..basins import B5Slot, DecisionEngine, DecisionRow, format_b5_slot_hint
from ..util.timeparse import fmt_hhmm
from ..util.tz import datetime_from_ms
from .hints import compute_scheduling_hint
from .now import block_guidance, explain_kind, find_active_item, next_task_in_block, top_commit_candidates
from .types import BlockKind, DaySchedule


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))

    def line(cells: Sequence[str]) -> str:
        return "  ".join(c.ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    out = [line(headers), line(["-" * w for w in widths])]
    out.extend(line(r) for r in rows)
    return "\n".join(out)


def render_decision_rows(rows: Sequence[DecisionRow]) -> str:
    if not rows:
        return "(empty)"
    return "\n".join(f"- {r.visual}" for r in rows)


def render_b5_slots(slots: Sequence[B5Slot]) -> str:
    out: List[str] = []
    for s in slots:
        out.append(f"## {s.slot_id} {format_b5_slot_hint(s)}")
        for t in s.committed:
            out.append(f"- [#b5] {t.visual}")
        for t in s.candidates:
            out.append(f"- {t.visual}")
    return "\n".join(out)


def render_day_schedule(schedule: DaySchedule) -> str:
    tz = schedule.context.tz
    lines = [f"- {d}" for d in schedule.diagnostics]

    rows = []
    for it in schedule.items:
        span = f"{fmt_hhmm(it.start_ms, tz)}–{fmt_hhmm(it.end_ms, tz)}"
        if it.task is None:
            rows.append([span, f"[{it.block.label or it.block.kind.value}]", ""])
            continue
        hint = compute_scheduling_hint(it.task)
        meta = f"({hint.urgency}/{hint.value}/{hint.friction})"
        rows.append([span, f"  {meta} {it.task.markdown or it.task.id}", " · ".join(hint.reasons[:2])])

    if lines:
        lines.append("")
    lines.append(render_table(["Time", "Plan", "Why"], rows))
    return "\n".join(lines)


def render_now_view(schedule: DaySchedule, engine: DecisionEngine) -> str:
    ctx = schedule.context
    out = [f"Now: {datetime_from_ms(ctx.now_ms, ctx.tz).strftime('%A %Y-%m-%d %H:%M')}"]
    if schedule.diagnostics:
        out.append("Diagnostics: " + " · ".join(schedule.diagnostics[:4]))

    active, block = find_active_item(schedule)
    if block is None:
        out.append("No active block within today’s horizon.")
        return "\n".join(out)

    out.append(
        f"Active block: {fmt_hhmm(block.start_ms, ctx.tz)}–{fmt_hhmm(block.end_ms, ctx.tz)} · "
        f"{block.kind.value} · profile={block.profile.value}"
    )
    out.append(explain_kind(block.kind))

    if active is not None and active.task is not None:
        out.append(f"Do now: {active.task.visual}")
        return "\n".join(out)

    nxt = next_task_in_block(schedule, block)
    if nxt is not None and nxt.task is not None:
        out.append(f"Next task in block: {nxt.task.visual}")
        return "\n".join(out)

    if block.kind is BlockKind.GOVERNANCE_B5_COMMIT:
        top = top_commit_candidates(schedule, engine, block)
        if not top:
            out.append("No eligible B5 candidates found (likely missing durations or blocked). Open B4 to repair.")
        else:
            out.append("Top eligible tasks to commit (#b5):")
            out.extend(f"- {t.visual}" for t in top)
            out.append("Pick 1–3 and tag #b5. Then the execute blocks will pull from committed tasks first.")
        return "\n".join(out)

    out.append(block_guidance(block.kind))
    return "\n".join(out)
