# taskx/schedule/profiles.py
"""Day profiles: block recipes grouped in packs, packs selected by grand profiles.

Loading is defensive. Every malformed entry is skipped with a diagnostic,
duplicate ids keep the first occurrence, dangling pack references are kept,
and an empty result falls back to the built-in defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..util.timeparse import hhmm_to_minutes
from .types import URGENCIES, BlockKind, DayContext, ProfileMode

WHEN_ALWAYS = "always"
WHEN_WEEKDAY = "weekday"
WHEN_WEEKEND = "weekend"
WHEN_DATE_RANGE = "date_range"

SELECTOR_KINDS = (WHEN_WEEKDAY, WHEN_WEEKEND, WHEN_DATE_RANGE)

DEFAULT_RECIPE_PRIORITY = 9999
DEFAULT_PROFILE_PRIORITY = 1000


@dataclass(frozen=True)
class RecipeWhen:
    kind: str = WHEN_ALWAYS
    days: Tuple[int, ...] = ()  # weekday kind, 0=Sunday
    start_iso: Optional[str] = None  # date_range, inclusive
    end_iso: Optional[str] = None


@dataclass(frozen=True)
class BlockRecipe:
    id: str
    label: str
    window_start: str  # HH:MM local
    window_end: str
    kind: BlockKind
    profile: ProfileMode
    chunk_minutes: int
    allow_authority: bool = False
    min_urgency: Optional[str] = None
    max_tasks: Optional[int] = None
    when: Optional[RecipeWhen] = None
    priority: int = DEFAULT_RECIPE_PRIORITY  # lower wins


@dataclass(frozen=True)
class RecipePack:
    id: str
    label: str
    recipes: Tuple[BlockRecipe, ...]


@dataclass(frozen=True)
class ProfileSelector:
    kind: str
    start_iso: Optional[str] = None
    end_iso: Optional[str] = None


@dataclass(frozen=True)
class GrandProfile:
    id: str
    label: str
    priority: int
    selectors: Tuple[ProfileSelector, ...]
    pack_ids: Tuple[str, ...]
    schedule: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DayProfileSettings:
    enabled: bool
    packs: Tuple[RecipePack, ...]
    grand_profiles: Tuple[GrandProfile, ...]
    manual_by_date: Dict[str, str] = field(default_factory=dict)

    def pack(self, pack_id: str) -> Optional[RecipePack]:
        for p in self.packs:
            if p.id == pack_id:
                return p
        return None


@dataclass(frozen=True)
class LoadedDayProfiles:
    settings: DayProfileSettings
    diagnostics: List[str]


# --- defaults ----------------------------------------------------------------


def _recipe(
    rid: str,
    label: str,
    window: Tuple[str, str],
    kind: BlockKind,
    mode: ProfileMode,
    chunk: int,
    priority: int,
    **kw: Any,
) -> BlockRecipe:
    kw.setdefault("allow_authority", mode is ProfileMode.ADMIN)
    return BlockRecipe(
        id=rid,
        label=label,
        window_start=window[0],
        window_end=window[1],
        kind=kind,
        profile=mode,
        chunk_minutes=chunk,
        priority=priority,
        **kw,
    )


DEFAULT_DAY_PROFILE_SETTINGS = DayProfileSettings(
    enabled=True,
    packs=(
        RecipePack(
            id="weekday-core",
            label="Weekday core",
            recipes=(
                _recipe("commit", "B5 commit", ("09:00", "09:15"), BlockKind.GOVERNANCE_B5_COMMIT, ProfileMode.ADMIN, 15, 10),
                _recipe(
                    "deep-am", "Deep execute", ("09:15", "12:30"), BlockKind.OP_B5_EXECUTE, ProfileMode.DEEP, 90, 20,
                    min_urgency="medium",
                ),
                _recipe("workshop", "Workshop", ("13:15", "14:00"), BlockKind.OP_B4_WORKSHOP, ProfileMode.ADMIN, 30, 30),
                _recipe(
                    "shallow-pm", "Shallow execute", ("14:00", "17:00"), BlockKind.OP_B5_EXECUTE, ProfileMode.SHALLOW, 45, 40,
                    min_urgency="medium",
                ),
                _recipe("close", "Close authority", ("17:00", "17:30"), BlockKind.OP_B3_CLOSE, ProfileMode.ADMIN, 20, 50),
                _recipe("judge", "Judge candidates", ("17:30", "18:45"), BlockKind.OP_B2_JUDGE, ProfileMode.ADMIN, 30, 60),
                _recipe("embargo", "Embargo review", ("18:45", "19:00"), BlockKind.OP_B6_EMBARGO, ProfileMode.SHALLOW, 15, 70),
            ),
        ),
        RecipePack(
            id="weekend-light",
            label="Weekend light",
            recipes=(
                _recipe("we-workshop", "Workshop", ("10:00", "11:00"), BlockKind.OP_B4_WORKSHOP, ProfileMode.ADMIN, 30, 10),
                _recipe("we-execute", "Light execute", ("11:00", "12:30"), BlockKind.OP_B5_EXECUTE, ProfileMode.SHALLOW, 45, 20),
                _recipe("we-judge", "Judge candidates", ("16:00", "17:00"), BlockKind.OP_B2_JUDGE, ProfileMode.ADMIN, 30, 30),
            ),
        ),
    ),
    grand_profiles=(
        GrandProfile(
            id="weekday",
            label="Weekday",
            priority=100,
            selectors=(ProfileSelector(kind=WHEN_WEEKDAY),),
            pack_ids=("weekday-core",),
        ),
        GrandProfile(
            id="weekend",
            label="Weekend",
            priority=100,
            selectors=(ProfileSelector(kind=WHEN_WEEKEND),),
            pack_ids=("weekend-light",),
        ),
    ),
)


# --- normalization -----------------------------------------------------------


def _as_str(x: Any) -> Optional[str]:
    return x if isinstance(x, str) and x.strip() else None


def _as_number(x: Any) -> Optional[float]:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        return None
    if x != x or x in (float("inf"), float("-inf")):
        return None
    return x


def _clamp_int(n: float, lo: int, hi: int) -> int:
    return max(lo, min(hi, int(n)))


def parse_when(raw: Any) -> Optional[RecipeWhen]:
    if not isinstance(raw, dict):
        return None
    kind = _as_str(raw.get("kind"))
    if kind == WHEN_ALWAYS:
        return RecipeWhen(kind=WHEN_ALWAYS)
    if kind == WHEN_WEEKDAY:
        days_raw = raw.get("days") if isinstance(raw.get("days"), list) else []
        days = tuple(_clamp_int(n, 0, 6) for n in (_as_number(d) for d in days_raw) if n is not None)
        return RecipeWhen(kind=WHEN_WEEKDAY, days=days)
    if kind == WHEN_WEEKEND:
        return RecipeWhen(kind=WHEN_WEEKEND)
    if kind == WHEN_DATE_RANGE:
        start = _as_str(raw.get("start_iso"))
        end = _as_str(raw.get("end_iso"))
        if not start or not end:
            return None
        return RecipeWhen(kind=WHEN_DATE_RANGE, start_iso=start, end_iso=end)
    return None


def _parse_mode(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        raw = raw.get("mode")
    return raw if isinstance(raw, str) else None


def normalize_recipe(raw: Any, diags: List[str], idx: int) -> Optional[BlockRecipe]:
    if not isinstance(raw, dict):
        diags.append(f"❌ recipe[{idx}] is not an object → skipped")
        return None

    rid = _as_str(raw.get("id"))
    if not rid:
        diags.append(f"❌ recipe[{idx}] missing id → skipped")
        return None
    label = _as_str(raw.get("label")) or rid

    w = raw.get("window")
    if not isinstance(w, dict):
        diags.append(f'❌ recipe "{rid}" missing window → skipped')
        return None
    start = _as_str(w.get("start"))
    end = _as_str(w.get("end"))
    try:
        if not start or not end or hhmm_to_minutes(end) <= hhmm_to_minutes(start):
            raise ValueError(f"{start!r}-{end!r}")
    except ValueError:
        diags.append(f'❌ recipe "{rid}" window.start/window.end invalid → skipped')
        return None

    kind_raw = _as_str(raw.get("kind"))
    if not kind_raw:
        diags.append(f'❌ recipe "{rid}" missing kind → skipped')
        return None
    try:
        kind = BlockKind(kind_raw)
    except ValueError:
        diags.append(f'❌ recipe "{rid}" unknown kind="{kind_raw}" → skipped')
        return None

    mode_raw = _parse_mode(raw.get("profile"))
    if mode_raw is None:
        diags.append(f'❌ recipe "{rid}" missing profile.mode → skipped')
        return None
    try:
        mode = ProfileMode(mode_raw)
    except ValueError:
        diags.append(f'❌ recipe "{rid}" invalid profile.mode="{mode_raw}" → skipped')
        return None

    chunk = _as_number(raw.get("chunk_minutes"))
    if chunk is None or chunk <= 0:
        diags.append(f'❌ recipe "{rid}" chunk_minutes must be > 0 → skipped')
        return None

    allow_authority = raw.get("allow_authority")
    if not isinstance(allow_authority, bool):
        allow_authority = mode is ProfileMode.ADMIN

    priority = _as_number(raw.get("priority"))

    min_urgency = raw.get("min_urgency")
    if min_urgency is not None and min_urgency not in URGENCIES:
        diags.append(f'⚠ recipe "{rid}" invalid min_urgency → ignored')
        min_urgency = None

    max_tasks = _as_number(raw.get("max_tasks"))

    return BlockRecipe(
        id=rid,
        label=label,
        window_start=start,
        window_end=end,
        kind=kind,
        profile=mode,
        chunk_minutes=_clamp_int(chunk, 5, 240),
        allow_authority=allow_authority,
        min_urgency=min_urgency,
        max_tasks=None if max_tasks is None else _clamp_int(max_tasks, 0, 99),
        when=parse_when(raw.get("when")),
        priority=DEFAULT_RECIPE_PRIORITY if priority is None else int(priority),
    )


def normalize_pack(raw: Any, diags: List[str], idx: int) -> Optional[RecipePack]:
    if not isinstance(raw, dict):
        diags.append(f"❌ pack[{idx}] is not an object → skipped")
        return None
    pid = _as_str(raw.get("id"))
    if not pid:
        diags.append(f"❌ pack[{idx}] missing id → skipped")
        return None
    recipes_raw = raw.get("recipes")
    if not isinstance(recipes_raw, list):
        diags.append(f'❌ pack "{pid}" missing recipes[] → skipped')
        return None

    recipes = []
    for i, r in enumerate(recipes_raw):
        rec = normalize_recipe(r, diags, i)
        if rec is not None:
            recipes.append(rec)
    recipes = _dedupe(recipes, "recipe", diags)
    return RecipePack(id=pid, label=_as_str(raw.get("label")) or pid, recipes=tuple(recipes))


def normalize_grand_profile(raw: Any, diags: List[str], idx: int) -> Optional[GrandProfile]:
    if not isinstance(raw, dict):
        diags.append(f"❌ grand_profile[{idx}] is not an object → skipped")
        return None
    gid = _as_str(raw.get("id"))
    if not gid:
        diags.append(f"❌ grand_profile[{idx}] missing id → skipped")
        return None

    priority = _as_number(raw.get("priority"))
    pack_ids_raw = raw.get("pack_ids") if isinstance(raw.get("pack_ids"), list) else []
    pack_ids = tuple(p for p in (_as_str(x) for x in pack_ids_raw) if p)

    selectors: List[ProfileSelector] = []
    sel_raw = raw.get("selectors") if isinstance(raw.get("selectors"), list) else []
    for s in sel_raw:
        if not isinstance(s, dict):
            continue
        k = _as_str(s.get("kind"))
        if k in (WHEN_WEEKDAY, WHEN_WEEKEND):
            selectors.append(ProfileSelector(kind=k))
        elif k == WHEN_DATE_RANGE:
            start = _as_str(s.get("start_iso"))
            end = _as_str(s.get("end_iso"))
            if start and end:
                selectors.append(ProfileSelector(kind=WHEN_DATE_RANGE, start_iso=start, end_iso=end))

    schedule = raw.get("schedule")
    return GrandProfile(
        id=gid,
        label=_as_str(raw.get("label")) or gid,
        priority=DEFAULT_PROFILE_PRIORITY if priority is None else int(priority),
        selectors=tuple(selectors) or (ProfileSelector(kind=WHEN_WEEKDAY),),
        pack_ids=pack_ids,
        schedule=dict(schedule) if isinstance(schedule, dict) else {},
    )


def _dedupe(items: List[Any], what: str, diags: List[str]) -> List[Any]:
    seen: set[str] = set()
    out = []
    for it in items:
        if it.id in seen:
            diags.append(f'❌ duplicate {what} id "{it.id}" → later one dropped')
            continue
        seen.add(it.id)
        out.append(it)
    return out


def load_day_profiles_config(raw: Any, defaults: Optional[DayProfileSettings] = None) -> LoadedDayProfiles:
    """Sanitize a `day_profiles` config object. Never raises."""
    diags: List[str] = []
    base = defaults or DEFAULT_DAY_PROFILE_SETTINGS

    if raw is None:
        diags.append("ℹ day_profiles missing → using defaults")
        return LoadedDayProfiles(base, diags)
    if not isinstance(raw, dict):
        diags.append("❌ day_profiles is not an object → using defaults")
        return LoadedDayProfiles(base, diags)

    enabled = raw.get("enabled")
    enabled = enabled if isinstance(enabled, bool) else True

    packs: List[RecipePack] = []
    if isinstance(raw.get("packs"), list):
        for i, p in enumerate(raw["packs"]):
            pack = normalize_pack(p, diags, i)
            if pack is not None:
                packs.append(pack)
    else:
        diags.append("⚠ day_profiles.packs missing/invalid → using default packs")
        packs.extend(base.packs)

    profiles: List[GrandProfile] = []
    if isinstance(raw.get("grand_profiles"), list):
        for i, g in enumerate(raw["grand_profiles"]):
            gp = normalize_grand_profile(g, diags, i)
            if gp is not None:
                profiles.append(gp)
    else:
        diags.append("⚠ day_profiles.grand_profiles missing/invalid → using default grand_profiles")
        profiles.extend(base.grand_profiles)

    manual_raw = raw.get("manual_by_date")
    manual: Dict[str, str] = {}
    if isinstance(manual_raw, dict):
        manual = {k: v for k, v in manual_raw.items() if isinstance(k, str) and isinstance(v, str)}

    packs = _dedupe(packs, "pack", diags)
    profiles = _dedupe(profiles, "grand_profile", diags)

    known = {p.id for p in packs}
    for g in profiles:
        missing = [pid for pid in g.pack_ids if pid not in known]
        if missing:
            diags.append(f'❌ grand_profile "{g.id}" references missing pack_ids: {", ".join(missing)}')

    if not packs or not profiles:
        diags.append("❌ day_profiles ended up empty after normalization → using defaults")
        return LoadedDayProfiles(base, diags)

    settings = DayProfileSettings(
        enabled=enabled,
        packs=tuple(packs),
        grand_profiles=tuple(profiles),
        manual_by_date=manual,
    )
    return LoadedDayProfiles(settings, diags)


# --- selection ---------------------------------------------------------------


def _in_date_range(today_iso: str, start_iso: Optional[str], end_iso: Optional[str]) -> bool:
    return bool(start_iso and end_iso) and start_iso <= today_iso <= end_iso


def selector_matches(ctx: DayContext, sel: ProfileSelector) -> bool:
    if sel.kind == WHEN_WEEKDAY:
        return 1 <= ctx.weekday <= 5
    if sel.kind == WHEN_WEEKEND:
        return ctx.weekday in (0, 6)
    if sel.kind == WHEN_DATE_RANGE:
        return _in_date_range(ctx.today_iso, sel.start_iso, sel.end_iso)
    return False


def select_grand_profile(ctx: DayContext, settings: DayProfileSettings) -> Optional[GrandProfile]:
    """Manual override for today, else the lowest priority number that matches, else the first."""
    manual_id = settings.manual_by_date.get(ctx.today_iso)
    if manual_id:
        for p in settings.grand_profiles:
            if p.id == manual_id:
                return p

    matching = [p for p in settings.grand_profiles if any(selector_matches(ctx, s) for s in p.selectors)]
    if matching:
        return min(matching, key=lambda p: p.priority)
    return settings.grand_profiles[0] if settings.grand_profiles else None


def should_apply_recipe(ctx: DayContext, r: BlockRecipe) -> bool:
    when = r.when
    if when is None or when.kind == WHEN_ALWAYS:
        return True
    if when.kind == WHEN_WEEKDAY:
        return ctx.weekday in when.days
    if when.kind == WHEN_WEEKEND:
        return ctx.weekday in (0, 6)
    if when.kind == WHEN_DATE_RANGE:
        return _in_date_range(ctx.today_iso, when.start_iso, when.end_iso)
    return True
