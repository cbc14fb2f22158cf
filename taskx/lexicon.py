# taskx/lexicon.py
"""Dict-backed tag lexicon.

The engines only need two callables, `tag -> Dimensions` and `tag -> bool`.
`TagLexicon` is the reference implementation used by the CLI; any other
resolver with the same shape can be injected instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .model import ZERO, Dimensions

_WS_RE = re.compile(r"\s")


def normalize_tag(raw: Any, *, lowercase: bool = True) -> Optional[str]:
    """'Urgent' -> '#urgent'; tags with inner whitespace are rejected."""
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not s:
        return None
    if not s.startswith("#"):
        s = "#" + s
    if _WS_RE.search(s):
        return None
    return s.lower() if lowercase else s


@dataclass(frozen=True)
class TagLexicon:
    dimensions_by_tag: Dict[str, Dimensions] = field(default_factory=dict)
    authority_tags: FrozenSet[str] = frozenset()
    lowercase: bool = True

    def dimensions(self, tag: str) -> Dimensions:
        n = normalize_tag(tag, lowercase=self.lowercase)
        if n is None:
            return ZERO
        return self.dimensions_by_tag.get(n, ZERO)

    def is_authority(self, tag: str) -> bool:
        n = normalize_tag(tag, lowercase=self.lowercase)
        return n is not None and n in self.authority_tags


EMPTY_LEXICON = TagLexicon()


def load_lexicon_config(raw: Any) -> Tuple[TagLexicon, List[str]]:
    """Build a lexicon from a JSON-like dict; never raises.

    Expected shape:
      {"lowercase": true,
       "tags": {"#urgent": {"gain": 0, "pressure": 4, "friction": 0}, ...},
       "authority_tags": ["#boss", "#client"]}
    """
    diags: List[str] = []
    if raw is None:
        return EMPTY_LEXICON, diags
    if not isinstance(raw, dict):
        diags.append("❌ lexicon is not an object → empty lexicon")
        return EMPTY_LEXICON, diags

    lowercase = raw.get("lowercase")
    lowercase = lowercase if isinstance(lowercase, bool) else True

    dims: Dict[str, Dimensions] = {}
    tags_raw = raw.get("tags") or {}
    if not isinstance(tags_raw, dict):
        diags.append("⚠ lexicon.tags is not an object → ignored")
        tags_raw = {}
    for tag, spec in tags_raw.items():
        n = normalize_tag(tag, lowercase=lowercase)
        if n is None:
            diags.append(f"⚠ lexicon tag {tag!r} is not a valid tag → skipped")
            continue
        if not isinstance(spec, dict):
            diags.append(f"⚠ lexicon tag {n} has no dimensions object → skipped")
            continue
        d = Dimensions.of(spec.get("gain", 0), spec.get("pressure", 0), spec.get("friction", 0))
        prev = dims.get(n)
        dims[n] = d if prev is None else prev.fold(d)

    auth: set[str] = set()
    auth_raw = raw.get("authority_tags") or []
    if not isinstance(auth_raw, list):
        diags.append("⚠ lexicon.authority_tags is not a list → ignored")
        auth_raw = []
    for tag in auth_raw:
        n = normalize_tag(tag, lowercase=lowercase)
        if n is not None:
            auth.add(n)

    return TagLexicon(dimensions_by_tag=dims, authority_tags=frozenset(auth), lowercase=lowercase), diags
