# taskx/graph.py
"""Directed multi-kind relation graph over task ids.

Edges point `from -> to`. For `partOf` that is child -> parent, so a node's
children are its "in" neighbours. Self-loops and cycles are accepted; walks
visit each node once and always terminate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from .model import IN, OUT, RelationKind, TaskRecord

# id -> kind -> ordered set of neighbour ids
_Adj = Dict[str, Dict[RelationKind, Dict[str, None]]]


class RelationGraph:
    def __init__(self) -> None:
        self._nodes: Dict[str, None] = {}
        self._out: _Adj = {}
        self._in: _Adj = {}

    def add_node(self, node_id: str) -> None:
        if node_id not in self._nodes:
            self._nodes[node_id] = None
            self._out[node_id] = {}
            self._in[node_id] = {}

    def add_edge(self, kind: RelationKind, from_id: str, to_id: str) -> None:
        kind = RelationKind(kind)
        self.add_node(from_id)
        self.add_node(to_id)
        self._out[from_id].setdefault(kind, {})[to_id] = None
        self._in[to_id].setdefault(kind, {})[from_id] = None

    def nodes(self) -> List[str]:
        return list(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def neighbors(self, node_id: str, kind: RelationKind, direction: str = OUT) -> List[str]:
        if direction not in (OUT, IN):
            raise ValueError(f"direction must be 'out' or 'in'; got {direction!r}")
        adj = self._out if direction == OUT else self._in
        by_kind = adj.get(node_id)
        if not by_kind:
            return []
        return list(by_kind.get(RelationKind(kind), {}))

    def walk_dfs(self, start: str, kind: RelationKind, direction: str = OUT) -> Iterator[str]:
        """Pre-order DFS from `start` (start included)."""
        seen: set[str] = set()
        stack = [start]
        while stack:
            cur = stack.pop()
            if cur in seen:
                continue
            seen.add(cur)
            yield cur
            for n in reversed(self.neighbors(cur, kind, direction)):
                stack.append(n)

    def walk_post_order_all(self, kind: RelationKind, direction: str = OUT) -> Iterator[str]:
        """Yield every node after all nodes reachable from it (leaf-first).

        Roots are taken in node insertion order. Inside a cycle the node that
        closed the cycle is emitted before the one that opened it.
        """
        visited: set[str] = set()
        for root in self._nodes:
            if root in visited:
                continue
            visited.add(root)
            stack: List[Tuple[str, Iterator[str]]] = [(root, iter(self.neighbors(root, kind, direction)))]
            while stack:
                node, it = stack[-1]
                advanced = False
                for n in it:
                    if n in visited:
                        continue
                    visited.add(n)
                    stack.append((n, iter(self.neighbors(n, kind, direction))))
                    advanced = True
                    break
                if not advanced:
                    stack.pop()
                    yield node


@dataclass(frozen=True)
class RelationGraphs:
    depends_on: RelationGraph
    part_of: RelationGraph

    def of(self, kind: RelationKind) -> RelationGraph:
        if RelationKind(kind) is RelationKind.DEPENDS_ON:
            return self.depends_on
        return self.part_of


def build_relation_graphs(records: Iterable[TaskRecord]) -> RelationGraphs:
    """One graph per relation kind; targets outside the active set are dropped."""
    recs = list(records)
    ids = {r.id for r in recs}

    depends_on = RelationGraph()
    part_of = RelationGraph()

    for r in recs:
        depends_on.add_node(r.id)
        part_of.add_node(r.id)
        for to in r.depends_on:
            if to in ids:
                depends_on.add_edge(RelationKind.DEPENDS_ON, r.id, to)
        for to in r.part_of:
            if to in ids:
                part_of.add_edge(RelationKind.PART_OF, r.id, to)

    return RelationGraphs(depends_on=depends_on, part_of=part_of)
