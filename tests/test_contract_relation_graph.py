from __future__ import annotations

import unittest

from taskx.graph import RelationGraph, build_relation_graphs
from taskx.model import IN, OUT, RelationKind, TaskRecord


class TestRelationGraphContract(unittest.TestCase):
    def test_neighbors_by_kind_and_direction(self) -> None:
        g = RelationGraph()
        g.add_edge(RelationKind.PART_OF, "a", "p")
        g.add_edge(RelationKind.PART_OF, "b", "p")
        g.add_edge(RelationKind.DEPENDS_ON, "a", "b")

        self.assertEqual(g.neighbors("p", RelationKind.PART_OF, IN), ["a", "b"])
        self.assertEqual(g.neighbors("a", RelationKind.PART_OF, OUT), ["p"])
        self.assertEqual(g.neighbors("a", RelationKind.DEPENDS_ON, OUT), ["b"])
        self.assertEqual(g.neighbors("p", RelationKind.DEPENDS_ON, IN), [])
        self.assertEqual(g.neighbors("missing", RelationKind.PART_OF, OUT), [])

    def test_duplicate_edges_collapse_and_kind_accepts_strings(self) -> None:
        g = RelationGraph()
        g.add_edge("partOf", "a", "p")
        g.add_edge(RelationKind.PART_OF, "a", "p")
        self.assertEqual(g.neighbors("a", "partOf", OUT), ["p"])
        self.assertEqual(len(g), 2)
        self.assertIn("p", g)

    def test_invalid_direction_raises(self) -> None:
        g = RelationGraph()
        g.add_node("a")
        with self.assertRaises(ValueError):
            g.neighbors("a", RelationKind.PART_OF, "sideways")

    def test_walk_dfs_is_preorder_and_cycle_safe(self) -> None:
        g = RelationGraph()
        g.add_edge(RelationKind.DEPENDS_ON, "a", "b")
        g.add_edge(RelationKind.DEPENDS_ON, "b", "c")
        g.add_edge(RelationKind.DEPENDS_ON, "c", "a")
        self.assertEqual(list(g.walk_dfs("a", RelationKind.DEPENDS_ON)), ["a", "b", "c"])

    def test_post_order_emits_children_before_parent(self) -> None:
        g = RelationGraph()
        for n in ("p", "a", "b"):
            g.add_node(n)
        g.add_edge(RelationKind.PART_OF, "a", "p")
        g.add_edge(RelationKind.PART_OF, "b", "p")

        order = list(g.walk_post_order_all(RelationKind.PART_OF, IN))
        self.assertEqual(order, ["a", "b", "p"])

    def test_post_order_terminates_on_cycles_and_self_loops(self) -> None:
        g = RelationGraph()
        g.add_edge(RelationKind.DEPENDS_ON, "a", "b")
        g.add_edge(RelationKind.DEPENDS_ON, "b", "a")
        g.add_edge(RelationKind.DEPENDS_ON, "c", "c")

        order = list(g.walk_post_order_all(RelationKind.DEPENDS_ON, OUT))
        self.assertEqual(order, ["b", "a", "c"])
        self.assertEqual(sorted(order), sorted(set(order)))

    def test_build_relation_graphs_drops_inactive_targets(self) -> None:
        recs = [
            TaskRecord(id="a", part_of=("p", "gone"), depends_on=("b", "closed")),
            TaskRecord(id="b"),
            TaskRecord(id="p"),
        ]
        graphs = build_relation_graphs(recs)

        self.assertEqual(graphs.part_of.neighbors("a", RelationKind.PART_OF, OUT), ["p"])
        self.assertEqual(graphs.depends_on.neighbors("a", RelationKind.DEPENDS_ON, OUT), ["b"])
        self.assertNotIn("gone", graphs.part_of)
        self.assertNotIn("closed", graphs.depends_on)
        self.assertEqual(sorted(graphs.part_of.nodes()), ["a", "b", "p"])
        self.assertIs(graphs.of(RelationKind.DEPENDS_ON), graphs.depends_on)
        self.assertIs(graphs.of("partOf"), graphs.part_of)


if __name__ == "__main__":
    unittest.main(verbosity=2)
