"""Tests for hierarchy validation and traversal."""

from codeatlas.graph.hierarchy import (
    build_children_index,
    detect_cycles,
    find_orphans,
    find_roots,
    validate_hierarchy,
    walk_tree,
)
from codeatlas.graph.models import DocNode


def _nodes(*specs):
    """Build a node map from (id, parent[, order]) tuples in discovery order."""
    nodes = {}
    for index, spec in enumerate(specs):
        node_id, parent = spec[0], spec[1]
        order = spec[2] if len(spec) > 2 else 0
        nodes[node_id] = DocNode(
            id=node_id, title=node_id.title(), parent=parent, order=order, discovery_index=index
        )
    return nodes


class TestDetectCycles:
    """Tests for detect_cycles()."""

    def test_no_cycles(self):
        cycles, members = detect_cycles(_nodes(("root", None), ("a", "root"), ("b", "a")))

        assert cycles == []
        assert members == set()

    def test_two_node_cycle_reported_once(self):
        cycles, members = detect_cycles(_nodes(("a", "b"), ("b", "a")))

        assert cycles == [["a", "b", "a"]]
        assert members == {"a", "b"}

    def test_self_parent(self):
        cycles, _ = detect_cycles(_nodes(("a", "a")))

        assert cycles == [["a", "a"]]

    def test_tail_leading_into_cycle(self):
        cycles, members = detect_cycles(_nodes(("x", "a"), ("a", "b"), ("b", "c"), ("c", "a")))

        assert cycles == [["a", "b", "c", "a"]]
        assert members == {"a", "b", "c"}

    def test_independent_cycles(self):
        cycles, _ = detect_cycles(_nodes(("a", "b"), ("b", "a"), ("c", "d"), ("d", "c")))

        assert len(cycles) == 2

    def test_long_chain_does_not_recurse(self):
        specs = [("n0", None)] + [(f"n{i}", f"n{i - 1}") for i in range(1, 5000)]

        cycles, _ = detect_cycles(_nodes(*specs))

        assert cycles == []


class TestFindOrphans:
    """Tests for find_orphans()."""

    def test_missing_parent(self):
        assert find_orphans(_nodes(("root", None), ("x", "missing"))) == ["x"]

    def test_null_parent_is_not_orphan(self):
        assert find_orphans(_nodes(("root", None))) == []


class TestValidateHierarchy:
    """Tests for validate_hierarchy()."""

    def test_report(self):
        nodes = _nodes(("a", "b"), ("b", "a"), ("x", "missing"))

        report = validate_hierarchy(nodes)

        assert report.cycles == [["a", "b", "a"]]
        assert report.cycle_members == {"a", "b"}
        assert report.orphans == ["x"]
        assert report.has_defects

    def test_does_not_mutate(self):
        nodes = _nodes(("a", "b"), ("b", "a"))

        validate_hierarchy(nodes)

        assert nodes["a"].parent == "b"
        assert nodes["b"].parent == "a"

    def test_clean_tree(self):
        assert not validate_hierarchy(_nodes(("root", None), ("a", "root"))).has_defects


class TestChildrenAndWalk:
    """Tests for children index and traversal."""

    def test_children_sorted_by_order_then_discovery(self):
        nodes = _nodes(("root", None), ("c", "root", 5), ("a", "root", 1), ("b", "root", 5))

        index = build_children_index(nodes)

        assert index["root"] == ["a", "c", "b"]

    def test_orphans_indexed_under_missing_parent(self):
        index = build_children_index(_nodes(("x", "missing")))

        assert index == {"missing": ["x"]}

    def test_find_roots(self):
        nodes = _nodes(("late", None, 999), ("root", None), ("a", "root"))

        assert find_roots(nodes) == ["root", "late"]

    def test_walk_tree_depth_first(self):
        nodes = _nodes(("root", None), ("a", "root", 1), ("b", "root", 2), ("a1", "a"))

        walked = [(node.id, depth) for node, depth in walk_tree(nodes)]

        assert walked == [("root", 0), ("a", 1), ("a1", 2), ("b", 1)]

    def test_walk_tree_skips_cycles(self):
        nodes = _nodes(("root", None), ("a", "b"), ("b", "a"))

        assert [node.id for node, _ in walk_tree(nodes)] == ["root"]

    def test_walk_from_start_ids(self):
        nodes = _nodes(("x", "missing"), ("y", "x"))

        walked = [(node.id, depth) for node, depth in walk_tree(nodes, start_ids=["x"])]

        assert walked == [("x", 0), ("y", 1)]
