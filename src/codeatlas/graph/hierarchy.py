"""
Hierarchy validation and traversal utilities.

Centralized functions for documentation tree checks:
- Cycle detection over parent links
- Orphan (missing parent) detection
- Children index and depth-first ordering

All functions are pure: they read the node map and return data.
"""

from __future__ import annotations

from typing import Iterator, Mapping

from codeatlas.graph.models import DocNode, HierarchyReport

# -----------------------------------------------------------------------------
# Cycle Detection
# -----------------------------------------------------------------------------


def detect_cycles(nodes: Mapping[str, DocNode]) -> tuple[list[list[str]], set[str]]:
    """Detect cycles in the parent relation. PURE - no mutation.

    Walks up each node's parent chain with three-colour marking: nodes on
    the current chain are in progress, finished chains are done. Meeting
    an in-progress node closes a cycle, recorded from the repeated node
    back to itself, e.g. ``["a", "b", "a"]``. Every node is walked once,
    so each cycle is reported exactly once.

    Args:
        nodes: Dict mapping node id to DocNode

    Returns:
        Tuple of (cycle paths, ids of all cycle members)
    """
    done: set[str] = set()
    in_progress: set[str] = set()
    cycles: list[list[str]] = []
    members: set[str] = set()

    for start_id in nodes:
        if start_id in done:
            continue

        chain: list[str] = []
        current: str | None = start_id
        while current is not None and current in nodes and current not in done:
            if current in in_progress:
                cycle = chain[chain.index(current) :] + [current]
                cycles.append(cycle)
                members.update(cycle)
                break
            in_progress.add(current)
            chain.append(current)
            current = nodes[current].parent

        for node_id in chain:
            in_progress.discard(node_id)
            done.add(node_id)

    return cycles, members


# -----------------------------------------------------------------------------
# Orphan Detection
# -----------------------------------------------------------------------------


def find_orphans(nodes: Mapping[str, DocNode]) -> list[str]:
    """Find nodes whose declared parent does not exist.

    Args:
        nodes: Dict mapping node id to DocNode

    Returns:
        Orphaned node ids in node order, each listed once
    """
    return [
        node_id
        for node_id, node in nodes.items()
        if node.parent is not None and node.parent not in nodes
    ]


def validate_hierarchy(nodes: Mapping[str, DocNode]) -> HierarchyReport:
    """Run all structural checks. Never mutates and never raises.

    Args:
        nodes: Dict mapping node id to DocNode

    Returns:
        HierarchyReport with cycles and orphans
    """
    cycles, members = detect_cycles(nodes)
    return HierarchyReport(
        cycles=cycles,
        cycle_members=members,
        orphans=find_orphans(nodes),
    )


# -----------------------------------------------------------------------------
# Hierarchy Building
# -----------------------------------------------------------------------------


def build_children_index(nodes: Mapping[str, DocNode]) -> dict[str, list[str]]:
    """Build parent_id -> [child_ids] mapping.

    Children are sorted by ``order``, ties broken by discovery order.
    Parents that do not exist still get an entry, so orphans can be
    listed under their missing parent.

    Args:
        nodes: Dict mapping node id to DocNode

    Returns:
        Dict mapping each parent id to its sorted child ids
    """
    grouped: dict[str, list[DocNode]] = {}
    for node in nodes.values():
        if node.parent is not None:
            grouped.setdefault(node.parent, []).append(node)

    return {
        parent_id: [child.id for child in sorted(children, key=DocNode.sort_key)]
        for parent_id, children in grouped.items()
    }


def find_roots(nodes: Mapping[str, DocNode]) -> list[str]:
    """Find nodes with no parent, sorted by order then discovery."""
    roots = [node for node in nodes.values() if node.parent is None]
    return [node.id for node in sorted(roots, key=DocNode.sort_key)]


def walk_tree(
    nodes: Mapping[str, DocNode],
    children_index: Mapping[str, list[str]] | None = None,
    start_ids: list[str] | None = None,
) -> Iterator[tuple[DocNode, int]]:
    """Depth-first walk from every root, yielding (node, depth).

    ``start_ids`` replaces the roots as starting points, e.g. to walk the
    subtree below an orphan.

    Nodes inside a parent cycle are unreachable from a root and are not
    yielded; each node is yielded at most once.
    """
    if children_index is None:
        children_index = build_children_index(nodes)

    visited: set[str] = set()
    starts = find_roots(nodes) if start_ids is None else start_ids
    stack = [(node_id, 0) for node_id in reversed(starts)]

    while stack:
        node_id, depth = stack.pop()
        if node_id in visited or node_id not in nodes:
            continue
        visited.add(node_id)
        yield nodes[node_id], depth

        for child_id in reversed(children_index.get(node_id, [])):
            if child_id not in visited:
                stack.append((child_id, depth + 1))
