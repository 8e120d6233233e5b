"""
codeatlas.commands.tree - Print a persisted tree as an indented outline.
"""

import argparse
import sys
from pathlib import Path

from codeatlas.commands.scan import load_configuration
from codeatlas.graph.hierarchy import build_children_index, find_orphans, walk_tree
from codeatlas.graph.models import DocNode
from codeatlas.graph.serialize import load_tree


def run(args: argparse.Namespace) -> int:
    """Run the tree command."""
    if args.tree_file:
        tree_path = args.tree_file
    else:
        config = load_configuration(args)
        tree_path = Path.cwd() / config.get("directories.output")

    if not tree_path.is_file():
        print(f"Error: Tree file not found: {tree_path}", file=sys.stderr)
        print("Run 'codeatlas scan' first.", file=sys.stderr)
        return 1

    nodes = load_tree(tree_path)
    children_index = build_children_index(nodes)
    printed = set()

    for node, depth in walk_tree(nodes, children_index):
        print(f"{'  ' * depth}{_marker(node)} {node.id}: {node.title}")
        printed.add(node.id)

    orphans = find_orphans(nodes)
    if orphans:
        print("\nDetached (missing parent):")
        for node, depth in walk_tree(nodes, children_index, start_ids=orphans):
            print(f"{'  ' * (depth + 1)}{_marker(node)} {node.id}: {node.title}")
            printed.add(node.id)

    in_cycle = [node_id for node_id in nodes if node_id not in printed]
    if in_cycle:
        print("\nIn a parent cycle:")
        for node_id in in_cycle:
            print(f"  ↻ {node_id}: {nodes[node_id].title}")

    return 0


def _marker(node: DocNode) -> str:
    if node.is_source_file:
        return "◇"
    if node.is_virtual:
        return "□"
    if node.is_referenced:
        return "○"
    return "●"
