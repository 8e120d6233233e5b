"""
codeatlas.commands.validate - Check the documentation tree without writing it.
"""

import argparse
import json

from codeatlas.commands.scan import (
    build_options,
    load_configuration,
    print_diagnostics,
    resolve_root,
    result_to_dict,
)
from codeatlas.graph.builder import build_tree


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Builds the tree in memory and reports structural defects.

    Returns:
        Exit code (0 when the tree is sound, 1 on cycles or orphans)
    """
    config = load_configuration(args)
    root = resolve_root(args)
    result = build_tree(root, build_options(args, config))
    report = result.hierarchy

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False))
        return 1 if report.has_defects else 0

    if not args.quiet:
        for cycle in report.cycles:
            print(f"❌ Circular parent reference: {' -> '.join(cycle)}")
        for orphan_id in report.orphans:
            node = result.nodes[orphan_id]
            print(f"❌ {orphan_id}: parent '{node.parent}' does not exist")
        print_diagnostics(result)

        print("─" * 60)
        print(f"✓ {len(result.nodes)} nodes checked")
        if report.cycles:
            print(f"❌ {len(report.cycles)} cycles")
        if report.orphans:
            print(f"❌ {len(report.orphans)} orphans")
        if not report.has_defects:
            print("✓ Hierarchy is valid")

    return 1 if report.has_defects else 0
