"""
codeatlas.commands.scan - Build and write the documentation tree.

Scans the documentation directories and the source tree, assembles the
tree and writes ``ai-tree.json`` in one atomic step.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from codeatlas.config import ConfigLoader, find_config_file, load_config
from codeatlas.graph.builder import BuildOptions, BuildResult, build_tree
from codeatlas.graph.serialize import write_tree


def run(args: argparse.Namespace) -> int:
    """
    Run the scan command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, 1 for a fatal error)
    """
    config = load_configuration(args)
    root = resolve_root(args)
    options = build_options(args, config)

    if not args.quiet and not args.json:
        print(f"Scanning documentation in: {root / options.docs_dir}")

    result = build_tree(root, options)

    output_path = args.output or root / config.get("directories.output")
    write_tree(result.nodes, output_path)

    if args.json:
        report = result_to_dict(result)
        report["output"] = str(output_path)
        print(json.dumps(report, indent=2, ensure_ascii=False))
        return 0

    if not args.quiet:
        print_summary(result, options)
        print(f"\n✓ Tree written to {output_path}")

    return 0


def load_configuration(args: argparse.Namespace) -> ConfigLoader:
    """Load configuration from --config, the config file nearest the root, or defaults."""
    if args.config:
        config_path: Optional[Path] = args.config
    else:
        config_path = find_config_file(resolve_root(args))
    return load_config(config_path)


def resolve_root(args: argparse.Namespace) -> Path:
    """Project root from --root, else the working directory."""
    root = getattr(args, "root", None)
    return (root or Path.cwd()).resolve()


def build_options(args: argparse.Namespace, config: ConfigLoader) -> BuildOptions:
    """Combine configuration with the scan switches given on the command line."""
    return BuildOptions.from_config(
        config,
        analyze_code=False if getattr(args, "no_analyze_code", False) else None,
        suggest_only=True if getattr(args, "suggest_only", False) else None,
        auto_link=False if getattr(args, "no_auto_link", False) else None,
    )


def result_to_dict(result: BuildResult) -> Dict[str, Any]:
    """Machine-readable build report."""
    return {
        "nodes": len(result.nodes),
        "markdownFiles": result.markdown_count,
        "docs": result.docs_count,
        "files": result.files_count,
        "referenced": result.referenced_count,
        "sourceFiles": result.source_file_count,
        "virtualNodes": result.virtual_count,
        "duplicateIds": list(result.duplicate_ids),
        "orphans": list(result.hierarchy.orphans),
        "cycles": [list(cycle) for cycle in result.hierarchy.cycles],
        "suggestions": [s.to_dict() for s in result.suggestions],
        "appliedSuggestions": [s.to_dict() for s in result.applied_suggestions],
        "warnings": [w.to_dict() for w in result.warnings],
    }


def print_summary(result: BuildResult, options: BuildOptions) -> None:
    """Print counts, suggestions and diagnostics of a build."""
    print(f"  ✓ Found {result.markdown_count} markdown files")
    print(f"  ✓ {result.docs_count} docs, {result.files_count} file docs")
    if result.referenced_count:
        print(f"  ✓ {result.referenced_count} referenced documents without front matter")
    if options.analyze_code:
        print(f"  ✓ {result.source_file_count} source files, {result.virtual_count} virtual nodes")
    print(f"  ✓ {len(result.nodes)} nodes in tree")

    if options.suggest_only and result.suggestions:
        print("\nHierarchy suggestions:")
        for suggestion in result.suggestions:
            print(f"  → {suggestion}")
    elif result.suggestions:
        print(f"\nApplied {len(result.applied_suggestions)} hierarchy suggestions")
        for suggestion in result.medium_suggestions:
            print(f"  → review: {suggestion}")

    print_diagnostics(result)


def print_diagnostics(result: BuildResult) -> None:
    """Print warnings, duplicate ids and orphans to stderr."""
    if result.warnings:
        print(f"\n⚠️  {len(result.warnings)} warnings:", file=sys.stderr)
        for warning in result.warnings:
            print(f"  ⚠ {warning}", file=sys.stderr)

    if result.duplicate_ids:
        print(f"\nDuplicate ids: {', '.join(result.duplicate_ids)}", file=sys.stderr)

    if result.hierarchy.orphans:
        print(f"Orphaned nodes: {', '.join(result.hierarchy.orphans)}", file=sys.stderr)
