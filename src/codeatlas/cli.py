"""
codeatlas.cli - Command-line interface.

Main entry point for the codeatlas CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from codeatlas import __version__
from codeatlas.commands import scan, tree, validate


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="codeatlas",
        description="Build a documentation tree from Markdown front matter and source layout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  codeatlas scan                    # Build .ai-docs/docs/ai-tree.json
  codeatlas scan --suggest-only     # Report hierarchy suggestions, apply none
  codeatlas scan --no-analyze-code  # Documents only, skip source inference
  codeatlas validate                # Check for cycles and orphans
  codeatlas tree                    # Print the written tree as an outline

Configuration:
  .codeatlas.toml                   # Project settings (searched up to git root)
  .codeatlas.local.toml             # Untracked local overrides
  CODEATLAS_SCAN_AUTO_LINK=false    # Environment override

For detailed command help: codeatlas <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"codeatlas {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Build and write the documentation tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Node sources, in precedence order:
  explicit     Documents with an id in their front matter
  referenced   Documents without front matter reached through links
  virtual      Source files with no matching document (--no-auto-link disables)
""",
    )
    _add_build_arguments(scan_parser)
    scan_parser.add_argument(
        "--output",
        type=Path,
        help="Output file (default: directories.output from config)",
        metavar="PATH",
    )
    scan_parser.add_argument(
        "--suggest-only",
        action="store_true",
        help="Record hierarchy suggestions without applying them",
    )
    scan_parser.add_argument(
        "--no-auto-link",
        action="store_true",
        help="Do not create virtual nodes for undocumented source files",
    )

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Build the tree in memory and report cycles and orphans",
    )
    _add_build_arguments(validate_parser)

    # tree command
    tree_parser = subparsers.add_parser(
        "tree",
        help="Print the written tree as an indented outline",
    )
    tree_parser.add_argument(
        "--tree-file",
        type=Path,
        help="Tree file to read (default: directories.output from config)",
        metavar="PATH",
    )

    return parser


def _add_build_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--root",
        type=Path,
        help="Project root (default: current directory)",
        metavar="PATH",
    )
    subparser.add_argument(
        "--no-analyze-code",
        action="store_true",
        help="Skip code structure analysis",
    )
    subparser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output the build report as JSON",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install codeatlas[completion]
    # Then activate: eval "$(register-python-argcomplete codeatlas)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "scan":
            return scan.run(args)
        elif args.command == "validate":
            return validate.run(args)
        elif args.command == "tree":
            return tree.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
