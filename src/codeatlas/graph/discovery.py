"""
codeatlas.graph.discovery - File discovery for documentation and source trees.

Walks directory trees and returns relative file paths in a deterministic
order (entries of each directory sorted by name, sub-directories expanded
in place). Unreadable entries are reported as warnings, never raised.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from codeatlas.graph.models import BuildWarning, WarningCategory

DEFAULT_EXCLUDE = [
    "node_modules",
    ".git",
    "dist",
    "build",
    ".ai-docs",
    ".cursor",
    ".next",
    ".nuxt",
    ".cache",
    "coverage",
    ".nyc_output",
    "__pycache__",
    ".venv",
    "venv",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
]


@dataclass
class ScanResult:
    """
    Result of walking a directory tree.

    Attributes:
        files: POSIX paths relative to the scan root, in traversal order
        warnings: Entries that could not be read
    """

    files: list[str] = field(default_factory=list)
    warnings: list[BuildWarning] = field(default_factory=list)


def to_relative(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` as a POSIX string."""
    return path.relative_to(root).as_posix()


def is_excluded(rel_path: str, name: str, patterns: Iterable[str]) -> bool:
    """Check whether an entry matches any exclusion pattern.

    A pattern matches when it equals a segment of the relative path, or
    when it matches the entry name as a glob.

    Args:
        rel_path: POSIX path relative to the scan root
        name: Entry name (last path segment)
        patterns: Exclusion patterns

    Returns:
        True if the entry should be skipped
    """
    parts = rel_path.split("/")
    for pattern in patterns:
        if pattern in parts or fnmatch.fnmatch(name, pattern):
            return True
    return False


def _walk(
    directory: Path,
    root: Path,
    result: ScanResult,
    accept: Callable[[str], bool],
    exclude: list[str],
    skip_root_dotfiles: bool,
) -> None:
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        result.warnings.append(
            BuildWarning(
                category=WarningCategory.IO,
                message=f"Could not read directory: {e.strerror or e}",
                path=to_relative(directory, root) if directory != root else ".",
            )
        )
        return

    for entry in entries:
        if skip_root_dotfiles and directory == root and entry.name.startswith("."):
            continue

        rel_path = to_relative(entry, root)
        if exclude and is_excluded(rel_path, entry.name, exclude):
            continue

        try:
            if entry.is_dir():
                _walk(entry, root, result, accept, exclude, skip_root_dotfiles)
            elif entry.is_file() and accept(rel_path):
                result.files.append(rel_path)
        except OSError as e:
            result.warnings.append(
                BuildWarning(
                    category=WarningCategory.IO,
                    message=f"Could not access: {e.strerror or e}",
                    path=rel_path,
                )
            )


def scan_project(
    root: Path,
    exclude: list[str] | None = None,
    include: list[str] | None = None,
) -> ScanResult:
    """Recursively list project files.

    Args:
        root: Directory to scan; returned paths are relative to it
        exclude: Extra exclusion patterns, appended to DEFAULT_EXCLUDE
        include: Optional keyword allowlist; a file is kept when any
                 keyword is a substring of its relative path

    Returns:
        ScanResult with files and any access warnings
    """
    patterns = DEFAULT_EXCLUDE + list(exclude or [])
    keywords = [k for k in (include or []) if k]

    def accept(rel_path: str) -> bool:
        if not keywords:
            return True
        return any(keyword in rel_path for keyword in keywords)

    result = ScanResult()
    _walk(root, root, result, accept, patterns, skip_root_dotfiles=True)
    return result


def find_markdown_files(directory: Path, root: Path) -> ScanResult:
    """Find all ``.md`` files below a documentation directory.

    Args:
        directory: Directory to search
        root: Project root; returned paths are relative to it

    Returns:
        ScanResult with Markdown paths and any access warnings
    """
    result = ScanResult()
    _walk(
        directory,
        root,
        result,
        accept=lambda rel_path: rel_path.endswith(".md"),
        exclude=[],
        skip_root_dotfiles=False,
    )
    return result
