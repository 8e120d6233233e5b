"""Cross-document reference resolution.

Extracts Markdown links to other managed documents and computes the
transitive closure of those links, so that documents without front
matter still reach the tree when another document points at them.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Sequence

from codeatlas.graph.frontmatter import parse_frontmatter
from codeatlas.graph.models import (
    REFERENCED_ORDER,
    BuildWarning,
    DocNode,
    WarningCategory,
)

# [text](path/to/file.md) or [text](path/to/file.md#section)
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(\s*([^)\s#]+\.md)(?:#[^)\s]*)?\s*\)")

URL_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass
class LinkScan:
    """
    Links found in one document body.

    Attributes:
        references: Existing managed documents, relative to the project root
        dangling: Managed paths that were linked but do not exist
    """

    references: list[str] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)


@dataclass
class ReferenceClosure:
    """
    Transitive closure of document links.

    Attributes:
        referenced: Every path reached through at least one link, in the
                    order it was first reached
        links: Outgoing references of each visited document
        warnings: Unreadable documents and dangling links
    """

    referenced: list[str] = field(default_factory=list)
    links: dict[str, list[str]] = field(default_factory=dict)
    warnings: list[BuildWarning] = field(default_factory=list)


def resolve_link(link: str, current_dir: Path, root: Path) -> Path:
    """Resolve a link target to a normalized absolute path.

    ``/x.md`` resolves from the project root, anything else from the
    directory of the linking document.
    """
    if link.startswith("/"):
        joined = root / link.lstrip("/")
    else:
        joined = current_dir / link
    return Path(os.path.normpath(joined))


def _within(path: Path, directories: Sequence[Path]) -> bool:
    return any(path == d or d in path.parents for d in directories)


def extract_references(
    body: str,
    current_dir: Path,
    root: Path,
    managed_roots: Sequence[Path],
) -> LinkScan:
    """Extract links to managed Markdown documents from a body.

    Args:
        body: Document body (front matter already removed)
        current_dir: Absolute directory of the document
        root: Absolute project root
        managed_roots: Absolute documentation directories links may point into

    Returns:
        LinkScan with existing and dangling targets, each listed once
    """
    scan = LinkScan()
    seen: set[str] = set()

    for match in LINK_PATTERN.finditer(body):
        link = match.group(2)
        if URL_SCHEME_PATTERN.match(link):
            continue

        resolved = resolve_link(link, current_dir, root)
        if not _within(resolved, managed_roots):
            continue

        rel_path = resolved.relative_to(root).as_posix()
        if rel_path in seen:
            continue
        seen.add(rel_path)

        if resolved.is_file():
            scan.references.append(rel_path)
        else:
            scan.dangling.append(rel_path)

    return scan


def find_referenced_files(
    start_paths: Sequence[str],
    root: Path,
    managed_roots: Sequence[Path],
) -> ReferenceClosure:
    """Follow links depth-first from a set of documents.

    The visited set belongs to this call, so cyclic links terminate and
    unrelated traversals never share state.

    Args:
        start_paths: Relative paths of the starting documents
        root: Absolute project root
        managed_roots: Absolute documentation directories

    Returns:
        ReferenceClosure over every reachable document
    """
    closure = ReferenceClosure()
    visited: set[str] = set()
    referenced: set[str] = set()
    stack = list(reversed(start_paths))

    while stack:
        rel_path = stack.pop()
        if rel_path in visited:
            continue
        visited.add(rel_path)

        full_path = root / rel_path
        try:
            text = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            closure.warnings.append(
                BuildWarning(
                    category=WarningCategory.IO,
                    message=f"Could not read file: {e}",
                    path=rel_path,
                )
            )
            continue

        body = parse_frontmatter(text).body
        scan = extract_references(body, full_path.parent, root, managed_roots)
        closure.links[rel_path] = scan.references

        for target in scan.dangling:
            closure.warnings.append(
                BuildWarning(
                    category=WarningCategory.REFERENCE,
                    message=f"Link to missing document {target}",
                    path=rel_path,
                )
            )

        for target in scan.references:
            if target not in referenced:
                referenced.add(target)
                closure.referenced.append(target)

        stack.extend(reversed([t for t in scan.references if t not in visited]))

    return closure


def id_from_document_path(rel_path: str, docs_prefix: str = "") -> str:
    """Derive a node id from a document path.

    Examples:
        '.ai-docs/docs/guides/Getting_Started.md' -> 'guides-getting-started'
        (with docs_prefix='.ai-docs/docs')
    """
    path = rel_path
    prefix = docs_prefix.strip("/")
    if prefix and path.startswith(prefix + "/"):
        path = path[len(prefix) + 1 :]
    if path.endswith(".md"):
        path = path[: -len(".md")]
    return _NON_ALNUM.sub("-", path.lower()).strip("-")


def title_case(name: str) -> str:
    """Upper-case the first letter of each hyphen/underscore separated word."""
    words = re.split(r"[-_]", name)
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def title_from_filename(rel_path: str) -> str:
    """Title derived from the stem of a file path."""
    return title_case(PurePosixPath(rel_path).stem)


def make_referenced_node(
    rel_path: str,
    docs_prefix: str = "",
    order: int = REFERENCED_ORDER,
) -> DocNode:
    """Synthesize a node for a linked document that has no front matter."""
    return DocNode(
        id=id_from_document_path(rel_path, docs_prefix),
        title=title_from_filename(rel_path),
        parent=None,
        order=order,
        path=rel_path,
        is_referenced=True,
    )
