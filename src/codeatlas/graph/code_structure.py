"""Code structure inference.

Maps source files to documentation modules using directory-name
conventions. The mapping is a pure lookup table plus pure functions of
the file path; only analyze_code_structure() touches the file system.

    src/commands/scan.ts        -> command-scan      (parent: commands)
    lib/utils/fileScanner.ts    -> util-file-scanner (parent: utils)
    src/billing/api/invoice.py  -> billing-invoice   (parent: billing)

Results are suggestions. They never override a parent that a document
declares in its own front matter.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Mapping, Sequence

from codeatlas.graph.discovery import scan_project
from codeatlas.graph.models import (
    ROOT_ID,
    BuildWarning,
    Confidence,
    DocNode,
    HierarchySuggestion,
)

SOURCE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs", ".java", ".kt"]
TEST_PATTERNS = ["test", "spec", "__tests__", "__mocks__"]
BUILD_PATTERNS = ["dist", "build", ".next", ".nuxt", "coverage", "node_modules"]
ROOT_SEGMENTS = ("src", "lib", "app")

# Directory name -> canonical module id
DIRECTORY_MODULES: dict[str, str] = {
    "commands": "commands",
    "command": "commands",
    "utils": "utils",
    "util": "utils",
    "utilities": "utils",
    "utility": "utils",
    "llm": "llm",
    "components": "components",
    "component": "components",
    "services": "services",
    "service": "services",
    "models": "models",
    "model": "models",
    "types": "types",
    "type": "types",
    "interfaces": "interfaces",
    "interface": "interfaces",
    "handlers": "handlers",
    "handler": "handlers",
    "routes": "routes",
    "route": "routes",
    "middleware": "middleware",
    "middlewares": "middleware",
    "config": "config",
    "configs": "config",
    "configuration": "config",
    "constants": "constants",
    "constant": "constants",
}

# Canonical module id -> prefix for its sub-module ids
SUBMODULE_PREFIXES: dict[str, str] = {
    "commands": "command",
    "utils": "util",
    "components": "component",
    "services": "service",
    "models": "model",
    "types": "type",
    "interfaces": "interface",
    "handlers": "handler",
    "routes": "route",
    "middleware": "middleware",
    "config": "config",
    "constants": "constant",
    "llm": "llm",
}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ModuleMapping:
    """
    Module placement inferred for one source file.

    Attributes:
        module_id: Id of the sub-module standing for the file
        parent_id: Canonical module the file belongs to (None at top level)
        directory: Directory hint the mapping was derived from
    """

    module_id: str
    parent_id: str | None = None
    directory: str | None = None


@dataclass(frozen=True)
class SourceFileInfo:
    """A source file kept by code structure analysis."""

    relative_path: str
    directory: str
    file_name: str
    extension: str
    suggested_module_id: str
    suggested_parent_id: str | None = None


@dataclass
class CodeStructure:
    """
    Source files of a project and their inferred modules.

    Attributes:
        source_files: Kept source files in discovery order
        directory_map: Directory -> files directly inside it
        module_map: File path -> inferred module id
        warnings: Access problems met while scanning
    """

    source_files: list[SourceFileInfo] = field(default_factory=list)
    directory_map: dict[str, list[str]] = field(default_factory=dict)
    module_map: dict[str, str] = field(default_factory=dict)
    warnings: list[BuildWarning] = field(default_factory=list)

    def files_for_parent(self, parent_id: str) -> list[SourceFileInfo]:
        return [sf for sf in self.source_files if sf.suggested_parent_id == parent_id]


def slugify(name: str) -> str:
    """Lowercase slug with camelCase split into words.

    Examples:
        'fileScanner' -> 'file-scanner'
        'API_client v2' -> 'api-client-v2'
    """
    split = _CAMEL_BOUNDARY.sub(r"\1-\2", name)
    return _NON_ALNUM.sub("-", split.lower()).strip("-")


def canonical_module(directory: str) -> str:
    """Map a directory name to its canonical module id.

    Unknown directories are slugified: ``PaymentGateway`` -> ``payment-gateway``.
    """
    return DIRECTORY_MODULES.get(directory.lower()) or slugify(directory) or directory


def submodule_prefix(module_id: str) -> str:
    """Singular prefix used for the sub-modules of ``module_id``."""
    if module_id in SUBMODULE_PREFIXES:
        return SUBMODULE_PREFIXES[module_id]
    if module_id.endswith("s") and not module_id.endswith("ss"):
        return module_id[:-1]
    return module_id


def _path_parts(file_path: str) -> list[str]:
    normalized = file_path.replace("\\", "/")
    return [p for p in normalized.split("/") if p and p not in (".", "..")]


def _strip_root_segment(parts: list[str], root_segments: Sequence[str]) -> list[str]:
    if parts and parts[0] in root_segments:
        return parts[1:]
    return parts


def id_from_source_path(file_path: str, root_segments: Sequence[str] = ROOT_SEGMENTS) -> str:
    """Build an id from a whole source path (root segment and extension dropped)."""
    parts = _strip_root_segment(_path_parts(file_path), root_segments)
    if parts:
        parts[-1] = PurePosixPath(parts[-1]).stem
    return _NON_ALNUM.sub("-", "-".join(parts).lower()).strip("-")


def map_source_to_module(
    file_path: str,
    root_segments: Sequence[str] = ROOT_SEGMENTS,
) -> ModuleMapping:
    """Infer the module id and parent module for a source file.

    The first directory below the (optional) conventional root segment
    names the module; files at any depth below it belong to that module.

    Args:
        file_path: Source path relative to the project root
        root_segments: Leading directory names stripped before mapping

    Returns:
        ModuleMapping for the file
    """
    parts = _strip_root_segment(_path_parts(file_path), root_segments)

    if len(parts) < 2:
        return ModuleMapping(module_id=id_from_source_path(file_path, root_segments))

    directory = parts[0]
    parent_id = canonical_module(directory)
    stem = PurePosixPath(parts[-1]).stem
    module_id = f"{submodule_prefix(parent_id)}-{slugify(stem)}".rstrip("-")

    return ModuleMapping(module_id=module_id, parent_id=parent_id, directory=directory)


def is_test_file(file_path: str, patterns: Iterable[str] = TEST_PATTERNS) -> bool:
    """Check whether a path looks like a test, spec, or mock file."""
    lower = file_path.lower()
    return any(pattern in lower for pattern in patterns)


def is_build_path(file_path: str, patterns: Iterable[str] = BUILD_PATTERNS) -> bool:
    """Check whether any segment of the path is a build-output directory."""
    parts = set(_path_parts(file_path.lower()))
    return any(pattern in parts for pattern in patterns)


def analyze_code_structure(
    root: Path,
    exclude: list[str] | None = None,
    extensions: Sequence[str] = SOURCE_EXTENSIONS,
    test_patterns: Sequence[str] = TEST_PATTERNS,
    build_patterns: Sequence[str] = BUILD_PATTERNS,
    root_segments: Sequence[str] = ROOT_SEGMENTS,
) -> CodeStructure:
    """Discover source files under ``root`` and map each to a module.

    Args:
        root: Project root
        exclude: Extra exclusion patterns for the scan
        extensions: File extensions treated as source code
        test_patterns: Substrings marking test files
        build_patterns: Directory names marking build output
        root_segments: Leading directory names stripped before mapping

    Returns:
        CodeStructure with kept files in discovery order
    """
    scan = scan_project(root, exclude=list(build_patterns) + list(exclude or []))
    structure = CodeStructure(warnings=list(scan.warnings))
    wanted = {ext.lower() for ext in extensions}

    for rel_path in scan.files:
        pure = PurePosixPath(rel_path)
        if pure.suffix.lower() not in wanted:
            continue
        if is_test_file(rel_path, test_patterns) or is_build_path(rel_path, build_patterns):
            continue

        mapping = map_source_to_module(rel_path, root_segments)
        directory = pure.parent.as_posix()
        info = SourceFileInfo(
            relative_path=rel_path,
            directory=directory,
            file_name=pure.stem,
            extension=pure.suffix,
            suggested_module_id=mapping.module_id,
            suggested_parent_id=mapping.parent_id,
        )
        structure.source_files.append(info)
        structure.module_map[rel_path] = mapping.module_id
        structure.directory_map.setdefault(directory, []).append(rel_path)

    return structure


def suggest_module_hierarchy(
    source_files: Sequence[SourceFileInfo],
    nodes: Mapping[str, DocNode],
) -> list[HierarchySuggestion]:
    """Propose parents for modules based on how source files are grouped.

    Confidence:
        HIGH   - two or more files group under a module that has no node yet
        MEDIUM - an existing root-level node documents one of the files
        LOW    - a module backed by a single file

    Args:
        source_files: Files from analyze_code_structure()
        nodes: Nodes assembled so far (read-only)

    Returns:
        Suggestions in file discovery order
    """
    suggestions: list[HierarchySuggestion] = []
    groups: dict[str, list[SourceFileInfo]] = defaultdict(list)

    for source_file in source_files:
        if source_file.suggested_parent_id:
            groups[source_file.suggested_parent_id].append(source_file)

    for parent_id, files in groups.items():
        grouped = len(files) >= 2
        confidence = Confidence.HIGH if grouped else Confidence.LOW

        if parent_id not in nodes:
            suggestions.append(
                HierarchySuggestion(
                    module_id=parent_id,
                    suggested_parent=ROOT_ID,
                    reason=(
                        f'Directory structure suggests creating a "{parent_id}" module '
                        f"with {len(files)} sub-module{'s' if len(files) != 1 else ''}"
                    ),
                    confidence=confidence,
                )
            )

        for source_file in files:
            existing = nodes.get(source_file.suggested_module_id)
            if existing is None:
                suggestions.append(
                    HierarchySuggestion(
                        module_id=source_file.suggested_module_id,
                        suggested_parent=parent_id,
                        reason=(
                            f'Source file "{source_file.relative_path}" suggests '
                            f'sub-module under "{parent_id}"'
                        ),
                        confidence=confidence,
                    )
                )
            elif existing.is_root_level and existing.parent != parent_id:
                suggestions.append(
                    HierarchySuggestion(
                        module_id=existing.id,
                        suggested_parent=parent_id,
                        reason=(
                            f'Code structure suggests "{existing.id}" should be '
                            f'under "{parent_id}"'
                        ),
                        confidence=Confidence.MEDIUM,
                    )
                )

    return suggestions
