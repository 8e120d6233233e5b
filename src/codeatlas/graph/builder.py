"""Tree Builder - Assembles the documentation tree from parsed content.

This module merges the three node sources into one consistent tree:

1. Explicit nodes, from documents carrying an ``id`` in their front matter
2. Referenced nodes, for headerless documents reached through links
3. Virtual nodes, for source files found by code structure inference

Every run gets a fresh BuildContext; nothing is shared between builds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from codeatlas.graph.code_structure import (
    BUILD_PATTERNS,
    ROOT_SEGMENTS,
    SOURCE_EXTENSIONS,
    TEST_PATTERNS,
    CodeStructure,
    SourceFileInfo,
    analyze_code_structure,
    suggest_module_hierarchy,
)
from codeatlas.graph.discovery import find_markdown_files
from codeatlas.graph.frontmatter import read_document
from codeatlas.graph.hierarchy import validate_hierarchy
from codeatlas.graph.models import (
    MODULE_ORDER,
    REFERENCED_ORDER,
    ROOT_ID,
    BuildWarning,
    Confidence,
    DocNode,
    HierarchyReport,
    HierarchySuggestion,
    MetadataStatus,
    WarningCategory,
)
from codeatlas.graph.references import (
    find_referenced_files,
    make_referenced_node,
    title_case,
)

if TYPE_CHECKING:
    from codeatlas.config import ConfigLoader

FALLBACK_DOCUMENT_ID = "document"
FALLBACK_SOURCE_ID = "source"


class DocsRootNotFoundError(Exception):
    """Raised when the documentation root is missing or not a directory."""

    def __init__(self, docs_root: Path) -> None:
        self.docs_root = docs_root
        super().__init__(f"Documentation directory not found: {docs_root}")


@dataclass
class BuildOptions:
    """
    Switches and settings for one build.

    Attributes:
        analyze_code: Run code structure inference
        suggest_only: Record suggestions without applying any
        auto_link: Create virtual nodes for unmatched source files
        docs_dir: Documentation root, relative to the project root
        files_dir: Per-file documentation root, relative to the project root
        exclude: Extra exclusion patterns for the source scan
    """

    analyze_code: bool = True
    suggest_only: bool = False
    auto_link: bool = True
    docs_dir: str = ".ai-docs/docs"
    files_dir: str = ".ai-docs/files"
    exclude: list[str] = field(default_factory=list)
    source_extensions: list[str] = field(default_factory=lambda: list(SOURCE_EXTENSIONS))
    test_patterns: list[str] = field(default_factory=lambda: list(TEST_PATTERNS))
    build_patterns: list[str] = field(default_factory=lambda: list(BUILD_PATTERNS))
    root_segments: list[str] = field(default_factory=lambda: list(ROOT_SEGMENTS))
    referenced_order: int = REFERENCED_ORDER
    module_order: int = MODULE_ORDER

    @classmethod
    def from_config(cls, config: ConfigLoader, **overrides: Any) -> BuildOptions:
        """Create options from a loaded configuration.

        Args:
            config: Loaded configuration.
            **overrides: Values that win over the configuration (CLI flags).
                None values are ignored.

        Returns:
            BuildOptions instance.
        """
        defaults = cls()
        values: dict[str, Any] = {
            "analyze_code": config.get("scan.analyze_code", defaults.analyze_code),
            "suggest_only": config.get("scan.suggest_only", defaults.suggest_only),
            "auto_link": config.get("scan.auto_link", defaults.auto_link),
            "docs_dir": config.get("directories.docs", defaults.docs_dir),
            "files_dir": config.get("directories.files", defaults.files_dir),
            "exclude": _config_list(config, "scan.exclude", defaults.exclude),
            "source_extensions": _config_list(
                config, "code.source_extensions", defaults.source_extensions
            ),
            "test_patterns": _config_list(config, "code.test_patterns", defaults.test_patterns),
            "build_patterns": _config_list(config, "code.build_patterns", defaults.build_patterns),
            "root_segments": _config_list(config, "code.root_segments", defaults.root_segments),
            "referenced_order": _config_int(
                config, "tree.referenced_order", defaults.referenced_order
            ),
            "module_order": _config_int(config, "tree.module_order", defaults.module_order),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _config_list(config: ConfigLoader, key: str, default: list[str]) -> list[str]:
    # a single string (e.g. from an environment override) is one entry
    value = config.get(key, default)
    if isinstance(value, str):
        return [value] if value else []
    return [str(item) for item in value]


def _config_int(config: ConfigLoader, key: str, default: int) -> int:
    value = config.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


@dataclass
class BuildContext:
    """Per-run state threaded through every build stage."""

    root: Path
    options: BuildOptions
    warnings: list[BuildWarning] = field(default_factory=list)

    @property
    def docs_root(self) -> Path:
        return self.root / self.options.docs_dir

    @property
    def files_root(self) -> Path:
        return self.root / self.options.files_dir

    def warn(
        self,
        category: WarningCategory,
        message: str,
        path: str | None = None,
        node_id: str | None = None,
    ) -> None:
        self.warnings.append(
            BuildWarning(category=category, message=message, path=path, node_id=node_id)
        )


@dataclass
class BuildResult:
    """
    Outcome of a build.

    Attributes:
        nodes: Final node map in discovery order
        warnings: Every recoverable problem met during the build
        hierarchy: Cycles and orphans of the final tree
        suggestions: Hierarchy suggestions from code structure inference
        applied_suggestions: Suggestions that replaced a node's parent
        duplicate_ids: Ids claimed by more than one document
    """

    nodes: dict[str, DocNode]
    warnings: list[BuildWarning] = field(default_factory=list)
    hierarchy: HierarchyReport = field(default_factory=HierarchyReport)
    suggestions: list[HierarchySuggestion] = field(default_factory=list)
    applied_suggestions: list[HierarchySuggestion] = field(default_factory=list)
    duplicate_ids: list[str] = field(default_factory=list)
    markdown_count: int = 0
    docs_count: int = 0
    files_count: int = 0
    referenced_count: int = 0
    source_file_count: int = 0

    @property
    def virtual_count(self) -> int:
        return sum(1 for node in self.nodes.values() if node.is_source_file)

    @property
    def medium_suggestions(self) -> list[HierarchySuggestion]:
        return [s for s in self.suggestions if s.confidence is Confidence.MEDIUM]


class TreeBuilder:
    """Builder for the documentation tree.

    Usage:
        builder = TreeBuilder(Path("."), BuildOptions(auto_link=False))
        result = builder.build()
    """

    def __init__(self, root: Path, options: BuildOptions | None = None) -> None:
        self.context = BuildContext(root=root.resolve(), options=options or BuildOptions())
        self._nodes: dict[str, DocNode] = {}
        self._path_to_id: dict[str, str] = {}
        self._duplicate_ids: list[str] = []
        self._applied: list[HierarchySuggestion] = []
        self._next_index = 0

    # -------------------------------------------------------------------------
    # Id allocation
    # -------------------------------------------------------------------------

    def _unique_id(self, base: str) -> str:
        if base not in self._nodes:
            return base
        counter = 1
        while f"{base}-{counter}" in self._nodes:
            counter += 1
        return f"{base}-{counter}"

    def _add_node(self, node: DocNode) -> DocNode:
        """Insert a node, suffixing its id if it collides."""
        node.id = self._unique_id(node.id)
        node.discovery_index = self._next_index
        self._next_index += 1
        self._nodes[node.id] = node
        if node.path:
            self._path_to_id[node.path] = node.id
        return node

    def _claim_id(self, node: DocNode) -> DocNode:
        """Insert an explicit node; on collision the newer node keeps the id."""
        previous = self._nodes.get(node.id)
        if previous is None:
            return self._add_node(node)

        relocated = self._unique_id(node.id)
        del self._nodes[previous.id]
        previous.id = relocated
        self._nodes[relocated] = previous
        if previous.path:
            self._path_to_id[previous.path] = relocated

        if node.id not in self._duplicate_ids:
            self._duplicate_ids.append(node.id)
        self.context.warn(
            WarningCategory.DUPLICATE_ID,
            f"Duplicate id '{node.id}': {previous.path} renamed to '{relocated}'",
            path=node.path,
            node_id=node.id,
        )
        return self._add_node(node)

    # -------------------------------------------------------------------------
    # Stage 1: explicit nodes
    # -------------------------------------------------------------------------

    def _read_explicit(self, rel_path: str) -> DocNode | None:
        ctx = self.context
        try:
            parsed = read_document(ctx.root / rel_path)
        except (OSError, UnicodeDecodeError) as e:
            ctx.warn(WarningCategory.IO, f"Could not read file: {e}", path=rel_path)
            return None

        meta = parsed.meta
        if meta.status is MetadataStatus.MALFORMED:
            ctx.warn(WarningCategory.METADATA, f"Malformed front matter: {meta.error}", path=rel_path)
            return None
        if meta.status is MetadataStatus.ABSENT:
            return None
        if not meta.id:
            ctx.warn(WarningCategory.METADATA, "Front matter has no id, skipping", path=rel_path)
            return None

        return DocNode(
            id=meta.id,
            title=meta.title or meta.id,
            parent=meta.parent,
            order=meta.order,
            path=rel_path,
        )

    def _collect_explicit(self, directory: Path) -> tuple[int, int]:
        """Add explicit nodes below a directory.

        Returns:
            Tuple of (markdown files seen, explicit nodes added)
        """
        scan = find_markdown_files(directory, self.context.root)
        self.context.warnings.extend(scan.warnings)

        added = 0
        for rel_path in scan.files:
            node = self._read_explicit(rel_path)
            if node is not None:
                self._claim_id(node)
                added += 1
        return len(scan.files), added

    # -------------------------------------------------------------------------
    # Stage 2: referenced nodes
    # -------------------------------------------------------------------------

    def _docs_prefix(self, rel_path: str) -> str:
        for directory in (self.context.options.docs_dir, self.context.options.files_dir):
            prefix = directory.strip("/")
            if rel_path.startswith(prefix + "/"):
                return prefix
        return ""

    def _collect_referenced(self, referenced: list[str]) -> int:
        added = 0
        for rel_path in referenced:
            if rel_path in self._path_to_id:
                continue
            node = make_referenced_node(
                rel_path,
                docs_prefix=self._docs_prefix(rel_path),
                order=self.context.options.referenced_order,
            )
            node.id = node.id or FALLBACK_DOCUMENT_ID
            self._add_node(node)
            added += 1
        return added

    # -------------------------------------------------------------------------
    # Stage 3: virtual nodes
    # -------------------------------------------------------------------------

    def _synthesize_module(self, module_id: str) -> DocNode:
        title = module_id[:1].upper() + module_id[1:].replace("-", " ")
        return self._add_node(
            DocNode(
                id=module_id,
                title=title,
                parent=ROOT_ID,
                order=self.context.options.module_order,
                path="",
            )
        )

    def _link_source_file(
        self,
        source_file: SourceFileInfo,
        structure: CodeStructure,
        existing: set[str],
    ) -> None:
        candidates = [source_file.suggested_module_id, source_file.suggested_parent_id]
        matched = [self._nodes[c] for c in dict.fromkeys(candidates) if c and c in existing]
        if matched:
            for node in matched:
                if source_file.relative_path not in node.source_files:
                    node.source_files.append(source_file.relative_path)
            return

        if not self.context.options.auto_link:
            return

        parent = source_file.suggested_parent_id
        if parent and parent not in self._nodes:
            if len(structure.files_for_parent(parent)) >= 2:
                self._synthesize_module(parent)
            else:
                parent = None

        self._add_node(
            DocNode(
                id=source_file.suggested_module_id or FALLBACK_SOURCE_ID,
                title=title_case(source_file.file_name) or source_file.file_name,
                parent=parent,
                order=self.context.options.referenced_order,
                path="",
                source_file=source_file.relative_path,
                is_source_file=True,
                suggested_parent=source_file.suggested_parent_id,
            )
        )

    # -------------------------------------------------------------------------
    # Stage 4-6: suggestions, source association, reference ids
    # -------------------------------------------------------------------------

    def _apply_suggestions(self, suggestions: list[HierarchySuggestion]) -> None:
        for suggestion in suggestions:
            node = self._nodes.get(suggestion.module_id)
            if node is None or not node.is_root_level:
                continue
            if node.parent == suggestion.suggested_parent:
                continue
            node.suggested_parent = suggestion.suggested_parent
            if not self.context.options.suggest_only and suggestion.confidence is Confidence.HIGH:
                node.parent = suggestion.suggested_parent
                self._applied.append(suggestion)

    def _associate_sources(self, source_files: list[SourceFileInfo]) -> None:
        for node in self._nodes.values():
            if node.is_source_file or node.source_files:
                continue
            node.source_files = [
                sf.relative_path
                for sf in source_files
                if node.id in (sf.suggested_module_id, sf.suggested_parent_id)
            ]

    def _resolve_references(self, links: dict[str, list[str]]) -> None:
        for node in self._nodes.values():
            if not node.path or node.path not in links:
                continue
            ids: list[str] = []
            for target in links[node.path]:
                target_id = self._path_to_id.get(target)
                if target_id is not None and target_id not in ids:
                    ids.append(target_id)
            node.references = ids

    # -------------------------------------------------------------------------
    # Stage 7: validation
    # -------------------------------------------------------------------------

    def _report_hierarchy(self, report: HierarchyReport) -> None:
        for orphan_id in report.orphans:
            node = self._nodes[orphan_id]
            self.context.warn(
                WarningCategory.ORPHAN,
                f"Node '{orphan_id}' references non-existent parent '{node.parent}'",
                path=node.path or None,
                node_id=orphan_id,
            )
        for cycle in report.cycles:
            self.context.warn(
                WarningCategory.CYCLE,
                f"Circular parent reference: {' -> '.join(cycle)}",
                node_id=cycle[0],
            )

    def build(self) -> BuildResult:
        """Run every stage and return the assembled tree.

        Suggestions are computed before virtual nodes exist and applied
        after. A group of two or more files that would earn a HIGH
        suggestion already gets a synthesized module with the same
        parent, so on real input the applied set is normally empty and
        ``suggest_only`` leaves the written tree unchanged.

        Raises:
            DocsRootNotFoundError: If the documentation root does not exist.
        """
        ctx = self.context
        options = ctx.options
        if not ctx.docs_root.is_dir():
            raise DocsRootNotFoundError(ctx.docs_root)

        markdown_count, docs_count = self._collect_explicit(ctx.docs_root)
        files_count = 0
        if ctx.files_root.is_dir():
            seen, files_count = self._collect_explicit(ctx.files_root)
            markdown_count += seen

        managed_roots = [ctx.docs_root, ctx.files_root]
        explicit_paths = [node.path for node in self._nodes.values()]
        closure = find_referenced_files(explicit_paths, ctx.root, managed_roots)
        ctx.warnings.extend(closure.warnings)
        referenced_count = self._collect_referenced(closure.referenced)

        suggestions: list[HierarchySuggestion] = []
        source_files: list[SourceFileInfo] = []
        if options.analyze_code:
            structure = analyze_code_structure(
                ctx.root,
                exclude=options.exclude,
                extensions=options.source_extensions,
                test_patterns=options.test_patterns,
                build_patterns=options.build_patterns,
                root_segments=options.root_segments,
            )
            ctx.warnings.extend(structure.warnings)
            source_files = structure.source_files

            suggestions = suggest_module_hierarchy(source_files, self._nodes)
            existing = set(self._nodes)
            for source_file in source_files:
                self._link_source_file(source_file, structure, existing)
            self._apply_suggestions(suggestions)
            self._associate_sources(source_files)

        self._resolve_references(closure.links)

        nodes = dict(sorted(self._nodes.items(), key=lambda item: item[1].discovery_index))
        report = validate_hierarchy(nodes)
        self._report_hierarchy(report)

        return BuildResult(
            nodes=nodes,
            warnings=ctx.warnings,
            hierarchy=report,
            suggestions=suggestions,
            applied_suggestions=list(self._applied),
            duplicate_ids=list(self._duplicate_ids),
            markdown_count=markdown_count,
            docs_count=docs_count,
            files_count=files_count,
            referenced_count=referenced_count,
            source_file_count=len(source_files),
        )


def build_tree(root: Path, options: BuildOptions | None = None) -> BuildResult:
    """Build the documentation tree for a project.

    Args:
        root: Project root.
        options: Build options (defaults when omitted).

    Returns:
        BuildResult with nodes, diagnostics and suggestions.

    Raises:
        DocsRootNotFoundError: If the documentation root does not exist.
    """
    return TreeBuilder(root, options).build()
