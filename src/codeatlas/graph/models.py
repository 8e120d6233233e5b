"""codeatlas.graph.models - Data models for the documentation graph.

Provides dataclasses for documentation nodes, parsed metadata,
hierarchy suggestions, and build diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

Order = Union[int, float]

# Sentinel parent id used for module-level placement
ROOT_ID = "root"

# Referenced and virtual nodes sort after explicit ones
REFERENCED_ORDER = 999

# Synthesized module nodes sort near the top of root
MODULE_ORDER = 10


class MetadataStatus(Enum):
    """Outcome of looking for a front matter block."""

    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ParsedMetadata:
    """
    Front matter of a single document.

    Only PRESENT metadata carries field values; ABSENT and MALFORMED
    metadata always have every field at its default.

    Attributes:
        status: Whether a well-formed block was found
        id: Declared node id
        title: Declared title
        parent: Declared parent id (None for root level)
        order: Sibling sort key (default 0)
        extra: Unknown keys, preserved but not interpreted
        error: Reason the block was rejected (MALFORMED only)
    """

    status: MetadataStatus
    id: str | None = None
    title: str | None = None
    parent: str | None = None
    order: Order = 0
    extra: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def is_present(self) -> bool:
        return self.status is MetadataStatus.PRESENT

    @classmethod
    def absent(cls) -> ParsedMetadata:
        return cls(status=MetadataStatus.ABSENT)

    @classmethod
    def malformed(cls, error: str) -> ParsedMetadata:
        return cls(status=MetadataStatus.MALFORMED, error=error)


@dataclass(frozen=True)
class ParsedDocument:
    """A document split into metadata and body text."""

    meta: ParsedMetadata
    body: str


@dataclass
class DocNode:
    """
    One entry in the documentation tree.

    Attributes:
        id: Unique node id within one build
        title: Human-readable label
        parent: Parent node id, or None for root level
        order: Sibling sort key
        path: Relative path of the backing document ("" for virtual nodes)
        references: Ids of nodes this node's body links to
        source_file: Code file a virtual node stands for
        source_files: Code files associated with this node
        is_referenced: Discovered only through a link (no header)
        is_source_file: Synthesized from code structure inference
        suggested_parent: Parent proposed by code structure inference
        discovery_index: Position in discovery order (tie-breaker)
    """

    id: str
    title: str
    parent: str | None = None
    order: Order = 0
    path: str = ""
    references: list[str] = field(default_factory=list)
    source_file: str | None = None
    source_files: list[str] = field(default_factory=list)
    is_referenced: bool = False
    is_source_file: bool = False
    suggested_parent: str | None = None
    discovery_index: int = 0

    @property
    def is_virtual(self) -> bool:
        """True when no document backs this node."""
        return not self.path

    @property
    def is_root_level(self) -> bool:
        """True when the node sits at root (no parent or the root placeholder)."""
        return self.parent is None or self.parent == ROOT_ID

    def sort_key(self) -> tuple[Order, int]:
        return (self.order, self.discovery_index)

    def __str__(self) -> str:
        return f"{self.id}: {self.title}"


class Confidence(Enum):
    """How much evidence backs a hierarchy suggestion."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class HierarchySuggestion:
    """A proposed parent for a node, derived from code structure."""

    module_id: str
    suggested_parent: str
    reason: str
    confidence: Confidence

    def __str__(self) -> str:
        return (
            f"{self.module_id} → {self.suggested_parent} "
            f"({self.confidence.value}): {self.reason}"
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "moduleId": self.module_id,
            "suggestedParent": self.suggested_parent,
            "reason": self.reason,
            "confidence": self.confidence.value,
        }


class WarningCategory(Enum):
    """Category of a non-fatal build diagnostic."""

    IO = "io"
    METADATA = "metadata"
    REFERENCE = "reference"
    DUPLICATE_ID = "duplicate-id"
    ORPHAN = "orphan"
    CYCLE = "cycle"
    CODE_STRUCTURE = "code-structure"


@dataclass(frozen=True)
class BuildWarning:
    """
    A recoverable problem found during a build.

    Attributes:
        category: Kind of problem
        message: Human-readable description
        path: File the problem relates to, if any
        node_id: Node the problem relates to, if any
    """

    category: WarningCategory
    message: str
    path: str | None = None
    node_id: str | None = None

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"[{self.category.value}] {self.message}{location}"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"category": self.category.value, "message": self.message}
        if self.path:
            result["path"] = self.path
        if self.node_id:
            result["nodeId"] = self.node_id
        return result


@dataclass
class HierarchyReport:
    """Pure data structure for hierarchy validation results."""

    cycles: list[list[str]] = field(default_factory=list)
    cycle_members: set[str] = field(default_factory=set)
    orphans: list[str] = field(default_factory=list)

    @property
    def has_defects(self) -> bool:
        return bool(self.cycles or self.orphans)
