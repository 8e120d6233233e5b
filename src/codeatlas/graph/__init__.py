"""Graph module - Documentation tree construction.

Exports:
- DocNode: One entry in the documentation tree
- ParsedMetadata / MetadataStatus: Front matter parse outcome
- HierarchySuggestion / Confidence: Code structure proposals
- BuildWarning / WarningCategory: Recoverable build diagnostics
- HierarchyReport: Cycles and orphans of a tree

Note: the assembler lives in codeatlas.graph.builder (use build_tree() to construct)
"""

from codeatlas.graph.models import (
    BuildWarning,
    Confidence,
    DocNode,
    HierarchyReport,
    HierarchySuggestion,
    MetadataStatus,
    ParsedDocument,
    ParsedMetadata,
    WarningCategory,
)

__all__ = [
    "DocNode",
    "ParsedMetadata",
    "ParsedDocument",
    "MetadataStatus",
    "HierarchySuggestion",
    "Confidence",
    "BuildWarning",
    "WarningCategory",
    "HierarchyReport",
]
