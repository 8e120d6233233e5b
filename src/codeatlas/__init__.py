"""
codeatlas - Documentation graph builder

Merges Markdown documents annotated with YAML front matter and the
source files of a repository into one hierarchical tree
(``ai-tree.json``) for browsing and downstream tooling.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("codeatlas")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from codeatlas.graph.builder import BuildOptions, BuildResult, DocsRootNotFoundError, build_tree
from codeatlas.graph.models import DocNode, HierarchySuggestion
from codeatlas.graph.serialize import load_tree, write_tree

__all__ = [
    "__version__",
    "BuildOptions",
    "BuildResult",
    "DocNode",
    "DocsRootNotFoundError",
    "HierarchySuggestion",
    "build_tree",
    "load_tree",
    "write_tree",
]
