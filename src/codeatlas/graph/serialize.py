"""Tree Serialization - Persist the documentation tree as JSON.

The JSON object is keyed by node id and is the only interface the
viewer consumes::

    {
      "root": {"id": "root", "title": "Project Overview", "parent": null,
               "order": 0, "path": ".ai-docs/docs/ai-index.md",
               "children": ["billing"]},
      ...
    }

Optional keys are emitted only when set, so unchanged input always
produces byte-identical output.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

from codeatlas.graph.hierarchy import build_children_index
from codeatlas.graph.models import DocNode


def serialize_node(node: DocNode, children: list[str]) -> dict[str, Any]:
    """Serialize a DocNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.
        children: Sorted child ids of the node.

    Returns:
        Dict suitable for JSON serialization.
    """
    result: dict[str, Any] = {
        "id": node.id,
        "title": node.title,
        "parent": node.parent,
        "order": node.order,
        "path": node.path,
    }

    if node.references:
        result["references"] = list(node.references)
    if node.is_referenced:
        result["isReferenced"] = True
    if node.source_file:
        result["sourceFile"] = node.source_file
    if node.source_files:
        result["sourceFiles"] = list(node.source_files)
    if node.is_source_file:
        result["isSourceFile"] = True
    if node.suggested_parent:
        result["suggestedParent"] = node.suggested_parent

    result["children"] = children
    return result


def serialize_tree(nodes: Mapping[str, DocNode]) -> dict[str, Any]:
    """Serialize the node map, materializing each node's children.

    Args:
        nodes: Dict mapping node id to DocNode, in discovery order.

    Returns:
        Dict keyed by node id.
    """
    children_index = build_children_index(nodes)
    return {
        node_id: serialize_node(node, children_index.get(node_id, []))
        for node_id, node in nodes.items()
    }


def dumps_tree(nodes: Mapping[str, DocNode]) -> str:
    """Render the tree as pretty-printed JSON with a trailing newline."""
    return json.dumps(serialize_tree(nodes), indent=2, ensure_ascii=False) + "\n"


def write_tree(nodes: Mapping[str, DocNode], output_path: Path) -> Path:
    """Write the tree in a single atomic step.

    The JSON is rendered completely in memory, written to a temporary
    file next to the target and moved into place, so a failed run never
    leaves a partial tree behind.

    Args:
        nodes: Dict mapping node id to DocNode.
        output_path: Destination file.

    Returns:
        The destination path.
    """
    content = dumps_tree(nodes)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return output_path


def deserialize_node(data: Mapping[str, Any], index: int = 0) -> DocNode:
    """Rebuild a DocNode from its serialized form."""
    return DocNode(
        id=str(data["id"]),
        title=str(data.get("title", data["id"])),
        parent=data.get("parent"),
        order=data.get("order", 0),
        path=data.get("path", ""),
        references=list(data.get("references", [])),
        source_file=data.get("sourceFile"),
        source_files=list(data.get("sourceFiles", [])),
        is_referenced=bool(data.get("isReferenced", False)),
        is_source_file=bool(data.get("isSourceFile", False)),
        suggested_parent=data.get("suggestedParent"),
        discovery_index=index,
    )


def load_tree(tree_path: Path) -> dict[str, DocNode]:
    """Load a persisted tree.

    Children are not read back; they are always derived from parents.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a JSON object of nodes.
    """
    data = json.loads(tree_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{tree_path} does not contain a JSON object")

    nodes: dict[str, DocNode] = {}
    for index, (node_id, entry) in enumerate(data.items()):
        if not isinstance(entry, dict) or "id" not in entry:
            raise ValueError(f"Invalid tree entry for {node_id!r} in {tree_path}")
        nodes[node_id] = deserialize_node(entry, index)
    return nodes
