"""
Shared fixtures for codeatlas tests.

Provides:
- A temporary project with an empty ``.ai-docs/docs`` directory
- Helpers to write documents with front matter and source files
"""

from pathlib import Path
from typing import Callable, Optional

import pytest

DOCS_DIR = ".ai-docs/docs"
FILES_DIR = ".ai-docs/files"


def front_matter(
    id: Optional[str] = None,
    title: Optional[str] = None,
    parent: Optional[str] = None,
    order: Optional[int] = None,
    body: str = "",
) -> str:
    """Render a document with a front matter block."""
    lines = ["---"]
    if id is not None:
        lines.append(f"id: {id}")
    if title is not None:
        lines.append(f"title: {title}")
    lines.append(f"parent: {parent}" if parent is not None else "parent: null")
    if order is not None:
        lines.append(f"order: {order}")
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """
    Create a temporary project with an empty documentation root.

    Returns:
        Path to the project root
    """
    (tmp_path / DOCS_DIR).mkdir(parents=True)
    return tmp_path


@pytest.fixture
def write_file(project: Path) -> Callable[[str, str], Path]:
    """Write a file below the project root, creating parent directories."""

    def _write(rel_path: str, content: str = "") -> Path:
        path = project / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_doc(write_file: Callable[[str, str], Path]) -> Callable[..., Path]:
    """Write a document with front matter below the documentation root."""

    def _write(name: str, id: Optional[str] = None, body: str = "", **fields) -> Path:
        return write_file(f"{DOCS_DIR}/{name}", front_matter(id=id, body=body, **fields))

    return _write
