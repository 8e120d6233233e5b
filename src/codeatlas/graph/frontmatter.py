"""Front matter parsing for documentation files.

A document may start with a YAML block delimited by ``---`` lines::

    ---
    id: billing
    title: Billing Module
    parent: root
    order: 20
    ---
    # Billing
    ...

Metadata is optional: documents without a block, or with an unterminated
one, are returned unchanged as body text.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from codeatlas.graph.models import MetadataStatus, Order, ParsedDocument, ParsedMetadata

DELIMITER = "---"

KNOWN_FIELDS = ("id", "title", "parent", "order")


def parse_frontmatter(text: str) -> ParsedDocument:
    """Split a document into metadata and body.

    Args:
        text: Raw document text.

    Returns:
        ParsedDocument. The body is the original text whenever the
        metadata is ABSENT or MALFORMED.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return ParsedDocument(meta=ParsedMetadata.absent(), body=text)

    closing = None
    for index in range(1, len(lines)):
        if lines[index].rstrip("\r\n") == DELIMITER:
            closing = index
            break

    if closing is None:
        return ParsedDocument(meta=ParsedMetadata.absent(), body=text)

    block = "".join(lines[1:closing])
    body = "".join(lines[closing + 1 :]).lstrip()

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        return ParsedDocument(meta=ParsedMetadata.malformed(f"invalid YAML: {e}"), body=text)
    except ValueError as e:
        # timestamp-shaped scalars that are not real dates, e.g. 2024-02-30
        return ParsedDocument(meta=ParsedMetadata.malformed(f"invalid value: {e}"), body=text)

    if not isinstance(data, dict):
        kind = "empty" if data is None else type(data).__name__
        return ParsedDocument(
            meta=ParsedMetadata.malformed(f"front matter is not a mapping ({kind})"),
            body=text,
        )

    return ParsedDocument(meta=_metadata_from_mapping(data), body=body)


def read_document(file_path: Path) -> ParsedDocument:
    """Read a UTF-8 document from disk and parse it.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    return parse_frontmatter(file_path.read_text(encoding="utf-8"))


def _metadata_from_mapping(data: dict[Any, Any]) -> ParsedMetadata:
    extra = {str(k): v for k, v in data.items() if k not in KNOWN_FIELDS}
    return ParsedMetadata(
        status=MetadataStatus.PRESENT,
        id=_optional_str(data.get("id")),
        title=_optional_str(data.get("title")),
        parent=_optional_str(data.get("parent")),
        order=_coerce_order(data.get("order")),
        extra=extra,
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_order(value: Any) -> Order:
    # bool is an int subclass; `order: yes` is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value
