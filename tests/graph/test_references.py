"""Tests for cross-document reference resolution."""

from codeatlas.graph.models import REFERENCED_ORDER, WarningCategory
from codeatlas.graph.references import (
    extract_references,
    find_referenced_files,
    id_from_document_path,
    make_referenced_node,
    resolve_link,
    title_from_filename,
)

DOCS = ".ai-docs/docs"


class TestResolveLink:
    """Tests for resolve_link()."""

    def test_relative_to_current_dir(self, tmp_path):
        resolved = resolve_link("../b.md", tmp_path / "docs" / "sub", tmp_path)

        assert resolved == tmp_path / "docs" / "b.md"

    def test_leading_slash_resolves_from_root(self, tmp_path):
        resolved = resolve_link("/docs/b.md", tmp_path / "docs" / "sub", tmp_path)

        assert resolved == tmp_path / "docs" / "b.md"

    def test_dot_segments_normalized(self, tmp_path):
        resolved = resolve_link("./x/../b.md", tmp_path / "docs", tmp_path)

        assert resolved == tmp_path / "docs" / "b.md"


class TestExtractReferences:
    """Tests for extract_references()."""

    def test_existing_and_dangling(self, write_file, project):
        write_file(f"{DOCS}/b.md", "# B\n")
        body = "See [B](b.md) and [Gone](gone.md)."

        scan = extract_references(body, project / DOCS, project, [project / DOCS])

        assert scan.references == [f"{DOCS}/b.md"]
        assert scan.dangling == [f"{DOCS}/gone.md"]

    def test_fragment_and_duplicates(self, write_file, project):
        write_file(f"{DOCS}/b.md")
        body = "[one](b.md#intro) [two](./b.md) [three](b.md)"

        scan = extract_references(body, project / DOCS, project, [project / DOCS])

        assert scan.references == [f"{DOCS}/b.md"]

    def test_urls_ignored(self, project):
        body = "[site](https://example.com/readme.md) [mail](mailto:x@example.com.md)"

        scan = extract_references(body, project / DOCS, project, [project / DOCS])

        assert scan.references == []
        assert scan.dangling == []

    def test_targets_outside_managed_roots_ignored(self, write_file, project):
        write_file("README.md")

        scan = extract_references("[readme](../../README.md)", project / DOCS, project, [project / DOCS])

        assert scan.references == []
        assert scan.dangling == []

    def test_non_markdown_links_ignored(self, write_file, project):
        write_file(f"{DOCS}/diagram.png")

        scan = extract_references("[img](diagram.png)", project / DOCS, project, [project / DOCS])

        assert scan.references == []


class TestFindReferencedFiles:
    """Tests for the transitive link closure."""

    def test_transitive_closure(self, write_file, project):
        write_file(f"{DOCS}/a.md", "[b](b.md)")
        write_file(f"{DOCS}/b.md", "[c](c.md)")
        write_file(f"{DOCS}/c.md", "no links")

        closure = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])

        assert closure.referenced == [f"{DOCS}/b.md", f"{DOCS}/c.md"]
        assert closure.links[f"{DOCS}/a.md"] == [f"{DOCS}/b.md"]
        assert closure.links[f"{DOCS}/c.md"] == []

    def test_link_cycle_terminates(self, write_file, project):
        write_file(f"{DOCS}/a.md", "[b](b.md)")
        write_file(f"{DOCS}/b.md", "[a](a.md)")

        closure = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])

        assert closure.referenced == [f"{DOCS}/b.md", f"{DOCS}/a.md"]
        assert set(closure.links) == {f"{DOCS}/a.md", f"{DOCS}/b.md"}

    def test_links_inside_front_matter_ignored(self, write_file, project):
        write_file(f"{DOCS}/a.md", "---\nid: a\nsee: '[b](b.md)'\n---\nbody\n")
        write_file(f"{DOCS}/b.md")

        closure = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])

        assert closure.referenced == []

    def test_dangling_link_warning(self, write_file, project):
        write_file(f"{DOCS}/a.md", "[x](missing.md)")

        closure = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])

        assert len(closure.warnings) == 1
        warning = closure.warnings[0]
        assert warning.category is WarningCategory.REFERENCE
        assert warning.path == f"{DOCS}/a.md"
        assert f"{DOCS}/missing.md" in warning.message

    def test_separate_calls_do_not_share_state(self, write_file, project):
        write_file(f"{DOCS}/a.md", "[b](b.md)")
        write_file(f"{DOCS}/b.md")

        first = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])
        second = find_referenced_files([f"{DOCS}/a.md"], project, [project / DOCS])

        assert first.referenced == second.referenced == [f"{DOCS}/b.md"]


class TestReferencedNodes:
    """Tests for ids and titles of headerless documents."""

    def test_id_strips_docs_prefix(self):
        assert id_from_document_path(f"{DOCS}/guides/Getting_Started.md", DOCS) == (
            "guides-getting-started"
        )

    def test_id_without_prefix(self):
        assert id_from_document_path("notes/api v2.md") == "notes-api-v2"

    def test_title_from_filename(self):
        assert title_from_filename(f"{DOCS}/getting-started_guide.md") == "Getting Started Guide"

    def test_make_referenced_node(self):
        node = make_referenced_node(f"{DOCS}/glossary.md", DOCS)

        assert node.id == "glossary"
        assert node.title == "Glossary"
        assert node.parent is None
        assert node.order == REFERENCED_ORDER
        assert node.path == f"{DOCS}/glossary.md"
        assert node.is_referenced
