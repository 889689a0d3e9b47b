"""Tests for in-document search.

Search is a literal substring match per line; results are checked both as
the flat match list and as the per-section summaries.
"""

from mdsurgeon.document.parser import parse_document
from mdsurgeon.search.tools import search_document

# =============================================================================
# Matching Tests
# =============================================================================


class TestSearchMatches:
    """Tests for the flat match list."""

    def test_matches_in_line_order(self) -> None:
        """Test every matching line is reported once, in order."""
        doc = parse_document("# First\nfoo 1\nfoo 2\n\n# Second\nfoo 3")
        results = search_document(doc, "foo")

        assert [m.line for m in results.matches] == [2, 3, 6]
        assert [m.content for m in results.matches] == ["foo 1", "foo 2", "foo 3"]

    def test_annotates_section(self) -> None:
        """Test each match carries its containing section id."""
        doc = parse_document("# First\nfoo 1\n# Second\nfoo 2")
        first, second = doc.sections
        results = search_document(doc, "foo")

        assert [m.section_id for m in results.matches] == [first.id, second.id]

    def test_literal_not_regex(self) -> None:
        """Test regex metacharacters match literally."""
        doc = parse_document("# A\nprice is $5.00 (approx)\nprice is 5500")
        results = search_document(doc, "$5.00 (")

        assert [m.line for m in results.matches] == [2]

    def test_case_sensitive(self) -> None:
        """Test matching respects case."""
        doc = parse_document("# A\nFoo\nfoo")
        assert [m.line for m in search_document(doc, "foo").matches] == [3]

    def test_heading_lines_match(self) -> None:
        """Test heading lines are searched like any other line."""
        doc = parse_document("# Foo\nbar")
        results = search_document(doc, "Foo")

        assert results.matches[0].line == 1
        assert results.matches[0].section_id == doc.sections[0].id

    def test_preamble_has_null_section(self) -> None:
        """Test lines before the first heading have no section."""
        doc = parse_document("foo intro\n# A\nfoo body")
        results = search_document(doc, "foo")

        assert results.matches[0].section_id is None
        assert results.matches[0].to_json_dict() == {
            "sectionId": None,
            "line": 1,
            "content": "foo intro",
        }

    def test_no_matches(self) -> None:
        """Test no matches yields empty results."""
        results = search_document(parse_document("# A\ntext"), "missing")

        assert results.matches == ()
        assert results.summaries == ()


# =============================================================================
# Summary Tests
# =============================================================================


class TestSearchSummaries:
    """Tests for per-section grouping."""

    def test_grouping(self) -> None:
        """Test matches are grouped by section with counts."""
        doc = parse_document("# First\nfoo 1\nfoo 2\n\n# Second\nfoo 3")
        results = search_document(doc, "foo")

        assert len(results.matches) == 3
        assert len(results.summaries) == 2
        first, second = results.summaries
        assert (first.title, first.match_count, first.lines) == ("First", 2, (2, 3))
        assert (second.title, second.match_count, second.lines) == ("Second", 1, (6,))

    def test_preamble_excluded(self) -> None:
        """Test matches outside any section stay out of summaries."""
        doc = parse_document("foo intro\n# A\nfoo body")
        results = search_document(doc, "foo")

        assert len(results.matches) == 2
        assert [s.title for s in results.summaries] == ["A"]

    def test_first_seen_order(self) -> None:
        """Test summaries follow the order sections are first matched."""
        doc = parse_document("# A\nx\n# B\nfoo\n# C\nfoo")
        results = search_document(doc, "foo")

        assert [s.title for s in results.summaries] == ["B", "C"]

    def test_summary_json(self) -> None:
        """Test summary JSON uses matchCount."""
        doc = parse_document("## Notes\nfoo")
        data = search_document(doc, "foo").summaries[0].to_json_dict()

        assert data == {
            "id": doc.sections[0].id,
            "level": 2,
            "title": "Notes",
            "lines": [2],
            "matchCount": 1,
        }
