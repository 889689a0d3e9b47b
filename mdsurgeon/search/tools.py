"""Literal substring search inside one document.

Each matching line is annotated with the section containing it. Lines
before the first heading are still reported but stay out of the
per-section summaries.
"""

from mdsurgeon.document.locator import find_section, find_section_at_line
from mdsurgeon.document.models import Document
from mdsurgeon.search.models import SearchMatch, SearchResults, SearchSummary


def search_document(doc: Document, pattern: str) -> SearchResults:
    """Find every line containing ``pattern``.

    Args:
        doc: Parsed document
        pattern: Literal text to look for (not a regex)

    Returns:
        SearchResults with matches in line order and summaries in first-seen
        section order
    """
    matches = []
    for index, line in enumerate(doc.lines):
        if pattern not in line:
            continue
        section = find_section_at_line(doc, index + 1)
        matches.append(
            SearchMatch(
                section_id=section.id if section else None,
                line=index + 1,
                content=line,
            )
        )

    # Section id -> matching line numbers, insertion ordered
    grouped: dict[str, list[int]] = {}
    for match in matches:
        if match.section_id is None:
            continue
        grouped.setdefault(match.section_id, []).append(match.line)

    summaries = []
    for section_id, lines in grouped.items():
        section = find_section(doc, section_id)
        if section is None:
            continue
        summaries.append(
            SearchSummary(
                id=section.id,
                level=section.level,
                title=section.title,
                lines=tuple(lines),
                match_count=len(lines),
            )
        )

    return SearchResults(matches=tuple(matches), summaries=tuple(summaries))
