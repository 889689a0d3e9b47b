"""Section lookup and boundary computation.

Two boundary flavours exist for every section:

- shallow: stops at the very next heading of any level (``Section.line_end``)
- deep: stops at the next heading of the same or a shallower level, so all
  strictly deeper subsections are included

Lookups return None when nothing matches; deciding whether that is fatal is
left to the caller.
"""

from mdsurgeon.dependencies import SectionNotFoundError
from mdsurgeon.document.models import Document, Section
from mdsurgeon.document.parser import last_content_line


def find_section(doc: Document, section_id: str) -> Section | None:
    """Find a section by id."""
    for section in doc.sections:
        if section.id == section_id:
            return section
    return None


def find_section_at_line(doc: Document, line_num: int) -> Section | None:
    """Find the section containing a 1-indexed line.

    Returns:
        The last section starting at or before ``line_num``, or None when the
        line precedes the first heading
    """
    for section in reversed(doc.sections):
        if section.line <= line_num:
            return section
    return None


def get_section_end_line(doc: Document, section: Section, deep: bool = False) -> int:
    """Compute the last 1-indexed line belonging to a section.

    Args:
        doc: Document the section was parsed from
        section: Section to measure
        deep: Include strictly deeper subsections

    Returns:
        1-indexed end line, inclusive

    Raises:
        SectionNotFoundError: If the section does not belong to ``doc``
    """
    position = next((i for i, s in enumerate(doc.sections) if s.id == section.id), None)
    if position is None:
        raise SectionNotFoundError(f"Section {section.id} not found", section_id=section.id)

    if not deep:
        return section.line_end

    for following in doc.sections[position + 1 :]:
        if following.level <= section.level:
            return following.line - 1

    return last_content_line(doc.lines, section.line)


def section_body(doc: Document, section: Section, end_line: int) -> str:
    """Text strictly after the heading line up to ``end_line``."""
    return "\n".join(doc.lines[section.line : end_line])


def subsections(doc: Document, section: Section) -> list[Section]:
    """Sections nested strictly deeper inside the deep span of ``section``."""
    end_line = get_section_end_line(doc, section, deep=True)
    return [
        s
        for s in doc.sections
        if section.line < s.line <= end_line and s.level > section.level
    ]
