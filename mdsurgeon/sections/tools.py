"""Section read and edit operations.

Every edit follows the same shape: locate the target section, compute its
old boundary, splice new lines into a copy of ``doc.lines`` and return the
new lines with a MutationResult. Nothing here touches storage; persisting
``MutationOutput.text`` is the caller's job.

Example:
    >>> doc = default_parser.parse("# Title\\nOld")
    >>> out = write_section(doc, doc.sections[0].id, "New")
    >>> out.text
    '# Title\\n\\nNew'
"""

from mdsurgeon.dependencies import SectionNotFoundError
from mdsurgeon.document.locator import find_section, get_section_end_line, section_body
from mdsurgeon.document.models import NO_SECTION_ID, Document, Section
from mdsurgeon.document.parser import DocumentParser, default_parser, match_heading
from mdsurgeon.sections.models import MutationOutput, MutationResult, SectionContent

# =============================================================================
# Helper Functions
# =============================================================================


def require_section(doc: Document, section_id: str) -> Section:
    """Find a section or fail.

    Raises:
        SectionNotFoundError: If no section has ``section_id``
    """
    section = find_section(doc, section_id)
    if section is None:
        raise SectionNotFoundError(f"Section {section_id} not found", section_id=section_id)
    return section


def split_content(content: str) -> list[str]:
    """Split replacement content into lines; empty content yields no lines."""
    return [] if content == "" else content.split("\n")


def with_leading_blank(lines: list[str]) -> list[str]:
    """Prefix a blank separator unless the content already starts blank."""
    if lines and lines[0].strip() != "":
        return ["", *lines]
    return lines


# =============================================================================
# Operations
# =============================================================================


def read_section(doc: Document, section_id: str, deep: bool = False) -> SectionContent:
    """Return a section with the text under its heading.

    Args:
        doc: Parsed document
        section_id: Id of the section to read
        deep: Include strictly deeper subsections

    Raises:
        SectionNotFoundError: If the id is unknown
    """
    section = require_section(doc, section_id)
    end_line = get_section_end_line(doc, section, deep)
    return SectionContent(
        section=section, content=section_body(doc, section, end_line), end_line=end_line
    )


def write_section(
    doc: Document, section_id: str, content: str, deep: bool = False
) -> MutationOutput:
    """Replace the body of a section, keeping its heading.

    A blank line is always kept between the heading and non-blank new content.
    Empty content leaves the section heading-only.

    Args:
        doc: Parsed document
        section_id: Target section id
        content: New body text
        deep: Replace subsections too

    Returns:
        MutationOutput with action ``updated``
    """
    section = require_section(doc, section_id)
    end_line = get_section_end_line(doc, section, deep)

    new_lines = with_leading_blank(split_content(content))
    updated_lines = (*doc.lines[: section.line], *new_lines, *doc.lines[end_line:])

    result = MutationResult(
        action="updated",
        id=section.id,
        line_start=section.line,
        line_end=section.line + len(new_lines),
        lines_added=len(new_lines),
        lines_removed=end_line - section.line,
    )
    return MutationOutput(result=result, updated_lines=updated_lines)


def append_section(
    doc: Document,
    section_id: str | None,
    content: str,
    deep: bool = False,
    before: bool = False,
    parser: DocumentParser | None = None,
) -> MutationOutput:
    """Insert content relative to a section, or to the whole file.

    Without a section id, ``before`` inserts right after any frontmatter and
    the default inserts at end of file. With an id, ``before`` inserts just
    above the heading and the default inserts at the section end (shallow or
    deep). When inserting after non-blank text, a blank separator is added
    unless the content starts blank.

    Content starting with a heading is reported as ``created``; the new
    section's id is recovered by reparsing and matching the heading at the
    insertion line. When the separator shifted the heading down by one line
    that match misses and the id is reported as ``-``.

    Args:
        doc: Parsed document
        section_id: Target section id, or None for the whole file
        content: Text to insert
        deep: Insert after subsections instead of before them
        before: Insert before the target instead of after it
        parser: Parser used for the reparse (default hasher if omitted)

    Returns:
        MutationOutput with action ``appended`` or ``created``
    """
    new_lines = content.split("\n")
    target_id = NO_SECTION_ID

    if section_id is None:
        insert_at = doc.frontmatter_end_line if before else len(doc.lines)
    else:
        section = require_section(doc, section_id)
        target_id = section.id
        if before:
            insert_at = section.line - 1
        else:
            insert_at = get_section_end_line(doc, section, deep)

    if (
        not before
        and insert_at > 0
        and doc.lines[insert_at - 1].strip() != ""
        and new_lines[0].strip() != ""
    ):
        new_lines.insert(0, "")

    updated_lines = (*doc.lines[:insert_at], *new_lines, *doc.lines[insert_at:])

    heading = match_heading(content.split("\n")[0])
    if heading is None:
        result = MutationResult(
            action="appended",
            id=target_id,
            line_start=insert_at + 1,
            lines_added=len(new_lines),
        )
        return MutationOutput(result=result, updated_lines=updated_lines)

    _, title = heading
    reparsed = (parser or default_parser).parse("\n".join(updated_lines))
    created = next(
        (s for s in reparsed.sections if s.line == insert_at + 1 and s.title == title),
        None,
    )
    result = MutationResult(
        action="created",
        id=created.id if created else NO_SECTION_ID,
        line_start=insert_at + 1,
        line_end=insert_at + len(new_lines),
        lines_added=len(new_lines),
    )
    return MutationOutput(result=result, updated_lines=updated_lines)


def remove_section(doc: Document, section_id: str) -> MutationOutput:
    """Delete a section's heading, body and every subsection.

    Returns:
        MutationOutput with action ``removed``
    """
    section = require_section(doc, section_id)
    end_line = get_section_end_line(doc, section, deep=True)

    updated_lines = (*doc.lines[: section.line - 1], *doc.lines[end_line:])
    result = MutationResult(
        action="removed",
        id=section.id,
        line_start=section.line,
        lines_removed=end_line - section.line + 1,
    )
    return MutationOutput(result=result, updated_lines=updated_lines)


def empty_section(doc: Document, section_id: str, deep: bool = False) -> MutationOutput:
    """Delete a section's body but keep its heading.

    Returns:
        MutationOutput with action ``emptied``
    """
    section = require_section(doc, section_id)
    end_line = get_section_end_line(doc, section, deep)

    updated_lines = (*doc.lines[: section.line], *doc.lines[end_line:])
    result = MutationResult(
        action="emptied",
        id=section.id,
        line_start=section.line,
        lines_removed=end_line - section.line,
    )
    return MutationOutput(result=result, updated_lines=updated_lines)
