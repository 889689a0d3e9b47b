"""Markdown document parser.

Recognizes only what section addressing needs: ATX headings (``#`` to
``######``), fenced code blocks (``` or ~~~) which hide headings, and a
leading ``---`` delimited frontmatter block. Everything else is content.

Example:
    >>> doc = DocumentParser().parse("# Title\\nBody")
    >>> [(s.title, s.line, s.line_end) for s in doc.sections]
    [('Title', 1, 2)]
"""

import re

from mdsurgeon.document.identifiers import HashService, default_hasher, normalize_title
from mdsurgeon.document.models import Document, Section

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
FRONTMATTER_DELIMITER = "---"
FENCE_MARKERS = ("```", "~~~")


def match_heading(line: str) -> tuple[int, str] | None:
    """Match a single line against the ATX heading syntax.

    Args:
        line: One line of text, without its newline

    Returns:
        Tuple of (level, trimmed title), or None if the line is not a heading
    """
    match = HEADING_PATTERN.match(line)
    if not match:
        return None
    return len(match.group(1)), match.group(2).strip()


def is_fence(line: str) -> bool:
    """Check whether a line opens or closes a fenced code block."""
    return line.strip().startswith(FENCE_MARKERS)


def last_content_line(lines: tuple[str, ...] | list[str], floor: int) -> int:
    """Last 1-indexed line of a file once trailing blank lines are dropped.

    Args:
        lines: Document lines
        floor: Line number the result may not go below

    Returns:
        Line number of the last non-blank line, but never less than ``floor``
    """
    last = len(lines)
    while last > floor and lines[last - 1].strip() == "":
        last -= 1
    return last


class DocumentParser:
    """Turns markdown text into a Document.

    The hash service is injected so ids can be computed with any scheme;
    the default is the SHA-256 hasher.
    """

    def __init__(self, hasher: HashService | None = None):
        self.hasher = hasher or default_hasher

    def parse(self, content: str) -> Document:
        """Parse markdown text. Never fails.

        Args:
            content: Full file text

        Returns:
            Document whose lines re-join to exactly ``content``
        """
        lines = content.split("\n")
        frontmatter, frontmatter_end_line = self._detect_frontmatter(lines)

        # (id, level, title, line) for every heading, in order
        headings: list[tuple[str, int, str, int]] = []
        occurrences: dict[tuple[int, str], int] = {}
        in_code_block = False

        for index in range(frontmatter_end_line, len(lines)):
            line = lines[index]
            if is_fence(line):
                in_code_block = not in_code_block
                continue
            if in_code_block:
                continue

            heading = match_heading(line)
            if heading is None:
                continue
            level, title = heading
            key = (level, normalize_title(title))
            occurrence = occurrences.get(key, 0)
            occurrences[key] = occurrence + 1
            headings.append((self.hasher.hash(level, title, occurrence), level, title, index + 1))

        sections = []
        for position, (section_id, level, title, line) in enumerate(headings):
            if position + 1 < len(headings):
                line_end = headings[position + 1][3] - 1
            else:
                line_end = last_content_line(lines, line)
            sections.append(
                Section(id=section_id, level=level, title=title, line=line, line_end=line_end)
            )

        return Document(
            sections=tuple(sections),
            lines=tuple(lines),
            frontmatter=frontmatter,
            frontmatter_end_line=frontmatter_end_line,
        )

    @staticmethod
    def _detect_frontmatter(lines: list[str]) -> tuple[str | None, int]:
        """Find a leading ``---`` block closed by another ``---`` line.

        Returns:
            Tuple of (raw block with delimiters, line after the block); (None, 0)
            when the first line is not a delimiter or the block is never closed
        """
        if lines[0].strip() != FRONTMATTER_DELIMITER:
            return None, 0
        for index in range(1, len(lines)):
            if lines[index].strip() == FRONTMATTER_DELIMITER:
                return "\n".join(lines[: index + 1]), index + 1
        return None, 0


default_parser = DocumentParser()


def parse_document(content: str) -> Document:
    """Parse with the default hasher."""
    return default_parser.parse(content)
