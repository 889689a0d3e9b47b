"""Pydantic models for parsed documents.

A Document is an immutable snapshot of one markdown text: its lines, the
sections found by heading, and the raw leading frontmatter block. Every
operation that changes text produces new lines instead of editing a
Document in place.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Id reported when an operation targets the whole file instead of a section.
NO_SECTION_ID = "-"


class FrozenModel(BaseModel):
    """Immutable value model rendered with camelCase keys in JSON."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump to the camelCase, JSON-ready shape used by every output."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Section(FrozenModel):
    """One heading and its content span.

    Attributes:
        id: Stable 8-hex-character identifier
        level: Heading level, 1-6
        title: Heading text, trimmed
        line: 1-indexed line number of the heading
        line_end: 1-indexed last line before the next heading of any level
    """

    id: str = Field(..., description="Stable section identifier")
    level: int = Field(..., ge=1, le=6, description="Heading level")
    title: str = Field(..., description="Heading text")
    line: int = Field(..., ge=1, description="Heading line (1-indexed)")
    line_end: int = Field(..., ge=1, description="Last line of shallow content")

    @property
    def heading(self) -> str:
        """Heading as written back to markdown."""
        return f"{'#' * self.level} {self.title}"


class Document(FrozenModel):
    """Parse result of a markdown text.

    Attributes:
        sections: Sections in document order
        lines: Source text split on newline (0-indexed here, 1-indexed in sections)
        frontmatter: Raw leading block including its ``---`` delimiters, or None
        frontmatter_end_line: 0 without frontmatter, else the line after the closing ``---``
    """

    sections: tuple[Section, ...] = Field(default=(), description="Sections in order")
    lines: tuple[str, ...] = Field(default=("",), description="Source lines")
    frontmatter: str | None = Field(default=None, description="Raw frontmatter block")
    frontmatter_end_line: int = Field(default=0, ge=0, description="Line after frontmatter")

    @property
    def text(self) -> str:
        """Re-join the lines into the original text."""
        return "\n".join(self.lines)
