"""Pydantic models for section reads and edits."""

from typing import Literal

from pydantic import Field

from mdsurgeon.document.models import FrozenModel, Section

MutationAction = Literal["updated", "created", "appended", "emptied", "removed"]


class MutationResult(FrozenModel):
    """Receipt of a single write-type operation.

    Attributes:
        action: What happened to the text
        id: Affected section id, or ``-`` for file-level appends
        line_start: First 1-indexed line touched
        line_end: Last 1-indexed line of inserted content, when meaningful
        lines_added: Number of lines inserted
        lines_removed: Number of lines deleted
    """

    action: MutationAction
    id: str = Field(..., description="Affected section id")
    line_start: int = Field(..., ge=1, description="First line touched")
    line_end: int | None = Field(default=None, description="Last inserted line")
    lines_added: int = Field(default=0, ge=0, description="Lines inserted")
    lines_removed: int = Field(default=0, ge=0, description="Lines deleted")


class MutationOutput(FrozenModel):
    """A mutation receipt together with the full new line sequence."""

    result: MutationResult
    updated_lines: tuple[str, ...]

    @property
    def text(self) -> str:
        """New file text."""
        return "\n".join(self.updated_lines)


class SectionContent(FrozenModel):
    """A section with the body text found under it.

    Attributes:
        section: The located section
        content: Lines after the heading up to ``end_line``
        end_line: 1-indexed end line used (shallow or deep)
    """

    section: Section
    content: str
    end_line: int

    def to_json_dict(self) -> dict:
        """Flat JSON shape of a read."""
        return {
            "id": self.section.id,
            "level": self.section.level,
            "title": self.section.title,
            "lineStart": self.section.line,
            "lineEnd": self.end_line,
            "content": self.content,
        }
