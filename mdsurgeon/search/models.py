"""Pydantic models for in-document search results."""

from pydantic import Field

from mdsurgeon.document.models import FrozenModel


class SearchMatch(FrozenModel):
    """A single matching line.

    Attributes:
        section_id: Id of the containing section, None before the first heading
        line: 1-indexed line number
        content: The full matching line
    """

    section_id: str | None = Field(default=None, description="Containing section")
    line: int = Field(..., ge=1, description="Line number")
    content: str = Field(..., description="Matching line")

    def to_json_dict(self) -> dict:
        """Keep ``sectionId`` even when null."""
        return self.model_dump(mode="json", by_alias=True)


class SearchSummary(FrozenModel):
    """Matches grouped under one section.

    Attributes:
        id: Section id
        level: Section heading level
        title: Section title
        lines: Matching line numbers in order
        match_count: Number of matching lines
    """

    id: str
    level: int
    title: str
    lines: tuple[int, ...] = Field(default=(), description="Matching lines")
    match_count: int = Field(default=0, ge=0, description="Number of matches")


class SearchResults(FrozenModel):
    """Flat matches plus per-section summaries."""

    matches: tuple[SearchMatch, ...] = ()
    summaries: tuple[SearchSummary, ...] = ()
