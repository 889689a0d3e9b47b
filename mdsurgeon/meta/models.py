"""Pydantic models for frontmatter operations."""

from typing import Any

from pydantic import Field

from mdsurgeon.document.models import FrozenModel


class FrontmatterValue(FrozenModel):
    """Result of reading frontmatter.

    Attributes:
        value: Decoded value for a key, or the raw block body when no key was given
        formatted: Text rendering of ``value``
    """

    value: Any = None
    formatted: str = ""


class FrontmatterUpdate(FrozenModel):
    """New document lines after a frontmatter edit.

    Attributes:
        updated_lines: Full new line sequence
        message: Short description such as ``set status``
    """

    updated_lines: tuple[str, ...]
    message: str = Field(..., description="What changed")

    @property
    def text(self) -> str:
        """New file text."""
        return "\n".join(self.updated_lines)
