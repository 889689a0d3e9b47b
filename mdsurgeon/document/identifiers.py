"""Section identifiers.

Ids are derived from (level, title, occurrence) only, so the same heading
keeps the same id across parses, processes and machines as long as the
relative order of duplicate headings does not change.
"""

import hashlib
import re
from typing import Protocol

ID_LENGTH = 8
ID_PATTERN = re.compile(rf"[0-9a-f]{{{ID_LENGTH}}}")


def normalize_title(title: str) -> str:
    """Lowercase and trim a title for identity purposes."""
    return title.lower().strip()


def is_valid_id(value: str) -> bool:
    """Check whether a string has the lexical shape of a section id.

    Examples:
        >>> is_valid_id("a1b2c3d4")
        True
        >>> is_valid_id("hello world")
        False
    """
    return bool(ID_PATTERN.fullmatch(value))


class HashService(Protocol):
    """Produces section ids."""

    def hash(self, level: int, title: str, occurrence_index: int) -> str: ...


class Sha256SectionHasher:
    """HashService using the first 8 hex characters of a SHA-256 digest."""

    def hash(self, level: int, title: str, occurrence_index: int) -> str:
        """Hash a heading into its id.

        Args:
            level: Heading level (1-6)
            title: Heading title, normalized before hashing
            occurrence_index: Zero-based count of earlier headings with the
                same level and normalized title

        Returns:
            8-character lowercase hex string
        """
        key = f"{level}:{normalize_title(title)}:{occurrence_index}"
        return hashlib.sha256(key.encode("utf-8")).hexdigest()[:ID_LENGTH]


default_hasher = Sha256SectionHasher()
