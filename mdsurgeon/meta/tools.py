"""Frontmatter management and multi-file metadata aggregation.

The manager works on the raw block recorded by the parser: it strips the
``---`` delimiters before handing text to the codec and puts them back
when writing. A new block always goes at the very top of the file,
followed by one blank line.

Aggregation reads many files and drops any file that cannot be read or
decoded; a single bad file never aborts the batch.
"""

import json
from collections import Counter
from typing import Any

from mdsurgeon.dependencies import DocumentStore, SurgeonError, logger
from mdsurgeon.document.models import Document
from mdsurgeon.document.parser import DocumentParser
from mdsurgeon.meta.codec import MetadataCodec, default_codec
from mdsurgeon.meta.models import FrontmatterUpdate, FrontmatterValue

FRONTMATTER_DELIMITER = "---"


# =============================================================================
# Single Document
# =============================================================================


class FrontmatterManager:
    """Get, set and delete frontmatter keys of a parsed document."""

    def __init__(self, codec: MetadataCodec | None = None):
        self.codec = codec or default_codec

    @staticmethod
    def frontmatter_content(doc: Document) -> str:
        """Block body without the delimiter lines, or "" when there is no block."""
        if doc.frontmatter is None:
            return ""
        return "\n".join(doc.frontmatter.split("\n")[1:-1])

    def metadata(self, doc: Document) -> dict[str, Any]:
        """Decode the block into a mapping.

        Raises:
            CodecError: If the block is not valid
        """
        return self.codec.parse(self.frontmatter_content(doc))

    def get(self, doc: Document, key: str | None = None) -> FrontmatterValue:
        """Read one key, or the whole raw block body when no key is given."""
        content = self.frontmatter_content(doc)
        if not key:
            return FrontmatterValue(value=content, formatted=content)

        value = self.codec.get_path(self.codec.parse(content), key)
        return FrontmatterValue(value=value, formatted=self.codec.format_value(value))

    def set(self, doc: Document, key: str, value: str) -> FrontmatterUpdate:
        """Set a key, typing the value through the codec.

        Args:
            doc: Parsed document
            key: Dotted key path
            value: Value text, e.g. ``draft``, ``3`` or ``[a, b]``
        """
        meta = self.metadata(doc)
        self.codec.set_path(meta, key, self.codec.load_value(value))
        return FrontmatterUpdate(
            updated_lines=self.apply(doc, self.codec.stringify(meta)),
            message=f"set {key}",
        )

    def delete(self, doc: Document, key: str) -> FrontmatterUpdate | None:
        """Delete a key.

        Returns:
            The update, or None when the key does not exist
        """
        meta = self.metadata(doc)
        if not self.codec.delete_path(meta, key):
            return None
        return FrontmatterUpdate(
            updated_lines=self.apply(doc, self.codec.stringify(meta)),
            message=f"deleted {key}",
        )

    @staticmethod
    def apply(doc: Document, yaml_content: str) -> tuple[str, ...]:
        """Put a new block body into the document.

        An existing block is replaced in place and everything after it is
        kept. Without an existing block, a non-empty body is inserted at the
        top followed by a blank line. An empty body removes the block.
        """
        body = yaml_content.strip()
        block = [FRONTMATTER_DELIMITER, *body.split("\n"), FRONTMATTER_DELIMITER] if body else []

        if doc.frontmatter is not None:
            return (*block, *doc.lines[doc.frontmatter_end_line :])
        if block:
            return (*block, "", *doc.lines)
        return doc.lines


def h1_title(doc: Document) -> str:
    """Title of the first level-1 section, or "" when there is none."""
    return next((s.title for s in doc.sections if s.level == 1), "")


# =============================================================================
# Multi-file Aggregation
# =============================================================================


async def load_metadata(
    store: DocumentStore,
    paths: list[str],
    parser: DocumentParser,
    manager: FrontmatterManager,
) -> list[dict[str, Any]]:
    """Decode the frontmatter of many files, skipping any that fail.

    Args:
        store: Storage to read from
        paths: Files to read, in output order
        parser: Document parser
        manager: Frontmatter manager

    Returns:
        One mapping per readable file
    """
    results = []
    for path in paths:
        try:
            doc = parser.parse(await store.read_file(path))
            results.append(manager.metadata(doc))
        except SurgeonError as e:
            logger.debug("meta_file_skipped", extra={"path": path, "error": e.code})
            continue
    return results


def _field_values(codec: MetadataCodec, meta: dict[str, Any], field: str) -> list[Any]:
    """Non-null values of one field, with lists flattened."""
    value = codec.get_path(meta, field)
    if value is None:
        return []
    return list(value) if isinstance(value, list) else [value]


def value_key(value: Any) -> str:
    """Key under which a value is counted.

    Examples:
        >>> value_key(True)
        'true'
        >>> value_key({"a": 1})
        '{"a":1}'
        >>> value_key(2.0)
        '2'
    """
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def list_values(codec: MetadataCodec, metas: list[dict[str, Any]], fields: list[str]) -> list[Any]:
    """Every value of every field across files, duplicates kept."""
    values: list[Any] = []
    for meta in metas:
        for field in fields:
            values.extend(_field_values(codec, meta, field))
    return values


def aggregate_values(
    codec: MetadataCodec, metas: list[dict[str, Any]], fields: list[str]
) -> dict[str, Counter]:
    """Per-field occurrence counts of each distinct value."""
    counts: dict[str, Counter] = {field: Counter() for field in fields}
    for meta in metas:
        for field in fields:
            for value in _field_values(codec, meta, field):
                counts[field][value_key(value)] += 1
    return counts


def count_values(
    codec: MetadataCodec, metas: list[dict[str, Any]], fields: list[str]
) -> dict[str, int]:
    """Per-field total number of values."""
    return {
        field: sum(counter.values())
        for field, counter in aggregate_values(codec, metas, fields).items()
    }
