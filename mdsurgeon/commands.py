"""Command layer shared by the CLI and the HTTP API.

Each command is one linear unit of work: read the file, parse it, compute
the result with the core modules, and write the file back when the command
edits it. Nothing is cached between commands; two commands on the same file
each reparse it.

Example usage:
    deps = SurgeonDependencies(store=FileStore(root_path=Path(".")))
    sections = await outline(deps, "notes.md")
    result = await write(deps, "notes.md", sections[0].id, "New body")
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from mdsurgeon.dependencies import (
    CodecError,
    DocumentStore,
    FileNotFoundInStoreError,
    InvalidIdError,
    KeyNotFoundError,
    MalformedRequestError,
    SectionNotFoundError,
    StoreIOError,
    logger,
)
from mdsurgeon.document.identifiers import is_valid_id
from mdsurgeon.document.locator import find_section, subsections
from mdsurgeon.document.models import Document, Section
from mdsurgeon.document.parser import HEADING_PATTERN, DocumentParser
from mdsurgeon.meta.codec import MetadataCodec, YamlMetadataCodec
from mdsurgeon.meta.models import FrontmatterValue
from mdsurgeon.meta.tools import (
    FrontmatterManager,
    aggregate_values,
    count_values,
    h1_title,
    list_values,
    load_metadata,
)
from mdsurgeon.search.models import SearchResults
from mdsurgeon.search.tools import search_document
from mdsurgeon.sections.models import MutationOutput, MutationResult, SectionContent
from mdsurgeon.sections.tools import (
    append_section,
    empty_section,
    read_section,
    remove_section,
    write_section,
)
from mdsurgeon.templating import expand_magic

GLOB_CHARS = ("*", "?", "[")


@dataclass
class SurgeonDependencies:
    """Collaborators injected into every command."""

    store: DocumentStore
    parser: DocumentParser = field(default_factory=DocumentParser)
    codec: MetadataCodec = field(default_factory=YamlMetadataCodec)

    @property
    def frontmatter(self) -> FrontmatterManager:
        return FrontmatterManager(self.codec)


# =============================================================================
# Helpers
# =============================================================================


def check_id(path: str, section_id: str) -> None:
    """Reject ids that cannot be section ids before touching the file.

    Raises:
        InvalidIdError: If ``section_id`` is not 8 lowercase hex characters
    """
    if not is_valid_id(section_id):
        raise InvalidIdError(
            f"Invalid section ID: {section_id}", file=path, section_id=section_id
        )


def require_section(doc: Document, path: str, section_id: str) -> Section:
    """Find a section or fail with the file named in the message."""
    section = find_section(doc, section_id)
    if section is None:
        raise SectionNotFoundError(
            f"No section with id '{section_id}' in {path}", file=path, section_id=section_id
        )
    return section


async def load_document(deps: SurgeonDependencies, path: str) -> Document:
    """Read and parse one file."""
    return deps.parser.parse(await deps.store.read_file(path))


def template_metadata(deps: SurgeonDependencies, doc: Document) -> dict[str, Any]:
    """Frontmatter used for ``{meta:...}`` tokens in section content.

    A block that cannot be decoded only disables the lookups; the section
    edit itself still goes ahead.
    """
    try:
        return deps.frontmatter.metadata(doc)
    except CodecError:
        return {}


async def save_mutation(deps: SurgeonDependencies, path: str, output: MutationOutput) -> None:
    """Persist the result of a section edit."""
    await deps.store.write_file(path, output.text)
    logger.info(
        "section_written",
        extra={
            "path": path,
            "action": output.result.action,
            "section_id": output.result.id,
            "lines_added": output.result.lines_added,
            "lines_removed": output.result.lines_removed,
        },
    )


def split_fields(fields: str) -> list[str]:
    """Split a comma separated field list."""
    return [f.strip() for f in fields.split(",") if f.strip()]


def parse_meta_option(value: str) -> tuple[str, str]:
    """Split a ``key=value`` option.

    Raises:
        MalformedRequestError: If there is no key before ``=``
    """
    key, sep, rest = value.partition("=")
    if not sep or not key:
        raise MalformedRequestError(f"Invalid --meta format: {value}. Expected key=value")
    return key, rest


async def expand_patterns(deps: SurgeonDependencies, patterns: list[str]) -> list[str]:
    """Expand globs and explicit paths into a de-duplicated file list.

    Globs only contribute ``.md`` files. An explicit path that does not exist
    is an error, as is ending up with no files at all.
    """
    files: list[str] = []
    for pattern in patterns:
        if any(char in pattern for char in GLOB_CHARS):
            files.extend(await deps.store.glob(pattern))
        elif await deps.store.file_exists(pattern):
            files.append(pattern)
        else:
            raise FileNotFoundInStoreError(f"File not found: {pattern}", file=pattern)

    if not files:
        raise FileNotFoundInStoreError("No markdown files found matching patterns")
    return list(dict.fromkeys(files))


# =============================================================================
# Section Commands
# =============================================================================


async def outline(
    deps: SurgeonDependencies, path: str, after: str | None = None
) -> list[Section]:
    """List sections, optionally only those nested inside ``after``."""
    if after is not None:
        check_id(path, after)
    doc = await load_document(deps, path)
    if after is None:
        return list(doc.sections)
    return subsections(doc, require_section(doc, path, after))


async def read(
    deps: SurgeonDependencies, path: str, section_id: str, deep: bool = False
) -> SectionContent:
    """Read one section."""
    check_id(path, section_id)
    doc = await load_document(deps, path)
    require_section(doc, path, section_id)
    return read_section(doc, section_id, deep)


async def write(
    deps: SurgeonDependencies, path: str, section_id: str, content: str, deep: bool = False
) -> MutationResult:
    """Replace a section body with expanded ``content``."""
    check_id(path, section_id)
    doc = await load_document(deps, path)
    require_section(doc, path, section_id)

    expanded = expand_magic(content, template_metadata(deps, doc), deps.codec)
    output = write_section(doc, section_id, expanded, deep)
    await save_mutation(deps, path, output)
    return output.result


async def append(
    deps: SurgeonDependencies,
    path: str,
    section_id: str | None,
    content: str,
    deep: bool = False,
    before: bool = False,
) -> MutationResult:
    """Insert expanded ``content`` relative to a section or the whole file."""
    if section_id is not None:
        check_id(path, section_id)
    doc = await load_document(deps, path)
    if section_id is not None:
        require_section(doc, path, section_id)

    expanded = expand_magic(content, template_metadata(deps, doc), deps.codec)
    output = append_section(doc, section_id, expanded, deep, before, parser=deps.parser)
    await save_mutation(deps, path, output)
    return output.result


async def empty(
    deps: SurgeonDependencies, path: str, section_id: str, deep: bool = False
) -> MutationResult:
    """Delete a section body, keeping its heading."""
    check_id(path, section_id)
    doc = await load_document(deps, path)
    require_section(doc, path, section_id)

    output = empty_section(doc, section_id, deep)
    await save_mutation(deps, path, output)
    return output.result


async def remove(deps: SurgeonDependencies, path: str, section_id: str) -> MutationResult:
    """Delete a section with all of its subsections."""
    check_id(path, section_id)
    doc = await load_document(deps, path)
    require_section(doc, path, section_id)

    output = remove_section(doc, section_id)
    await save_mutation(deps, path, output)
    return output.result


async def search(deps: SurgeonDependencies, path: str, pattern: str) -> SearchResults:
    """Search one file for a literal pattern."""
    return search_document(await load_document(deps, path), pattern)


async def concat(deps: SurgeonDependencies, paths: list[str], shift: int = 0) -> str:
    """Join file bodies, keeping only the first file's frontmatter.

    Args:
        deps: Command dependencies
        paths: Files in output order
        shift: Levels added to every heading, capped at 6
    """
    bodies = []
    first_frontmatter = None

    for index, path in enumerate(paths):
        doc = await load_document(deps, path)
        if index == 0:
            first_frontmatter = doc.frontmatter

        lines = list(doc.lines[doc.frontmatter_end_line :])
        if shift > 0:
            lines = [_shift_heading(line, shift) for line in lines]
        bodies.append("\n".join(lines))

    result = "\n\n".join(bodies)
    if first_frontmatter is not None:
        result = f"{first_frontmatter}\n\n{result}"
    return result


def _shift_heading(line: str, shift: int) -> str:
    match = HEADING_PATTERN.match(line)
    if match is None:
        return line
    return "#" * min(6, len(match.group(1)) + shift) + " " + match.group(2)


# =============================================================================
# Metadata Commands
# =============================================================================


async def meta_get(
    deps: SurgeonDependencies, path: str, key: str | None = None
) -> FrontmatterValue:
    """Read one frontmatter key, or the whole block body."""
    doc = await load_document(deps, path)
    return deps.frontmatter.get(doc, key)


async def meta_h1(deps: SurgeonDependencies, path: str) -> str:
    """Title of the first level-1 heading."""
    return h1_title(await load_document(deps, path))


async def meta_set(deps: SurgeonDependencies, path: str, key: str, value: str) -> str:
    """Set a frontmatter key to an expanded, typed value."""
    doc = await load_document(deps, path)
    manager = deps.frontmatter
    expanded = expand_magic(value, manager.metadata(doc), deps.codec)

    update = manager.set(doc, key, expanded)
    await deps.store.write_file(path, update.text)
    logger.info("meta_written", extra={"path": path, "key": key, "operation": "set"})
    return update.message


async def meta_delete(deps: SurgeonDependencies, path: str, key: str) -> str:
    """Delete a frontmatter key.

    Raises:
        KeyNotFoundError: If the key does not exist
    """
    doc = await load_document(deps, path)
    update = deps.frontmatter.delete(doc, key)
    if update is None:
        raise KeyNotFoundError(f"Key '{key}' not found", file=path)

    await deps.store.write_file(path, update.text)
    logger.info("meta_written", extra={"path": path, "key": key, "operation": "delete"})
    return update.message


async def _collect(
    deps: SurgeonDependencies, patterns: list[str]
) -> list[dict[str, Any]]:
    files = await expand_patterns(deps, patterns)
    return await load_metadata(deps.store, files, deps.parser, deps.frontmatter)


async def meta_list(deps: SurgeonDependencies, patterns: list[str], fields: str) -> list[Any]:
    """All values of the given fields across files, duplicates kept."""
    return list_values(deps.codec, await _collect(deps, patterns), split_fields(fields))


async def meta_aggregate(
    deps: SurgeonDependencies, patterns: list[str], fields: str
) -> dict[str, Counter]:
    """Distinct values of the given fields with their counts."""
    return aggregate_values(deps.codec, await _collect(deps, patterns), split_fields(fields))


async def meta_count(
    deps: SurgeonDependencies, patterns: list[str], fields: str
) -> dict[str, int]:
    """Total number of values per field."""
    return count_values(deps.codec, await _collect(deps, patterns), split_fields(fields))


# =============================================================================
# File Creation
# =============================================================================


async def create(
    deps: SurgeonDependencies,
    path: str,
    title: str | None = None,
    meta_entries: list[tuple[str, str]] | None = None,
    force: bool = False,
    content: str | None = None,
) -> str:
    """Create a new markdown file with optional frontmatter, title and body.

    Raises:
        StoreIOError: If the file exists and ``force`` is not set
    """
    if not force and await deps.store.file_exists(path):
        raise StoreIOError(f"File already exists: {path}. Use --force to overwrite.", file=path)

    lines: list[str] = []
    meta: dict[str, Any] = {}
    if meta_entries:
        for key, value in meta_entries:
            deps.codec.set_path(meta, key, expand_magic(value, meta, deps.codec))
        lines.extend(["---", deps.codec.stringify(meta), "---", ""])

    if title:
        lines.extend([f"# {expand_magic(title, meta, deps.codec)}", ""])

    if content:
        lines.append(expand_magic(content, meta, deps.codec))

    await deps.store.write_file(path, "\n".join(lines))
    logger.info("file_created", extra={"path": path})
    return f"created {path}"
