"""Text and JSON renderings of command results.

Text output is line-oriented and stable so it can be piped into other
tools; section references are written as ``^id`` and line numbers as
``L12``. JSON output is compact and uses camelCase keys.
"""

import json
from collections import Counter
from typing import Any

from mdsurgeon.document.models import Section
from mdsurgeon.meta.codec import MetadataCodec
from mdsurgeon.search.models import SearchMatch, SearchSummary
from mdsurgeon.sections.models import MutationResult, SectionContent


def to_json(data: Any) -> str:
    """Compact JSON with unicode kept as-is and unknown types as strings."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)


# =============================================================================
# Text Formatters
# =============================================================================


def format_section(section: Section) -> str:
    """One outline line, e.g. ``## Notes ^a1b2c3d4 L12``."""
    return f"{section.heading} ^{section.id} L{section.line}"


def format_outline(sections: list[Section]) -> str:
    return "\n".join(format_section(s) for s in sections)


def format_read(read: SectionContent) -> str:
    """Heading line with its range, then the body when it is not blank."""
    section = read.section
    header = f"{section.heading} ^{section.id} L{section.line}-L{read.end_line}"
    if read.content.strip() == "":
        return header
    return f"{header}\n\n{read.content}"


def format_mutation(result: MutationResult) -> str:
    """e.g. ``updated ^a1b2c3d4 L3-L5 (+2, -1)``."""
    if result.line_end:
        span = f"L{result.line_start}-L{result.line_end}"
    else:
        span = f"L{result.line_start}"

    delta = []
    if result.lines_added > 0:
        delta.append(f"+{result.lines_added}")
    if result.lines_removed > 0:
        delta.append(f"-{result.lines_removed}")
    delta_text = f" ({', '.join(delta)})" if delta else ""

    return f"{result.action} ^{result.id} {span}{delta_text}"


def format_search_matches(matches: list[SearchMatch] | tuple[SearchMatch, ...]) -> str:
    return "\n".join(f"^{m.section_id or '-'} L{m.line} {m.content}" for m in matches)


def format_search_summary(summaries: list[SearchSummary] | tuple[SearchSummary, ...]) -> str:
    lines = []
    for s in summaries:
        refs = ",".join(f"L{line}" for line in s.lines)
        noun = "match" if s.match_count == 1 else "matches"
        lines.append(f"{'#' * s.level} {s.title} ^{s.id} {refs} ({s.match_count} {noun})")
    return "\n".join(lines)


def format_aggregate(counts: dict[str, Counter]) -> str:
    """Counts sorted by frequency; nested under field names when several."""
    multiple = len(counts) > 1
    lines = []
    for field, counter in counts.items():
        if multiple:
            lines.append(f"{field}:")
        prefix = "  " if multiple else ""
        for value, count in sorted(counter.items(), key=lambda item: -item[1]):
            lines.append(f"{prefix}{count} {value}")
    return "\n".join(lines)


def format_count(totals: dict[str, int]) -> str:
    if len(totals) == 1:
        return str(next(iter(totals.values())))
    return "\n".join(f"{field}: {total}" for field, total in totals.items())


def format_values(codec: MetadataCodec, values: list[Any]) -> str:
    return "\n".join(codec.format_value(v) for v in values)


# =============================================================================
# JSON Formatters
# =============================================================================


def outline_entry(section: Section) -> dict[str, Any]:
    return {"id": section.id, "level": section.level, "title": section.title, "line": section.line}


def json_outline(sections: list[Section]) -> str:
    return to_json([outline_entry(s) for s in sections])


def json_read(read: SectionContent) -> str:
    return to_json(read.to_json_dict())


def json_mutation(result: MutationResult) -> str:
    return to_json(result.to_json_dict())


def json_search_matches(matches: list[SearchMatch] | tuple[SearchMatch, ...]) -> str:
    return to_json([m.to_json_dict() for m in matches])


def json_search_summary(summaries: list[SearchSummary] | tuple[SearchSummary, ...]) -> str:
    return to_json([s.to_json_dict() for s in summaries])


def json_aggregate(counts: dict[str, Counter]) -> str:
    """Single field collapses to a plain value -> count mapping."""
    result = {field: dict(counter) for field, counter in counts.items()}
    if len(result) == 1:
        return to_json(next(iter(result.values())))
    return to_json(result)


def json_count(totals: dict[str, int]) -> str:
    if len(totals) == 1:
        return to_json(next(iter(totals.values())))
    return to_json(totals)
