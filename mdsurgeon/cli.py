"""Command-line entry point (``md``).

Usage:
    md outline notes.md
    md read notes.md a1b2c3d4 --deep
    echo "New body" | md write notes.md a1b2c3d4
    md append notes.md a1b2c3d4 "- another item"
    md meta notes.md status done
    md meta --aggregate tags "notes/**/*.md"

Errors are written to stderr as ``error: <code>`` followed by the message,
and the process exits with status 1.
"""

import argparse
import asyncio
import sys

from mdsurgeon import commands, formatting
from mdsurgeon.commands import SurgeonDependencies, parse_meta_option
from mdsurgeon.config import get_settings
from mdsurgeon.dependencies import FileStore, MalformedRequestError, SurgeonError, logger
from mdsurgeon.document.identifiers import is_valid_id


def read_stdin() -> str:
    return sys.stdin.read()


class SurgeonArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as ``parse_error``."""

    def error(self, message: str):
        raise MalformedRequestError(f"{self.prog}: {message}")


def build_parser() -> SurgeonArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = SurgeonArgumentParser(
        prog="md",
        description="Surgical section-level edits of Markdown files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("outline", help="List sections in a Markdown file")
    p.add_argument("file")
    p.add_argument("--after", metavar="ID", help="Only subsections of this section")
    p.add_argument("--last", action="store_true", help="Only the last section")
    p.add_argument("--count", action="store_true", help="Only the number of sections")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("read", help="Read section content")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("--deep", action="store_true", help="Include subsections")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("write", help="Replace section content")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("content", nargs="?", help="New content (stdin when omitted)")
    p.add_argument("--deep", action="store_true", help="Replace subsections too")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("append", help="Append content to a section or the file")
    p.add_argument("file")
    p.add_argument("id_or_content", nargs="?", metavar="ID")
    p.add_argument("content", nargs="?", help="Content (stdin when omitted)")
    p.add_argument("--deep", action="store_true", help="Append after subsections")
    p.add_argument("--before", action="store_true", help="Insert before the section")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("empty", help="Empty a section, keeping its heading")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("--deep", action="store_true", help="Empty subsections too")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("remove", help="Remove a section and its subsections")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("search", help="Search a file for a literal pattern")
    p.add_argument("file")
    p.add_argument("pattern")
    p.add_argument("--summary", action="store_true", help="Group results by section")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("concat", help="Concatenate Markdown files")
    p.add_argument("files", nargs="+")
    p.add_argument("-s", "--shift", type=int, default=0, help="Deepen headings by N")

    p = sub.add_parser("meta", help="Read or edit frontmatter")
    p.add_argument("args", nargs="+", metavar="FILE [KEY [VALUE]]")
    p.add_argument("--list", metavar="FIELDS", help="Values of FIELDS across files")
    p.add_argument("--aggregate", metavar="FIELDS", help="Distinct values with counts")
    p.add_argument("--count", metavar="FIELDS", help="Total number of values")
    p.add_argument("--set", action="store_true", help="Set KEY to VALUE")
    p.add_argument("--del", dest="delete", action="store_true", help="Delete KEY")
    p.add_argument("--h1", action="store_true", help="Title of the first H1")
    p.add_argument("--json", action="store_true", help="Output as JSON")

    p = sub.add_parser("create", help="Create a new Markdown file")
    p.add_argument("file")
    p.add_argument("content", nargs="?")
    p.add_argument("--title", help="H1 title")
    p.add_argument(
        "--meta", action="append", default=[], metavar="KEY=VALUE", help="Frontmatter entry"
    )
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


# =============================================================================
# Command Handlers
# =============================================================================


async def run_outline(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    sections = await commands.outline(deps, args.file, args.after)
    if args.count:
        return formatting.to_json({"count": len(sections)}) if args.json else str(len(sections))
    if args.last:
        if not sections:
            return "null" if args.json else ""
        last = sections[-1]
        if args.json:
            return formatting.to_json(formatting.outline_entry(last))
        return formatting.format_section(last)
    if args.json:
        return formatting.json_outline(sections)
    return formatting.format_outline(sections)


async def run_read(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    result = await commands.read(deps, args.file, args.id, args.deep)
    return formatting.json_read(result) if args.json else formatting.format_read(result)


async def run_write(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    content = args.content if args.content is not None else read_stdin()
    result = await commands.write(deps, args.file, args.id, content, args.deep)
    return formatting.json_mutation(result) if args.json else formatting.format_mutation(result)


async def run_append(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    # The first positional is a section id only when it looks like one.
    first = args.id_or_content
    if first is not None and is_valid_id(first):
        section_id = first
        content = args.content if args.content is not None else read_stdin()
    else:
        section_id = None
        content = first if first is not None else read_stdin()

    result = await commands.append(
        deps, args.file, section_id, content, args.deep, args.before
    )
    return formatting.json_mutation(result) if args.json else formatting.format_mutation(result)


async def run_empty(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    result = await commands.empty(deps, args.file, args.id, args.deep)
    return formatting.json_mutation(result) if args.json else formatting.format_mutation(result)


async def run_remove(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    result = await commands.remove(deps, args.file, args.id)
    return formatting.json_mutation(result) if args.json else formatting.format_mutation(result)


async def run_search(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    results = await commands.search(deps, args.file, args.pattern)
    if args.summary:
        if args.json:
            return formatting.json_search_summary(results.summaries)
        return formatting.format_search_summary(results.summaries)
    if args.json:
        return formatting.json_search_matches(results.matches)
    return formatting.format_search_matches(results.matches)


async def run_concat(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    return await commands.concat(deps, args.files, args.shift)


async def run_meta(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    """Dispatch the meta subcommand.

    With ``--list``, ``--aggregate`` or ``--count`` every positional is a file
    or glob. Otherwise the positionals are ``FILE [KEY [VALUE]]``.
    """
    aggregation = args.list or args.aggregate or args.count
    if aggregation:
        if args.set or args.delete:
            raise MalformedRequestError(
                "Cannot use --set/--del with --list, --aggregate or --count"
            )
        if args.list:
            values = await commands.meta_list(deps, args.args, args.list)
            if args.json:
                return formatting.to_json(values)
            return formatting.format_values(deps.codec, values)
        if args.aggregate:
            counts = await commands.meta_aggregate(deps, args.args, args.aggregate)
            if args.json:
                return formatting.json_aggregate(counts)
            return formatting.format_aggregate(counts)
        totals = await commands.meta_count(deps, args.args, args.count)
        return formatting.json_count(totals) if args.json else formatting.format_count(totals)

    if len(args.args) > 3:
        raise MalformedRequestError("Multiple files require --list, --aggregate, or --count flag")

    path, key, value = (list(args.args) + [None, None])[:3]

    if args.h1:
        title = await commands.meta_h1(deps, path)
        return formatting.to_json(title) if args.json else title

    if args.delete:
        if not key:
            raise MalformedRequestError("Usage: md meta <file> --del <key>")
        return await commands.meta_delete(deps, path, key)

    if args.set or value is not None:
        if not key or value is None:
            raise MalformedRequestError("Usage: md meta <file> --set <key> <value>")
        return await commands.meta_set(deps, path, key, value)

    result = await commands.meta_get(deps, path, key)
    return formatting.to_json(result.value) if args.json else result.formatted


async def run_create(deps: SurgeonDependencies, args: argparse.Namespace) -> str:
    entries = [parse_meta_option(entry) for entry in args.meta]
    return await commands.create(
        deps, args.file, args.title, entries, args.force, args.content
    )


HANDLERS = {
    "outline": run_outline,
    "read": run_read,
    "write": run_write,
    "append": run_append,
    "empty": run_empty,
    "remove": run_remove,
    "search": run_search,
    "concat": run_concat,
    "meta": run_meta,
    "create": run_create,
}


async def run(args: argparse.Namespace, deps: SurgeonDependencies | None = None) -> str:
    """Run one parsed command and return its output text."""
    if deps is None:
        deps = SurgeonDependencies(store=FileStore(root_path=get_settings().root_path))
    return await HANDLERS[args.command](deps, args)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``md`` console script.

    Returns:
        Process exit status
    """
    try:
        args = build_parser().parse_args(argv)
        output = asyncio.run(run(args))
    except SurgeonError as e:
        logger.debug("command_failed", extra={"argv": argv, "error": e.code})
        print(e.format(), file=sys.stderr)
        return 1

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
