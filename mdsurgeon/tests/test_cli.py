"""Tests for the md command-line entry point."""

import io
import json
from pathlib import Path

import pytest

from mdsurgeon.cli import build_parser, main
from mdsurgeon.dependencies import MalformedRequestError
from mdsurgeon.document.parser import parse_document
from mdsurgeon.tests.conftest import SAMPLE_NOTE

IDS = {s.title: s.id for s in parse_document(SAMPLE_NOTE).sections}


def run(capsys: pytest.CaptureFixture, *argv: str) -> tuple[int, str, str]:
    """Run the CLI and return (exit code, stdout, stderr)."""
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


# =============================================================================
# Parser Tests
# =============================================================================


class TestArgumentParser:
    """Tests for argument parsing."""

    def test_requires_command(self) -> None:
        """Test a subcommand is mandatory."""
        with pytest.raises(MalformedRequestError):
            build_parser().parse_args([])

    def test_meta_flags(self) -> None:
        """Test meta collects positionals and flags."""
        args = build_parser().parse_args(["meta", "--aggregate", "tags", "a.md", "b.md"])

        assert args.args == ["a.md", "b.md"]
        assert args.aggregate == "tags"
        assert args.delete is False

    def test_create_repeatable_meta(self) -> None:
        """Test --meta can be given several times."""
        args = build_parser().parse_args(["create", "x.md", "--meta", "a=1", "--meta", "b=2"])
        assert args.meta == ["a=1", "b=2"]


# =============================================================================
# Section Command Tests
# =============================================================================


class TestSectionCommands:
    """Tests for section commands through the CLI."""

    def test_outline(self, cli_root: Path, capsys) -> None:
        """Test outline prints one line per section."""
        code, out, _ = run(capsys, "outline", "note.md")

        assert code == 0
        assert out.splitlines() == [
            f"# Sample ^{IDS['Sample']} L6",
            f"## Tasks ^{IDS['Tasks']} L10",
            f"### Details ^{IDS['Details']} L14",
            f"## Notes ^{IDS['Notes']} L18",
        ]

    def test_outline_count(self, cli_root: Path, capsys) -> None:
        """Test --count in text and JSON."""
        assert run(capsys, "outline", "note.md", "--count")[1] == "4\n"
        assert run(capsys, "outline", "note.md", "--count", "--json")[1] == '{"count":4}\n'

    def test_outline_last(self, cli_root: Path, capsys) -> None:
        """Test --last prints only the final section."""
        _, out, _ = run(capsys, "outline", "note.md", "--last")
        assert out == f"## Notes ^{IDS['Notes']} L18\n"

    def test_outline_last_empty(self, cli_root: Path, capsys) -> None:
        """Test --last on a file without sections prints nothing or null."""
        (cli_root / "plain.md").write_text("no headings")

        assert run(capsys, "outline", "plain.md", "--last")[1] == ""
        assert run(capsys, "outline", "plain.md", "--last", "--json")[1] == "null\n"

    def test_outline_after(self, cli_root: Path, capsys) -> None:
        """Test --after lists nested sections."""
        _, out, _ = run(capsys, "outline", "note.md", "--after", IDS["Tasks"], "--json")
        assert [s["title"] for s in json.loads(out)] == ["Details"]

    def test_read_json(self, cli_root: Path, capsys) -> None:
        """Test read --json returns the section and content."""
        _, out, _ = run(capsys, "read", "note.md", IDS["Tasks"], "--json")
        data = json.loads(out)

        assert data["id"] == IDS["Tasks"]
        assert data["lineStart"] == 10
        assert data["lineEnd"] == 13
        assert data["content"] == "- [ ] first\n- [x] second\n"

    def test_write_from_stdin(self, cli_root: Path, capsys, monkeypatch) -> None:
        """Test write reads content from stdin when omitted."""
        monkeypatch.setattr("sys.stdin", io.StringIO("From stdin"))
        code, out, _ = run(capsys, "write", "note.md", IDS["Notes"])

        assert code == 0
        assert out.startswith(f"updated ^{IDS['Notes']} L18-L20")
        assert (cli_root / "note.md").read_text().endswith("## Notes\n\nFrom stdin\n")

    def test_append_content_only(self, cli_root: Path, capsys) -> None:
        """Test a first positional that is not an id is treated as content."""
        _, out, _ = run(capsys, "append", "note.md", "Footer line")

        assert out.startswith("appended ^- ")
        assert (cli_root / "note.md").read_text().endswith("Footer line")

    def test_append_with_id(self, cli_root: Path, capsys) -> None:
        """Test a valid id selects the target section."""
        _, out, _ = run(capsys, "append", "note.md", IDS["Tasks"], "third task", "--json")
        data = json.loads(out)

        assert data["action"] == "appended"
        assert data["id"] == IDS["Tasks"]

    def test_append_id_with_stdin(self, cli_root: Path, capsys, monkeypatch) -> None:
        """Test content comes from stdin when only an id is given."""
        monkeypatch.setattr("sys.stdin", io.StringIO("piped"))
        run(capsys, "append", "note.md", IDS["Sample"])

        text = (cli_root / "note.md").read_text()
        assert "Intro paragraph.\n\npiped\n" in text

    def test_empty_and_remove(self, cli_root: Path, capsys) -> None:
        """Test empty and remove report their actions."""
        _, out, _ = run(capsys, "empty", "note.md", IDS["Details"])
        assert out.startswith(f"emptied ^{IDS['Details']} L14")

        _, out, _ = run(capsys, "remove", "note.md", IDS["Details"])
        assert out.startswith(f"removed ^{IDS['Details']} L14")

    def test_search_summary(self, cli_root: Path, capsys) -> None:
        """Test search --summary groups by section."""
        _, out, _ = run(capsys, "search", "note.md", "second", "--summary")
        assert out == f"## Tasks ^{IDS['Tasks']} L12 (1 match)\n"

    def test_concat(self, cli_root: Path, capsys) -> None:
        """Test concat prints the joined text."""
        (cli_root / "a.md").write_text("# A")
        (cli_root / "b.md").write_text("# B")
        _, out, _ = run(capsys, "concat", "a.md", "b.md", "--shift", "1")
        assert out == "## A\n\n## B\n"


# =============================================================================
# Error Tests
# =============================================================================


class TestErrors:
    """Tests for failure reporting."""

    def test_invalid_id(self, cli_root: Path, capsys) -> None:
        """Test errors print code and message to stderr and exit 1."""
        code, out, err = run(capsys, "read", "note.md", "nope")

        assert code == 1
        assert out == ""
        assert err == "error: invalid_id\nInvalid section ID: nope\n"

    def test_missing_file(self, cli_root: Path, capsys) -> None:
        """Test missing files report file_not_found."""
        code, _, err = run(capsys, "outline", "missing.md")

        assert code == 1
        assert err.startswith("error: file_not_found\n")

    def test_unknown_section(self, cli_root: Path, capsys) -> None:
        """Test unknown ids report section_not_found."""
        code, _, err = run(capsys, "read", "note.md", "00000000")

        assert code == 1
        assert err == "error: section_not_found\nNo section with id '00000000' in note.md\n"

    def test_missing_positional(self, cli_root: Path, capsys) -> None:
        """Test a missing ID reports parse_error and exits 1."""
        code, out, err = run(capsys, "read", "note.md")

        assert code == 1
        assert out == ""
        assert err.startswith("error: parse_error\nmd read: ")
        assert "required" in err

    def test_unknown_flag(self, cli_root: Path, capsys) -> None:
        """Test unrecognized options report parse_error and exit 1."""
        code, _, err = run(capsys, "outline", "note.md", "--bogus")

        assert code == 1
        assert err.startswith("error: parse_error\n")
        assert "--bogus" in err


# =============================================================================
# Meta and Create Tests
# =============================================================================


class TestMetaCommand:
    """Tests for the meta subcommand."""

    def test_get_key(self, cli_root: Path, capsys) -> None:
        """Test reading a key."""
        assert run(capsys, "meta", "note.md", "title")[1] == "Sample\n"

    def test_get_list_value(self, cli_root: Path, capsys) -> None:
        """Test composite values print as YAML, or JSON with --json."""
        assert run(capsys, "meta", "note.md", "tags")[1] == "- alpha\n- beta\n"
        assert run(capsys, "meta", "note.md", "tags", "--json")[1] == '["alpha","beta"]\n'

    def test_get_whole_block(self, cli_root: Path, capsys) -> None:
        """Test no key prints the raw block body."""
        assert run(capsys, "meta", "note.md")[1] == "title: Sample\ntags: [alpha, beta]\n"

    def test_h1(self, cli_root: Path, capsys) -> None:
        """Test --h1 prints the first H1 title."""
        assert run(capsys, "meta", "note.md", "--h1")[1] == "Sample\n"

    def test_value_implies_set(self, cli_root: Path, capsys) -> None:
        """Test giving a value sets the key."""
        assert run(capsys, "meta", "note.md", "status", "done")[1] == "set status\n"
        assert run(capsys, "meta", "note.md", "status")[1] == "done\n"

    def test_set_flag(self, cli_root: Path, capsys) -> None:
        """Test --set with key and value."""
        assert run(capsys, "meta", "note.md", "--set", "count", "3")[1] == "set count\n"
        assert run(capsys, "meta", "note.md", "count", "--json")[1] == "3\n"

    def test_set_without_value(self, cli_root: Path, capsys) -> None:
        """Test --set without a value is a malformed request."""
        code, _, err = run(capsys, "meta", "note.md", "--set", "status")

        assert code == 1
        assert err.startswith("error: parse_error\n")

    def test_delete(self, cli_root: Path, capsys) -> None:
        """Test --del removes a key and fails for missing ones."""
        assert run(capsys, "meta", "note.md", "--del", "tags")[1] == "deleted tags\n"

        code, _, err = run(capsys, "meta", "note.md", "--del", "tags")
        assert code == 1
        assert err.startswith("error: key_not_found\n")

    def test_aggregate(self, cli_root: Path, capsys) -> None:
        """Test --aggregate across a glob."""
        (cli_root / "other.md").write_text("---\ntags: [beta]\n---\n")
        _, out, _ = run(capsys, "meta", "--aggregate", "tags", "*.md")

        assert out == "2 beta\n1 alpha\n"

    def test_count_json(self, cli_root: Path, capsys) -> None:
        """Test --count --json collapses a single field."""
        assert run(capsys, "meta", "--count", "tags", "note.md", "--json")[1] == "2\n"

    def test_list(self, cli_root: Path, capsys) -> None:
        """Test --list prints one value per line."""
        assert run(capsys, "meta", "--list", "tags,title", "note.md")[1] == "alpha\nbeta\nSample\n"

    def test_list_json_tagged_timestamp(self, cli_root: Path, capsys) -> None:
        """Test explicit !!timestamp values are listed as strings."""
        (cli_root / "dated.md").write_text("---\nday: !!timestamp 2025-01-01\n---\n")
        code, out, _ = run(capsys, "meta", "--list", "day", "dated.md", "--json")

        assert code == 0
        assert out == '["2025-01-01"]\n'
        assert run(capsys, "meta", "--list", "day", "dated.md")[1] == "2025-01-01\n"

    def test_aggregation_with_set_conflicts(self, cli_root: Path, capsys) -> None:
        """Test aggregation flags cannot be combined with --set or --del."""
        code, _, err = run(capsys, "meta", "--count", "tags", "--del", "note.md")

        assert code == 1
        assert err.startswith("error: parse_error\n")

    def test_too_many_files(self, cli_root: Path, capsys) -> None:
        """Test several files without an aggregation flag are rejected."""
        code, _, err = run(capsys, "meta", "a.md", "b.md", "c.md", "d.md")

        assert code == 1
        assert err.startswith("error: parse_error\n")


class TestCreateCommand:
    """Tests for the create subcommand."""

    def test_create(self, cli_root: Path, capsys) -> None:
        """Test creating a file with metadata, title and body."""
        code, out, _ = run(
            capsys, "create", "new.md", "Body", "--title", "Hello", "--meta", "status=draft"
        )

        assert code == 0
        assert out == "created new.md\n"
        assert (cli_root / "new.md").read_text() == (
            "---\nstatus: draft\n---\n\n# Hello\n\nBody"
        )

    def test_create_existing(self, cli_root: Path, capsys) -> None:
        """Test refusing to overwrite without --force."""
        code, _, err = run(capsys, "create", "note.md")

        assert code == 1
        assert err.startswith("error: io_error\n")

    def test_create_bad_meta(self, cli_root: Path, capsys) -> None:
        """Test --meta without '=' is rejected."""
        code, _, err = run(capsys, "create", "new.md", "--meta", "oops")

        assert code == 1
        assert err.startswith("error: parse_error\n")
