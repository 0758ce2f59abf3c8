"""Tests for the command-line entry point."""

import sys
from pathlib import Path
from unittest.mock import patch

from model_builders import sample_assembly

from asmdoc.cli import build_parser, main


def test_parser_defaults() -> None:
    """Verify optional flags default to None."""
    args = build_parser().parse_args(["Sample.dll"])
    assert args.assembly == Path("Sample.dll")
    assert args.xml is None
    assert args.output is None
    assert args.search_dir is None
    assert args.level is None
    assert not args.verbose


def test_parser_repeatable_search_dir() -> None:
    """Verify --search-dir may be given more than once."""
    args = build_parser().parse_args(
        ["Sample.dll", "--search-dir", "a", "--search-dir", "b", "-o", "out.md", "--level", "2"]
    )
    assert args.search_dir == [Path("a"), Path("b")]
    assert args.output == Path("out.md")
    assert args.level == 2


def test_main_integration(tmp_path: Path) -> None:
    """Test the main function with mocked arguments."""
    dll = tmp_path / "Sample.dll"
    dll.write_bytes(b"MZ")
    out = tmp_path / "out" / "Sample.md"

    test_args = ["asmdoc", str(dll), "--output", str(out)]
    with (
        patch.object(sys, "argv", test_args),
        patch("asmdoc.run_generation.load_assembly", return_value=sample_assembly()),
    ):
        ret = main()
        assert ret == 0

    content = out.read_text(encoding="utf-8")
    assert "# Sample assembly" in content
    assert "### Widget class" in content


def test_main_rejects_bad_level(tmp_path: Path) -> None:
    """Verify a heading level below one is a usage error."""
    assert main([str(tmp_path / "Sample.dll"), "--level", "0"]) == 2


def test_main_reports_unreadable_assembly(tmp_path: Path) -> None:
    """Verify a file that is not an assembly fails with exit code 1."""
    junk = tmp_path / "Junk.dll"
    junk.write_bytes(b"not a portable executable")
    assert main([str(junk)]) == 1
    assert not junk.with_suffix(".md").exists()


def test_main_reports_missing_assembly(tmp_path: Path) -> None:
    """Verify a missing input file fails with exit code 1."""
    assert main([str(tmp_path / "Missing.dll")]) == 1


def test_main_reports_unwritable_output(tmp_path: Path) -> None:
    """Verify an output path that cannot be written fails with exit code 1."""
    dll = tmp_path / "Sample.dll"
    dll.write_bytes(b"MZ")
    blocker = tmp_path / "blocker"
    blocker.write_text("x")

    with patch("asmdoc.run_generation.load_assembly", return_value=sample_assembly()):
        assert main([str(dll), "--output", str(blocker / "Sample.md")]) == 1
