"""Tests for locating referenced assemblies."""

from pathlib import Path

import pytest

from asmdoc.assembly_resolver import AssemblyResolver


def test_locate_searches_directories_in_order(tmp_path: Path) -> None:
    """Verify the first directory holding the assembly wins."""
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (second / "Lib.dll").write_bytes(b"MZ")
    (second / "Tool.exe").write_bytes(b"MZ")

    resolver = AssemblyResolver([first, second])
    assert resolver.locate("Lib") == (second / "Lib.dll").resolve()
    assert resolver.locate("Tool") == (second / "Tool.exe").resolve()
    assert resolver.locate("Missing") is None


def test_search_dirs_are_deduplicated(tmp_path: Path) -> None:
    """Verify the same directory given twice is searched once."""
    resolver = AssemblyResolver([tmp_path, str(tmp_path), tmp_path / "."])
    assert resolver.search_dirs == [tmp_path.resolve()]


def test_unreadable_reference_has_no_enums(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verify a broken dependency is reported and treated as empty."""
    (tmp_path / "Lib.dll").write_bytes(b"not a portable executable")
    resolver = AssemblyResolver([tmp_path])
    assert resolver.enum_underlying_type("Lib", "Lib.Color") is None
    assert "Cannot load referenced assembly" in caplog.text
    # cached: the file is not opened again
    caplog.clear()
    assert resolver.enum_underlying_type("Lib", "Lib.Other") is None
    assert caplog.text == ""


def test_unknown_reference_has_no_enums(tmp_path: Path) -> None:
    """Verify an assembly that cannot be found yields no answer."""
    assert AssemblyResolver([tmp_path]).enum_underlying_type("Nope", "Nope.Kind") is None
