"""Tests for configuration loading and merging."""

from pathlib import Path

import pytest
import yaml

from asmdoc.deep_merge import deep_merge
from asmdoc.errors import LoadError
from asmdoc.load_config import DEFAULT_CONFIG, load_config


def test_deep_merge_scalars() -> None:
    """Verify scalar replacement in deep merge."""
    merged = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
    assert merged == {"a": 1, "b": 3, "c": 4}


def test_deep_merge_nested() -> None:
    """Verify recursive merging of dictionaries."""
    merged = deep_merge({"nested": {"x": 1, "y": 2}}, {"nested": {"y": 3, "z": 4}})
    assert merged == {"nested": {"x": 1, "y": 3, "z": 4}}


def test_deep_merge_arrays_replace() -> None:
    """Verify that arrays are replaced by default."""
    merged = deep_merge({"metadata_attributes": ["A", "B"]}, {"metadata_attributes": ["C"]})
    assert merged == {"metadata_attributes": ["C"]}


def test_deep_merge_search_dirs_additive() -> None:
    """Verify that search_dirs merge additively and keep their precedence order."""
    merged = deep_merge({"search_dirs": ["lib", "ref"]}, {"search_dirs": ["ref", "deps"]})
    assert merged["search_dirs"] == ["lib", "ref", "deps"]


def test_load_config_defaults() -> None:
    """Verify that default config is loaded when no path is provided."""
    config = load_config(None)
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG
    assert config["output"]["initial_level"] == 1
    assert "System.Reflection.AssemblyTitleAttribute" in config["metadata_attributes"]


def test_load_config_with_file(tmp_path: Path) -> None:
    """Verify that user config correctly overrides defaults."""
    config_file = tmp_path / "asmdoc.yml"
    config_data = {"output": {"initial_level": 2}, "search_dirs": ["refs"]}
    config_file.write_text(yaml.dump(config_data))

    loaded = load_config(str(config_file))
    assert loaded["output"]["initial_level"] == 2
    assert loaded["search_dirs"] == ["refs"]
    assert loaded["metadata_attributes"] == DEFAULT_CONFIG["metadata_attributes"]


def test_load_config_missing_file(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Verify a missing file falls back to defaults with a warning."""
    loaded = load_config(tmp_path / "absent.yml")
    assert loaded == DEFAULT_CONFIG
    assert "not found" in caplog.text


def test_load_config_empty_file(tmp_path: Path) -> None:
    """Verify an empty file behaves like no overrides."""
    config_file = tmp_path / "empty.yml"
    config_file.write_text("")
    assert load_config(config_file) == DEFAULT_CONFIG


def test_load_config_rejects_bad_files(tmp_path: Path) -> None:
    """Verify invalid YAML and non-mapping documents raise LoadError."""
    broken = tmp_path / "broken.yml"
    broken.write_text("output: [unclosed\n")
    with pytest.raises(LoadError):
        load_config(broken)

    listing = tmp_path / "list.yml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(LoadError, match="mapping"):
        load_config(listing)
