"""Tests for anchor assignment."""

import pytest
from model_builders import sample_assembly

from asmdoc.identity_assigner import (
    AnchorCandidate,
    assign_anchors,
    build_anchor_map,
    scan_candidates,
)


def test_collisions_get_numeric_suffixes() -> None:
    """Verify the first slug stays bare and later ones count up."""
    candidates = [
        AnchorCandidate("A.Foo", "P:A.Foo", "Foo property"),
        AnchorCandidate("B.Foo", "P:B.Foo", "Foo property"),
        AnchorCandidate("A.Bar()", "M:A.Bar", "Bar() method"),
        AnchorCandidate("C.Foo", "P:C.Foo", "Foo property"),
    ]
    anchors = assign_anchors(candidates)
    assert [anchors[c.full_name] for c in candidates] == [
        "foo-property",
        "foo-property-1",
        "bar-method",
        "foo-property-2",
    ]
    assert anchors["P:B.Foo"] == "foo-property-1"


def test_generated_suffix_skips_natural_slugs() -> None:
    """Verify a suffixed anchor never reuses a slug another heading produced."""
    candidates = [
        AnchorCandidate("x1", None, "Foo 1"),
        AnchorCandidate("x2", None, "Foo"),
        AnchorCandidate("x3", None, "Foo"),
    ]
    anchors = assign_anchors(candidates)
    assert [anchors["x1"], anchors["x2"], anchors["x3"]] == ["foo-1", "foo", "foo-2"]
    assert len(set(anchors.values())) == 3


def test_documentation_id_keeps_first_anchor() -> None:
    """Verify a repeated documentation ID does not overwrite the first mapping."""
    candidates = [
        AnchorCandidate("first", "T:Same", "First class"),
        AnchorCandidate("second", "T:Same", "Second class"),
    ]
    anchors = assign_anchors(candidates)
    assert anchors["T:Same"] == "first-class"
    assert anchors["second"] == "second-class"


def test_anchor_map_is_read_only() -> None:
    """Verify the map cannot be mutated once built."""
    anchors = assign_anchors([AnchorCandidate("a", None, "A")])
    with pytest.raises(TypeError):
        anchors["b"] = "b"  # type: ignore[index]


def test_build_anchor_map_for_assembly() -> None:
    """Verify namespaces, types and members get canonical and documentation keys."""
    assembly = sample_assembly()
    anchors = build_anchor_map(assembly)
    assert anchors["N:Demo"] == "demo-namespace"
    assert anchors["Demo.Widget"] == "widget-class"
    assert anchors["T:Demo.Widget"] == "widget-class"
    assert anchors["M:Demo.Widget.Resize(System.Int32)"] == "resize-method"
    assert anchors["Demo.Widget(int size)"] == "constructor"
    assert anchors["P:Demo.Widget.Name"] == "name-property"
    assert "Demo.Hidden" not in anchors


def test_scan_order_matches_document_order() -> None:
    """Verify candidates come namespace first, then type, then members."""
    titles = [c.title for c in scan_candidates(sample_assembly())]
    assert titles == [
        "Demo namespace",
        "Widget class",
        "Count field",
        "Name property",
        "Constructor",
        "Resize() method",
    ]
