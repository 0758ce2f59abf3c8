"""Tests for heading anchor slugs."""

from asmdoc.anchor_slug import anchor_slug


def test_anchor_slug_basic() -> None:
    """Verify lower-casing and whitespace replacement."""
    assert anchor_slug("Widget class") == "widget-class"
    assert anchor_slug("System.IO namespace") == "system.io-namespace"
    assert anchor_slug("a  \t b") == "a-b"


def test_anchor_slug_drops_punctuation() -> None:
    """Verify characters outside [a-z0-9.-] are removed."""
    assert anchor_slug("Resize() method") == "resize-method"
    assert anchor_slug("List<T> class") == "listt-class"
    assert anchor_slug("this[int] indexer") == "thisint-indexer"
    assert anchor_slug("My_Field field") == "myfield-field"


def test_anchor_slug_fallback() -> None:
    """Verify an empty slug falls back to a fixed identifier."""
    assert anchor_slug("!!!") == "section"
    assert anchor_slug("") == "section"
