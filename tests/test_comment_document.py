"""Tests for parsing XML documentation files."""

from pathlib import Path

import pytest

from asmdoc.comment_document import (
    EMPTY_DOCUMENT,
    load_comment_document,
    parse_comment_document,
    split_doc_id,
)
from asmdoc.errors import CommentFormatError, LoadError
from asmdoc.models import EntityKind
from asmdoc.rich_text import CrossReference, Fragment, Text

SAMPLE_XML = """<?xml version="1.0"?>
<doc>
    <assembly>
        <name>Sample</name>
    </assembly>
    <members>
        <member name="T:Demo.Widget">
            <summary>A resizable widget.</summary>
            <remarks>Not thread safe.</remarks>
            <typeparam name="T">Ignored.</typeparam>
            <seealso cref="T:Demo.Gadget"/>
        </member>
        <member name="M:Demo.Widget.Resize(System.Int32)">
            <summary>Resize it.</summary>
            <param name="width">The new width.</param>
            <returns>True if resized.</returns>
        </member>
        <member name="P:Demo.Widget.Name">
            <value>The display name.</value>
        </member>
    </members>
</doc>
"""


def test_parse_records() -> None:
    """Verify members are keyed by kind and bare name."""
    doc = parse_comment_document(SAMPLE_XML)
    assert doc.assembly_name == "Sample"
    assert len(doc) == 3

    widget = doc.lookup(EntityKind.TYPE, "Demo.Widget")
    assert widget is not None
    assert widget.summary == Fragment((Text("A resizable widget."),))
    assert widget.remarks == Fragment((Text("Not thread safe."),))
    assert widget.type_parameter("T") == Fragment((Text("Ignored."),))
    assert widget.see_also == (Fragment((CrossReference("T:Demo.Gadget"),)),)

    resize = doc.lookup(EntityKind.METHOD, "Demo.Widget.Resize(System.Int32)")
    assert resize is not None
    assert resize.parameter("width") == Fragment((Text("The new width."),))
    assert resize.parameter("height") is None
    assert resize.returns == Fragment((Text("True if resized."),))


def test_value_stands_in_for_returns() -> None:
    """Verify <value> is used when <returns> is absent."""
    doc = parse_comment_document(SAMPLE_XML)
    name = doc.lookup(EntityKind.PROPERTY, "Demo.Widget.Name")
    assert name is not None
    assert name.returns == Fragment((Text("The display name."),))
    assert name.summary is None


def test_lookup_misses() -> None:
    """Verify missing members return None."""
    doc = parse_comment_document(SAMPLE_XML)
    assert doc.lookup(EntityKind.FIELD, "Demo.Widget.Count") is None
    assert EMPTY_DOCUMENT.lookup(EntityKind.TYPE, "Demo.Widget") is None


def test_split_doc_id() -> None:
    """Verify documentation IDs split into kind and name."""
    assert split_doc_id("T:Demo.Widget") == (EntityKind.TYPE, "Demo.Widget")
    assert split_doc_id("N:Demo") == (EntityKind.NAMESPACE, "Demo")
    assert split_doc_id("X:Demo") is None
    assert split_doc_id("Demo") is None


def test_duplicate_members_keep_first(caplog: pytest.LogCaptureFixture) -> None:
    """Verify a repeated member is reported and the first one wins."""
    xml = """<doc><assembly><name>Sample</name></assembly><members>
        <member name="T:A"><summary>first</summary></member>
        <member name="T:A"><summary>second</summary></member>
    </members></doc>"""
    doc = parse_comment_document(xml)
    record = doc.lookup(EntityKind.TYPE, "A")
    assert record is not None
    assert record.summary == Fragment((Text("first"),))
    assert "Duplicate documentation" in caplog.text


def test_malformed_documents() -> None:
    """Verify structural problems raise CommentFormatError."""
    with pytest.raises(CommentFormatError):
        parse_comment_document("<doc><assembly>")
    with pytest.raises(CommentFormatError, match="assembly"):
        parse_comment_document("<doc><members/></doc>")
    with pytest.raises(CommentFormatError, match="Unknown member"):
        parse_comment_document(
            '<doc><assembly><name>S</name></assembly>'
            '<members><member name="Q:Nope"/></members></doc>'
        )


def test_load_comment_document(tmp_path: Path) -> None:
    """Verify loading from disk and error paths."""
    path = tmp_path / "Sample.xml"
    path.write_text(SAMPLE_XML, encoding="utf-8")
    assert load_comment_document(path).assembly_name == "Sample"

    with pytest.raises(LoadError):
        load_comment_document(tmp_path / "missing.xml")

    broken = tmp_path / "broken.xml"
    broken.write_text("<doc>", encoding="utf-8")
    with pytest.raises(CommentFormatError) as info:
        load_comment_document(broken)
    assert info.value.path == broken
