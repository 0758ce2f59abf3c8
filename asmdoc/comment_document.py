"""Parsing of compiler-generated XML documentation files."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from asmdoc.errors import CommentFormatError, LoadError
from asmdoc.models import EntityKind
from asmdoc.rich_text import Fragment, fragment_from_element, fragment_of

logger = logging.getLogger(__name__)

RecordKey = tuple[EntityKind, str]


@dataclass(frozen=True)
class DocumentationRecord:
    """Documentation attached to one `<member>` element."""

    kind: EntityKind
    name: str
    summary: Fragment | None = None
    remarks: Fragment | None = None
    example: Fragment | None = None
    returns: Fragment | None = None
    see_also: tuple[Fragment, ...] = ()
    parameters: tuple[tuple[str, Fragment], ...] = ()
    type_parameters: tuple[tuple[str, Fragment], ...] = ()

    def parameter(self, name: str) -> Fragment | None:
        return next((f for n, f in self.parameters if n == name), None)

    def type_parameter(self, name: str) -> Fragment | None:
        return next((f for n, f in self.type_parameters if n == name), None)


@dataclass(frozen=True)
class CommentDocument:
    assembly_name: str | None
    records: Mapping[RecordKey, DocumentationRecord] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def lookup(self, kind: EntityKind, name: str) -> DocumentationRecord | None:
        return self.records.get((kind, name))

    def __len__(self) -> int:
        return len(self.records)


EMPTY_DOCUMENT = CommentDocument(None)


def split_doc_id(doc_id: str) -> RecordKey | None:
    if len(doc_id) < 2 or doc_id[1] != ":":
        return None
    kind = EntityKind.from_prefix(doc_id[0])
    if kind is None:
        return None
    return kind, doc_id[2:]


def _named_fragments(member: ET.Element, tag: str) -> tuple[tuple[str, Fragment], ...]:
    out = []
    for el in member.findall(tag):
        name = el.get("name")
        if name:
            out.append((name, fragment_from_element(el)))
    return tuple(out)


def _optional_fragment(member: ET.Element, tag: str) -> Fragment | None:
    el = member.find(tag)
    return fragment_from_element(el) if el is not None else None


def _see_also(member: ET.Element) -> tuple[Fragment, ...]:
    return tuple(fragment_of(el) for el in member.findall("seealso"))


def parse_member(member: ET.Element) -> DocumentationRecord:
    name = member.get("name", "")
    key = split_doc_id(name)
    if key is None:
        raise CommentFormatError(f"Unknown member name format: {name!r}")
    kind, bare = key

    returns = _optional_fragment(member, "returns")
    if returns is None:
        returns = _optional_fragment(member, "value")

    return DocumentationRecord(
        kind=kind,
        name=bare,
        summary=_optional_fragment(member, "summary"),
        remarks=_optional_fragment(member, "remarks"),
        example=_optional_fragment(member, "example"),
        returns=returns,
        see_also=_see_also(member),
        parameters=_named_fragments(member, "param"),
        type_parameters=_named_fragments(member, "typeparam"),
    )


def parse_comment_document(data: str | bytes) -> CommentDocument:
    """Parse the content of an XML documentation file."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise CommentFormatError(f"Malformed XML: {e}") from e

    assembly_name = root.findtext("assembly/name")
    if not assembly_name:
        raise CommentFormatError("Missing <assembly>/<name> element")
    assembly_name = assembly_name.strip()

    records: dict[RecordKey, DocumentationRecord] = {}
    for member in root.iterfind("members/member"):
        record = parse_member(member)
        key = (record.kind, record.name)
        if key in records:
            logger.warning("Duplicate documentation for %s:%s", record.kind.value, record.name)
            continue
        records[key] = record

    return CommentDocument(assembly_name, MappingProxyType(records))


def load_comment_document(path: Path) -> CommentDocument:
    """Read and parse an XML documentation file."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"Cannot read documentation file: {e.strerror}", path) from e
    try:
        doc = parse_comment_document(data)
    except CommentFormatError as e:
        raise CommentFormatError(e.message, path) from e
    logger.info("Loaded %d documentation records from %s", len(doc), path)
    return doc
