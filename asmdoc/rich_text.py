"""Structured prose fragments parsed from XML documentation comments."""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Paragraph:
    children: tuple["Node", ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    text: str


@dataclass(frozen=True)
class InlineCode:
    text: str


@dataclass(frozen=True)
class CrossReference:
    """A `<see cref>`; target is a documentation ID such as `T:NS.Type`."""

    target: str | None
    text: str = ""


@dataclass(frozen=True)
class Element:
    """Markup without special meaning, reproduced literally."""

    name: str
    attributes: tuple[tuple[str, str], ...] = ()
    children: tuple["Node", ...] = ()


Node = Union[Text, Paragraph, CodeBlock, InlineCode, CrossReference, Element]


@dataclass(frozen=True)
class Fragment:
    children: tuple[Node, ...] = ()


def _inner_text(element: ET.Element) -> str:
    return "".join(element.itertext())


def _convert_children(element: ET.Element) -> Iterator[Node]:
    if element.text:
        yield Text(element.text)
    for child in element:
        yield _convert(child)
        if child.tail:
            yield Text(child.tail)


def _convert(element: ET.Element) -> Node:
    match element.tag:
        case "para":
            return Paragraph(tuple(_convert_children(element)))
        case "code":
            return CodeBlock(_inner_text(element))
        case "c":
            return InlineCode(_inner_text(element))
        case "paramref" | "typeparamref":
            return InlineCode(element.get("name", ""))
        case "see" | "seealso":
            if langword := element.get("langword"):
                return InlineCode(langword)
            if href := element.get("href"):
                return Element("a", (("href", href),), tuple(_convert_children(element)))
            cref = (element.get("cref") or "").strip()
            return CrossReference(cref or None, _inner_text(element))
    return Element(
        str(element.tag),
        tuple(element.attrib.items()),
        tuple(_convert_children(element)),
    )


def fragment_from_element(element: ET.Element) -> Fragment:
    """Convert the content of a documentation element into a fragment."""
    return Fragment(tuple(_convert_children(element)))


def parse_fragment(xml: str) -> Fragment:
    """Parse `<tag>...</tag>` markup into a fragment of its content."""
    return fragment_from_element(ET.fromstring(xml))


def fragment_of(element: ET.Element) -> Fragment:
    """Wrap a single element, itself included, as a fragment."""
    return Fragment((_convert(element),))
