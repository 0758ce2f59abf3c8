"""Render documentation fragments as Markdown."""

from collections.abc import Iterable, Mapping

from asmdoc.md_codeblock import CODE_LANGUAGE
from asmdoc.md_escape import md_escape
from asmdoc.md_link import md_link
from asmdoc.rich_text import (
    CodeBlock,
    CrossReference,
    Element,
    Fragment,
    InlineCode,
    Node,
    Paragraph,
    Text,
)


def dedent_code_lines(lines: list[str]) -> list[str]:
    """Remove the common indentation of non-blank lines and surrounding blank lines."""
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    width = min(indents, default=0)
    out = [line[width:].rstrip() for line in lines]
    while out and not out[0]:
        out.pop(0)
    while out and not out[-1]:
        out.pop()
    return out


def _split_lines(text: str) -> list[str]:
    return text.replace("\r", "").split("\n")


def _join_collapsed(text: str) -> str:
    return " ".join(line.strip() for line in _split_lines(text)).strip()


def strip_kind_prefix(target: str) -> str:
    """`T:NS.Type` -> `NS.Type`."""
    if len(target) >= 2 and target[1] == ":":
        return target[2:]
    return target


class RichTextRenderer:
    """Turns fragments into Markdown, linking references through an anchor map."""

    def __init__(self, anchors: Mapping[str, str]) -> None:
        self.anchors = anchors

    def render(self, fragment: Fragment, is_inline: bool) -> str:
        out: list[str] = []
        self._traverse(out, fragment.children, is_inline, True)
        return "".join(out)

    def _traverse(
        self, out: list[str], nodes: Iterable[Node], is_inline: bool, trim: bool
    ) -> None:
        for node in nodes:
            match node:
                case Paragraph(children=children):
                    out.append(" " if is_inline else "\n\n")
                    self._traverse(out, children, is_inline, True)
                case CodeBlock(text=text):
                    out.append(f"\n```{CODE_LANGUAGE}\n")
                    out.extend(f"{line}\n" for line in dedent_code_lines(_split_lines(text)))
                    out.append("```\n")
                case InlineCode(text=text):
                    code = _join_collapsed(text)
                    if code:
                        out.append(f" `{code}` ")
                case CrossReference():
                    out.append(self._render_reference(node))
                case Element(name=name, attributes=attributes, children=children):
                    attrs = "".join(f' {k}="{md_escape(v)}"' for k, v in attributes)
                    if children:
                        out.append(f"<{name}{attrs}>")
                        self._traverse(out, children, False, False)
                        out.append(f"</{name}>")
                    else:
                        out.append(f"<{name}{attrs} />")
                case Text(value=value):
                    out.append(self._render_text(md_escape(value), is_inline, trim))

    def _render_reference(self, node: CrossReference) -> str:
        display = _join_collapsed(node.text)
        target = node.target
        anchor = self.anchors.get(target) if target else None
        if anchor is not None and target is not None:
            return f" {md_link(display or strip_kind_prefix(target), anchor)} "
        plain = display or (strip_kind_prefix(target) if target else "")
        return f" {md_escape(plain)} "

    @staticmethod
    def _render_text(text: str, is_inline: bool, trim: bool) -> str:
        if is_inline:
            return text.replace("\r", "").replace("\n", "").strip()
        lines = [line.strip() for line in text.splitlines()]
        if trim:
            lines = [line for line in lines if line]
        return "\n".join(lines)
