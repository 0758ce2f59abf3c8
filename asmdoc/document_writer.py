"""Emit the Markdown document for one assembly."""

import logging
from collections.abc import Mapping, Sequence
from typing import TextIO

from asmdoc.comment_document import CommentDocument, DocumentationRecord
from asmdoc.declarations import (
    event_declaration,
    field_declaration,
    method_declaration,
    property_declaration,
    type_declaration,
)
from asmdoc.full_naming import full_name
from asmdoc.md_codeblock import md_codeblock
from asmdoc.md_escape import md_escape
from asmdoc.md_heading import md_heading
from asmdoc.md_link import md_link
from asmdoc.md_table import md_table
from asmdoc.models import (
    AssemblyDefinition,
    EventDefinition,
    FieldDefinition,
    GenericParameter,
    Member,
    MethodDefinition,
    Namespace,
    NamedTypeRef,
    ParameterDefinition,
    PropertyDefinition,
    TypeCategory,
    TypeDefinition,
    TypeRef,
)
from asmdoc.naming import (
    MethodForm,
    entity_title,
    indexer_parameters,
    is_indexer,
    member_name,
    namespace_name,
    own_generic_parameters,
    parameter_name,
    type_name,
)
from asmdoc.rich_text import Fragment
from asmdoc.rich_text_renderer import RichTextRenderer
from asmdoc.traversal import members_of, namespaces, types_in
from asmdoc.xml_doc_naming import doc_name

logger = logging.getLogger(__name__)

VOID_TYPE = "System.Void"
EMPTY_CELL = " "


class DocumentWriter:
    """Render an assembly, its comments and its anchors as one Markdown document."""

    def __init__(
        self,
        anchors: Mapping[str, str],
        comments: CommentDocument,
        *,
        initial_level: int = 1,
        metadata_attributes: Sequence[str] = (),
    ) -> None:
        self.anchors = anchors
        self.comments = comments
        self.initial_level = initial_level
        self.metadata_attributes = list(metadata_attributes)
        self.renderer = RichTextRenderer(anchors)

    # -----------------------------
    # Helpers
    # -----------------------------

    def _record(
        self, entity: TypeDefinition | Member
    ) -> DocumentationRecord | None:
        return self.comments.lookup(entity.kind, doc_name(entity))

    def _block(self, fragment: Fragment | None) -> str:
        if fragment is None:
            return ""
        return self.renderer.render(fragment, False).strip()

    def _inline(self, fragment: Fragment | None) -> str:
        if fragment is None:
            return EMPTY_CELL
        return self.renderer.render(fragment, True).strip() or EMPTY_CELL

    def _link(self, display: str, entity: Namespace | TypeDefinition | Member) -> str:
        anchor = self.anchors.get(full_name(entity))
        if anchor is None:
            return f"`{display}`"
        return md_link(display, anchor)

    def _heading(self, offset: int, entity: Namespace | TypeDefinition | Member) -> str:
        return md_heading(self.initial_level + offset, md_escape(entity_title(entity)))

    def _type_parameter_table(
        self,
        parameters: Sequence[GenericParameter],
        record: DocumentationRecord | None,
    ) -> str:
        rows = []
        for gp in parameters:
            desc = record.type_parameter(gp.name) if record is not None else None
            rows.append([f"`{gp.name}`", self._inline(desc)])
        return md_table(["Type parameter", "Description"], rows)

    def _parameter_table(
        self,
        parameters: Sequence[ParameterDefinition],
        record: DocumentationRecord | None,
    ) -> str:
        rows = []
        for p in parameters:
            name = parameter_name(p)
            desc = record.parameter(name) if record is not None else None
            rows.append([f"`{name}`", self._inline(desc)])
        return md_table(["Parameter", "Description"], rows)

    def _return_table(
        self, return_type: TypeRef, record: DocumentationRecord | None
    ) -> str:
        if isinstance(return_type, NamedTypeRef) and return_type.full_name == VOID_TYPE:
            return ""
        desc = record.returns if record is not None else None
        return md_table(
            ["Return value", "Description"],
            [[f"`{type_name(return_type)}`", self._inline(desc)]],
        )

    def _prose_tail(self, record: DocumentationRecord | None) -> list[str]:
        """Remarks, example and see-also blocks."""
        if record is None:
            return []
        blocks = [self._block(record.remarks), self._block(record.example)]
        if record.see_also:
            items = [f"* {self._inline(f)}" for f in record.see_also]
            blocks.append("See also:\n\n" + "\n".join(items))
        return blocks

    # -----------------------------
    # Sections
    # -----------------------------

    def render_member(self, member: Member) -> str:
        record = self._record(member)
        blocks = [self._heading(3, member)]
        if record is not None:
            blocks.append(self._block(record.summary))

        match member:
            case FieldDefinition():
                blocks.append(md_codeblock(field_declaration(member)))
            case PropertyDefinition():
                blocks.append(md_codeblock(property_declaration(member)))
                if is_indexer(member):
                    blocks.append(self._parameter_table(indexer_parameters(member), record))
                if record is not None and record.returns is not None:
                    blocks.append(self._return_table(member.property_type, record))
            case EventDefinition():
                blocks.append(md_codeblock(event_declaration(member)))
            case MethodDefinition():
                blocks.append(md_codeblock(method_declaration(member)))
                blocks.append(self._type_parameter_table(member.generic_parameters, record))
                blocks.append(self._parameter_table(member.parameters, record))
                if not member.is_constructor:
                    blocks.append(self._return_table(member.return_type, record))

        blocks.extend(self._prose_tail(record))
        return "\n\n".join(b for b in blocks if b)

    def _member_index(self, members: Sequence[Member]) -> str:
        rows = []
        for m in members:
            record = self._record(m)
            summary = record.summary if record is not None else None
            display = member_name(m, MethodForm.WITH_BRACES)
            rows.append([self._link(display, m), self._inline(summary)])
        return md_table(["Member", "Summary"], rows)

    def render_type(self, t: TypeDefinition) -> str:
        record = self._record(t)
        members = members_of(t)
        blocks = [self._heading(2, t)]
        if record is not None:
            blocks.append(self._block(record.summary))

        blocks.append(md_codeblock(type_declaration(t, len(members))))
        blocks.append(self._type_parameter_table(own_generic_parameters(t), record))

        if t.category is TypeCategory.DELEGATE and (invoke := t.invoke_method()):
            blocks.append(self._parameter_table(invoke.parameters, record))
            blocks.append(self._return_table(invoke.return_type, record))

        blocks.append(self._member_index(members))
        blocks.extend(self._prose_tail(record))
        blocks.extend(self.render_member(m) for m in members)
        return "\n\n".join(b for b in blocks if b)

    def _type_index(self, types: Sequence[TypeDefinition]) -> str:
        rows = []
        for t in types:
            seen: dict[str, Member] = {}
            for m in members_of(t):
                # Overloads share one entry.
                seen.setdefault(member_name(m, MethodForm.WITH_BRACES), m)
            if not seen:
                continue
            links = [self._link(name, seen[name]) for name in sorted(seen)]
            rows.append([self._link(type_name(t.reference), t), ",".join(links)])
        return md_table(["Type", "Members"], rows)

    def render_namespace(self, assembly: AssemblyDefinition, namespace: str) -> str:
        types = types_in(assembly, namespace)
        blocks = [self._heading(1, Namespace(namespace)), self._type_index(types)]
        blocks.extend(self.render_type(t) for t in types)
        return "\n\n".join(b for b in blocks if b)

    def _metadata_table(self, assembly: AssemblyDefinition) -> str:
        rows = [["Name", f"`{assembly.name}`"], ["Version", f"`{assembly.version}`"]]
        for wanted in self.metadata_attributes:
            attr = next((a for a in assembly.attributes if a.full_name == wanted), None)
            if attr is None or not attr.arguments:
                continue
            label = attr.attribute_type.name.removesuffix("Attribute")
            if label.startswith("Assembly") and len(label) > len("Assembly"):
                label = label[len("Assembly") :]
            rows.append([label, md_escape(str(attr.arguments[0]))])
        return md_table(["Metadata", "Value"], rows)

    def _namespace_index(self, assembly: AssemblyDefinition) -> str:
        rows = []
        for ns in namespaces(assembly):
            links = [self._link(type_name(t.reference), t) for t in types_in(assembly, ns)]
            rows.append([self._link(namespace_name(ns), Namespace(ns)), ",".join(links)])
        return md_table(["Namespace", "Types"], rows)

    def render(self, assembly: AssemblyDefinition) -> str:
        """Render the whole document."""
        blocks = [
            md_heading(self.initial_level, f"{md_escape(assembly.name)} assembly"),
            self._metadata_table(assembly),
            self._namespace_index(assembly),
        ]
        blocks.extend(self.render_namespace(assembly, ns) for ns in namespaces(assembly))
        return "\n\n".join(b for b in blocks if b).rstrip() + "\n"

    def write(self, assembly: AssemblyDefinition, out: TextIO) -> None:
        text = self.render(assembly)
        out.write(text)
        logger.debug("Wrote %d characters for %s", len(text), assembly.name)
