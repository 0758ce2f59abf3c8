"""The fixed traversal order shared by anchor assignment and document writing.

Anchors are assigned in one pass and headings are emitted in a second pass;
both must walk entities in exactly this order.
"""

from collections.abc import Iterator

from asmdoc.models import (
    AssemblyDefinition,
    EventDefinition,
    FieldDefinition,
    Member,
    MethodDefinition,
    Namespace,
    PropertyDefinition,
    TypeCategory,
    TypeDefinition,
)
from asmdoc.naming import member_name, signatured_name, type_name
from asmdoc.visibility import (
    is_event_visible,
    is_field_visible,
    is_method_visible,
    is_property_visible,
    is_type_visible,
)


def visible_types(assembly: AssemblyDefinition) -> list[TypeDefinition]:
    return [t for t in assembly.all_types() if is_type_visible(t)]


def namespaces(assembly: AssemblyDefinition) -> list[str]:
    return sorted({t.namespace for t in visible_types(assembly)})


def types_in(assembly: AssemblyDefinition, namespace: str) -> list[TypeDefinition]:
    types = [t for t in visible_types(assembly) if t.namespace == namespace]
    return sorted(types, key=lambda t: type_name(t.reference))


def has_member_sections(t: TypeDefinition) -> bool:
    return t.category not in (TypeCategory.ENUM, TypeCategory.DELEGATE)


def fields_of(t: TypeDefinition) -> list[FieldDefinition]:
    fields = [f for f in t.fields if is_field_visible(f) and not f.is_special_name]
    return sorted(fields, key=lambda f: f.name)


def properties_of(t: TypeDefinition) -> list[PropertyDefinition]:
    props = [p for p in t.properties if is_property_visible(p)]
    return sorted(props, key=member_name)


def events_of(t: TypeDefinition) -> list[EventDefinition]:
    events = [e for e in t.events if is_event_visible(e)]
    return sorted(events, key=lambda e: e.name)


def accessor_methods(t: TypeDefinition) -> set[MethodDefinition]:
    """Property and event accessors, which are shown with their owner."""
    out: set[MethodDefinition] = set()
    for p in t.properties:
        out.update(m for m in (p.getter, p.setter) if m is not None)
    for e in t.events:
        out.update(m for m in (e.adder, e.remover) if m is not None)
    return out


def methods_of(t: TypeDefinition) -> list[MethodDefinition]:
    accessors = accessor_methods(t)
    methods = [m for m in t.methods if is_method_visible(m) and m not in accessors]
    return sorted(methods, key=lambda m: (not m.is_constructor, signatured_name(m)))


def members_of(t: TypeDefinition) -> list[Member]:
    """Members that get their own section, in section order."""
    if not has_member_sections(t):
        return []
    members: list[Member] = []
    members.extend(fields_of(t))
    members.extend(properties_of(t))
    members.extend(events_of(t))
    members.extend(methods_of(t))
    return members


def walk(
    assembly: AssemblyDefinition,
) -> Iterator[Namespace | TypeDefinition | Member]:
    """Yield every documented entity in document order."""
    for ns in namespaces(assembly):
        yield Namespace(ns)
        for t in types_in(assembly, ns):
            yield t
            yield from members_of(t)
