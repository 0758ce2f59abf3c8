"""Predicates deciding which entities are part of the documented surface."""

from asmdoc.models import (
    EDITOR_BROWSABLE_ATTRIBUTE,
    Access,
    CustomAttribute,
    EventDefinition,
    FieldDefinition,
    MethodDefinition,
    PropertyDefinition,
    TypeDefinition,
)

VISIBLE_ACCESS = frozenset({Access.PUBLIC, Access.FAMILY, Access.FAMILY_OR_ASSEMBLY})

# EditorBrowsableState.Never
EDITOR_BROWSABLE_NEVER = 1


def is_browsable(attributes: list[CustomAttribute]) -> bool:
    """False when marked [EditorBrowsable(EditorBrowsableState.Never)]."""
    for a in attributes:
        if a.full_name != EDITOR_BROWSABLE_ATTRIBUTE or not a.arguments:
            continue
        if a.arguments[0] == EDITOR_BROWSABLE_NEVER:
            return False
    return True


def is_type_visible(t: TypeDefinition) -> bool:
    if t.is_nested:
        if t.access not in VISIBLE_ACCESS:
            return False
        if t.declaring_type is not None and not is_type_visible(t.declaring_type):
            return False
    elif t.access is not Access.PUBLIC:
        return False
    return is_browsable(t.attributes)


def is_field_visible(f: FieldDefinition) -> bool:
    return f.access in VISIBLE_ACCESS and is_browsable(f.attributes)


def is_method_visible(m: MethodDefinition) -> bool:
    return m.access in VISIBLE_ACCESS and is_browsable(m.attributes)


def visible_getter(p: PropertyDefinition) -> MethodDefinition | None:
    return p.getter if p.getter is not None and is_method_visible(p.getter) else None


def visible_setter(p: PropertyDefinition) -> MethodDefinition | None:
    return p.setter if p.setter is not None and is_method_visible(p.setter) else None


def visible_adder(e: EventDefinition) -> MethodDefinition | None:
    return e.adder if e.adder is not None and is_method_visible(e.adder) else None


def visible_remover(e: EventDefinition) -> MethodDefinition | None:
    return e.remover if e.remover is not None and is_method_visible(e.remover) else None


def is_property_visible(p: PropertyDefinition) -> bool:
    has_accessor = visible_getter(p) is not None or visible_setter(p) is not None
    return has_accessor and is_browsable(p.attributes)


def is_event_visible(e: EventDefinition) -> bool:
    has_accessor = visible_adder(e) is not None or visible_remover(e) is not None
    return has_accessor and is_browsable(e.attributes)
