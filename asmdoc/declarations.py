"""Reconstructed C# declarations shown in fenced code blocks."""

import struct

from asmdoc.models import (
    OBJECT_TYPE,
    VALUE_TYPE,
    Constant,
    ElementType,
    EventDefinition,
    FieldDefinition,
    MethodDefinition,
    NamedTypeRef,
    PropertyDefinition,
    TypeCategory,
    TypeDefinition,
    named_type_of,
    strip_arity,
)
from asmdoc.naming import (
    MethodForm,
    generic_parameter_list,
    method_name,
    namespace_name,
    own_generic_parameters,
    parameter_modifier,
    parameter_name,
    parameter_prefix,
    property_name,
    type_name,
)
from asmdoc.visibility import (
    visible_adder,
    visible_getter,
    visible_remover,
    visible_setter,
)

INDENT = "    "

INTEGER_SUFFIXES = {ElementType.U4: "U", ElementType.I8: "L", ElementType.U8: "UL"}


def _float32(value: float) -> str:
    """Shortest text that reads back as the same single-precision value."""
    packed = struct.pack("<f", value)
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if struct.pack("<f", float(text)) == packed:
            return text
    return repr(value)


def pretty_constant(constant: Constant | None) -> str:
    """Render a default value as a C# literal."""
    if constant is None or constant.value is None:
        return "null"
    value = constant.value
    match constant.type_code:
        case ElementType.BOOLEAN:
            return "true" if value else "false"
        case ElementType.CHAR:
            return f"'{chr(value) if isinstance(value, int) else value}'"
        case ElementType.R4:
            return f"{_float32(value)}f"
        case ElementType.R8:
            return f"{value!r}d"
        case ElementType.STRING:
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
    return f"{value}{INTEGER_SUFFIXES.get(constant.type_code, '')}"


# -----------------------------
# Modifiers
# -----------------------------


def type_modifiers(t: TypeDefinition, *, storage: bool = True) -> str:
    parts = [t.access.value]
    if storage and t.category in (TypeCategory.CLASS, TypeCategory.INTERFACE):
        if t.is_abstract and t.is_sealed:
            parts.append("static")
        elif t.is_abstract and t.category is not TypeCategory.INTERFACE:
            parts.append("abstract")
        elif t.is_sealed:
            parts.append("sealed")
    parts.append(t.category.value)
    return " ".join(parts)


def field_modifiers(f: FieldDefinition) -> str:
    parts = [f.access.value]
    if f.is_literal:
        parts.append("const")
    else:
        if f.is_static:
            parts.append("static")
        if f.is_init_only:
            parts.append("readonly")
    return " ".join(parts)


def method_modifiers(m: MethodDefinition) -> str:
    parts = [m.access.value]
    if m.is_static:
        parts.append("static")
    in_interface = (
        m.declaring_type is not None
        and m.declaring_type.category is TypeCategory.INTERFACE
    )
    if m.is_abstract:
        if not in_interface:
            parts.append("abstract")
    elif m.is_virtual:
        if not m.is_new_slot:
            parts.append("override")
            if m.is_final:
                parts.append("sealed")
        elif not m.is_final:
            parts.append("virtual")
    return " ".join(parts)


# -----------------------------
# Declarations
# -----------------------------


def declaration_name(t: TypeDefinition) -> str:
    """Type name with variance annotations on its own generic parameters."""
    prefix = ""
    if t.declaring_type is not None:
        prefix = type_name(t.declaring_type.reference) + "."
    own = own_generic_parameters(t)
    return prefix + strip_arity(t.name) + generic_parameter_list(own, with_variance=True)


def signature_body(m: MethodDefinition) -> str:
    """Parameter list continuing an opening parenthesis."""
    if not m.parameters:
        return ")"
    lines = [""]
    last = len(m.parameters) - 1
    for i, p in enumerate(m.parameters):
        typ = type_name(p.parameter_type, parameter_modifier(p))
        default = f" = {pretty_constant(p.default)}" if p.default is not None else ""
        end = "," if i < last else ");"
        lines.append(
            f"{INDENT}{parameter_prefix(m, p)}{typ} {parameter_name(p)}{default}{end}"
        )
    return "\n".join(lines)


def method_declaration(m: MethodDefinition) -> str:
    if m.is_constructor and m.declaring_type is not None:
        head = f"{method_modifiers(m)} {type_name(m.declaring_type.reference)}("
    else:
        form = MethodForm.WITH_PRE_BRACE | MethodForm.WITH_RETURN_TYPE
        head = f"{method_modifiers(m)} {method_name(m, form)}"
    return head + signature_body(m)


def field_declaration(f: FieldDefinition) -> str:
    value = f" = {pretty_constant(f.constant)}" if f.is_literal and f.constant else ""
    return f"{field_modifiers(f)} {type_name(f.field_type)} {f.name}{value};"


def property_declaration(p: PropertyDefinition) -> str:
    lines = [
        f"{type_name(p.property_type)} {property_name(p, include_parameter_names=True)}",
        "{",
    ]
    if (getter := visible_getter(p)) is not None:
        lines.append(f"{INDENT}{getter.access.value} get;")
    if (setter := visible_setter(p)) is not None:
        lines.append(f"{INDENT}{setter.access.value} set;")
    lines.append("}")
    return "\n".join(lines)


def event_declaration(e: EventDefinition) -> str:
    lines = [f"event {type_name(e.event_type)} {e.name}", "{"]
    if (adder := visible_adder(e)) is not None:
        lines.append(f"{INDENT}{adder.access.value} add;")
    if (remover := visible_remover(e)) is not None:
        lines.append(f"{INDENT}{remover.access.value} remove;")
    lines.append("}")
    return "\n".join(lines)


def _shown_base(t: TypeDefinition) -> NamedTypeRef | None:
    if t.base_type is None or t.category is not TypeCategory.CLASS:
        return None
    named = named_type_of(t.base_type)
    if named is not None and named.full_name in (OBJECT_TYPE, VALUE_TYPE):
        return None
    return named


def enum_values(t: TypeDefinition) -> list[FieldDefinition]:
    return [f for f in t.fields if f.is_literal and f.is_static]


def type_declaration(t: TypeDefinition, member_count: int) -> str:
    lines = [f"namespace {namespace_name(t.namespace)};", ""]

    match t.category:
        case TypeCategory.DELEGATE:
            invoke = t.invoke_method()
            ret = type_name(invoke.return_type) if invoke is not None else "void"
            head = f"{type_modifiers(t, storage=False)} {ret} {declaration_name(t)}("
            body = signature_body(invoke) if invoke is not None else ")"
            lines.append(head + body)
        case TypeCategory.ENUM:
            underlying = t.enum_underlying_type
            base = type_name(underlying) if underlying is not None else "int"
            lines.append(f"{type_modifiers(t, storage=False)} {declaration_name(t)} : {base}")
            lines.append("{")
            values = enum_values(t)
            for i, f in enumerate(values):
                end = "," if i < len(values) - 1 else ""
                value = f.constant.value if f.constant is not None else i
                lines.append(f"{INDENT}{f.name} = {value}{end}")
            lines.append("}")
        case _:
            bases = []
            if _shown_base(t) is not None and t.base_type is not None:
                bases.append(type_name(t.base_type))
            bases.extend(type_name(i) for i in t.interfaces)
            colon = " :" if bases else ""
            lines.append(f"{type_modifiers(t)} {declaration_name(t)}{colon}")
            for i, b in enumerate(bases):
                end = "," if i < len(bases) - 1 else ""
                lines.append(f"{INDENT}{b}{end}")
            lines.append("{")
            lines.append(f"{INDENT}// Total members: {member_count}")
            lines.append("}")

    return "\n".join(lines)
