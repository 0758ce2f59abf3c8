"""C#-flavoured display names for types and members."""

from enum import Enum, Flag
from types import MappingProxyType
from typing import NamedTuple

from asmdoc.models import (
    ArrayTypeRef,
    ByRefTypeRef,
    EventDefinition,
    FieldDefinition,
    GenericInstanceTypeRef,
    GenericParameter,
    MethodDefinition,
    Namespace,
    NamedTypeRef,
    ParameterDefinition,
    PointerTypeRef,
    PropertyDefinition,
    TypeDefinition,
    TypeRef,
    arity_of,
    strip_arity,
)

CSHARP_KEYWORDS = MappingProxyType(
    {
        "System.Void": "void",
        "System.Byte": "byte",
        "System.SByte": "sbyte",
        "System.Int16": "short",
        "System.UInt16": "ushort",
        "System.Int32": "int",
        "System.UInt32": "uint",
        "System.Int64": "long",
        "System.UInt64": "ulong",
        "System.Single": "float",
        "System.Double": "double",
        "System.Boolean": "bool",
        "System.Char": "char",
        "System.String": "string",
        "System.Decimal": "decimal",
        "System.Object": "object",
        "System.IntPtr": "nint",
        "System.UIntPtr": "nuint",
    }
)


class OperatorFormat(NamedTuple):
    name: str
    is_postfix: bool  # return type trails the operator name


OPERATOR_FORMATS = MappingProxyType(
    {
        "op_Implicit": OperatorFormat("implicit operator", True),
        "op_Explicit": OperatorFormat("explicit operator", True),
        "op_Equality": OperatorFormat("operator ==", False),
        "op_Inequality": OperatorFormat("operator !=", False),
        "op_Addition": OperatorFormat("operator +", False),
        "op_Subtraction": OperatorFormat("operator -", False),
        "op_Multiply": OperatorFormat("operator *", False),
        "op_Division": OperatorFormat("operator /", False),
        "op_Modulus": OperatorFormat("operator %", False),
        "op_LessThan": OperatorFormat("operator <", False),
        "op_GreaterThan": OperatorFormat("operator >", False),
        "op_LessThanOrEqual": OperatorFormat("operator <=", False),
        "op_GreaterThanOrEqual": OperatorFormat("operator >=", False),
        "op_UnaryPlus": OperatorFormat("operator +", False),
        "op_UnaryNegation": OperatorFormat("operator -", False),
    }
)

GLOBAL_NAMESPACE = "global"


class MethodForm(Flag):
    NAME_ONLY = 0
    WITH_PRE_BRACE = 1
    CLOSE_BRACE = 2
    WITH_BRACES = 3
    WITH_RETURN_TYPE = 4


class ParameterModifier(Enum):
    IN = "in"
    OUT = "out"
    REF = "ref"


def parameter_modifier(p: ParameterDefinition) -> ParameterModifier:
    if p.is_in:
        return ParameterModifier.IN
    if p.is_out:
        return ParameterModifier.OUT
    return ParameterModifier.REF


def namespace_name(namespace: str) -> str:
    return namespace or GLOBAL_NAMESPACE


def _named_type_name(
    t: NamedTypeRef, arguments: list[str] | None, qualified: bool
) -> str:
    if arguments is None:
        keyword = CSHARP_KEYWORDS.get(t.full_name)
        if keyword is not None:
            return keyword
        arguments = [gp.name for gp in t.generic_parameters]

    chain = t.chain()
    parts = []
    position = 0
    for level in chain:
        count = arity_of(level.name)
        own = arguments[position : position + count]
        position += count
        text = strip_arity(level.name)
        if own:
            text += f"<{','.join(own)}>"
        parts.append(text)

    name = ".".join(parts)
    if qualified and chain[0].namespace:
        return f"{chain[0].namespace}.{name}"
    return name


def type_name(
    t: TypeRef,
    modifier: ParameterModifier = ParameterModifier.REF,
    *,
    qualified: bool = False,
) -> str:
    """Render a type reference; qualified names carry their namespace."""
    match t:
        case ByRefTypeRef(element=element):
            return f"{modifier.value} {type_name(element, qualified=qualified)}"
        case ArrayTypeRef(element=element):
            commas = "," * (t.rank - 1)
            return f"{type_name(element, qualified=qualified)}[{commas}]"
        case PointerTypeRef(element=element):
            return f"{type_name(element, qualified=qualified)}*"
        case GenericParameter(name=name):
            return name
        case GenericInstanceTypeRef(element=element, arguments=arguments):
            args = [type_name(a, qualified=qualified) for a in arguments]
            return _named_type_name(element, args, qualified)
        case NamedTypeRef():
            return _named_type_name(t, None, qualified)
    raise TypeError(f"Unsupported type reference: {t!r}")


def generic_parameter_list(
    parameters: list[GenericParameter] | tuple[GenericParameter, ...],
    *,
    with_variance: bool = False,
) -> str:
    """Render `<T1,T2>`; variance keywords only appear in declarations."""
    if not parameters:
        return ""
    names = []
    for gp in parameters:
        if with_variance and gp.variance.value:
            names.append(f"{gp.variance.value} {gp.name}")
        else:
            names.append(gp.name)
    return f"<{','.join(names)}>"


def own_generic_parameters(t: TypeDefinition) -> tuple[GenericParameter, ...]:
    """Generic parameters introduced by this type rather than its declaring types."""
    count = arity_of(t.name)
    if not count:
        return ()
    return t.generic_parameters[-count:]


def parameter_name(p: ParameterDefinition) -> str:
    return p.name or f"arg{p.index}"


def is_indexer(p: PropertyDefinition) -> bool:
    getter_params = len(p.getter.parameters) if p.getter is not None else 0
    setter_params = len(p.setter.parameters) if p.setter is not None else 0
    return getter_params >= 1 or setter_params >= 2


def indexer_parameters(p: PropertyDefinition) -> list[ParameterDefinition]:
    if p.getter is not None:
        return list(p.getter.parameters)
    if p.setter is not None:
        return list(p.setter.parameters[:-1])
    return []


def property_name(
    p: PropertyDefinition,
    *,
    include_parameter_names: bool = False,
    qualified: bool = False,
) -> str:
    if not is_indexer(p):
        return p.name
    params = []
    for ip in indexer_parameters(p):
        text = type_name(ip.parameter_type, parameter_modifier(ip), qualified=qualified)
        if include_parameter_names:
            text += f" {parameter_name(ip)}"
        params.append(text)
    return f"this[{','.join(params)}]"


def _braces(form: MethodForm) -> str:
    if form & MethodForm.WITH_BRACES == MethodForm.WITH_BRACES:
        return "()"
    if form & MethodForm.WITH_PRE_BRACE:
        return "("
    return ""


def method_name(
    m: MethodDefinition,
    form: MethodForm = MethodForm.NAME_ONLY,
    *,
    qualified: bool = False,
) -> str:
    braces = _braces(form)
    with_return = bool(form & MethodForm.WITH_RETURN_TYPE)
    if m.is_constructor and m.declaring_type is not None:
        return f"{type_name(m.declaring_type.reference, qualified=qualified)}{braces}"

    op = OPERATOR_FORMATS.get(m.name)
    if op is not None:
        ret = type_name(m.return_type, qualified=qualified)
        if op.is_postfix:
            return f"{op.name} {ret}{braces}"
        if with_return:
            return f"{ret} {op.name}{braces}"
        return f"{op.name}{braces}"

    name = strip_arity(m.name) + generic_parameter_list(m.generic_parameters)
    if with_return:
        return f"{type_name(m.return_type, qualified=qualified)} {name}{braces}"
    return f"{name}{braces}"


def parameter_prefix(m: MethodDefinition, p: ParameterDefinition) -> str:
    if p.index == 0 and m.is_extension:
        return "this "
    if p.is_params_array:
        return "params "
    return ""


def method_parameters(m: MethodDefinition, *, qualified: bool = False) -> str:
    return ",".join(
        f"{parameter_prefix(m, p)}"
        f"{type_name(p.parameter_type, parameter_modifier(p), qualified=qualified)} "
        f"{parameter_name(p)}"
        for p in m.parameters
    )


def signatured_name(m: MethodDefinition, *, qualified: bool = False) -> str:
    """Name with return type, declaring type and parameter list."""
    declaring = (
        type_name(m.declaring_type.reference, qualified=qualified)
        if m.declaring_type is not None
        else ""
    )
    params = method_parameters(m, qualified=qualified)
    if m.is_constructor:
        return f"{declaring}({params})"
    op = OPERATOR_FORMATS.get(m.name)
    if op is not None and op.is_postfix:
        return f"{method_name(m, qualified=qualified)}({params})"
    ret = type_name(m.return_type, qualified=qualified)
    return f"{ret} {declaring}.{method_name(m, qualified=qualified)}({params})"


def member_name(
    member: TypeDefinition
    | FieldDefinition
    | PropertyDefinition
    | EventDefinition
    | MethodDefinition,
    form: MethodForm = MethodForm.NAME_ONLY,
) -> str:
    match member:
        case TypeDefinition():
            return type_name(member.reference)
        case FieldDefinition() | EventDefinition():
            return member.name
        case PropertyDefinition():
            return property_name(member)
        case MethodDefinition():
            return method_name(member, form)
    raise TypeError(f"Unsupported member: {member!r}")


def entity_title(
    entity: Namespace
    | TypeDefinition
    | FieldDefinition
    | PropertyDefinition
    | EventDefinition
    | MethodDefinition,
) -> str:
    """Human-readable section heading, also the source of the anchor slug."""
    match entity:
        case Namespace(name=name):
            return f"{namespace_name(name)} namespace"
        case TypeDefinition():
            return f"{type_name(entity.reference)} {entity.category.value}"
        case FieldDefinition():
            return f"{entity.name} field"
        case PropertyDefinition():
            suffix = "indexer" if is_indexer(entity) else "property"
            return f"{property_name(entity)} {suffix}"
        case EventDefinition():
            return f"{entity.name} event"
        case MethodDefinition():
            if entity.is_constructor:
                return "Constructor"
            extension = " extension" if entity.is_extension else ""
            return f"{method_name(entity)}(){extension} method"
    raise TypeError(f"Unsupported entity: {entity!r}")
