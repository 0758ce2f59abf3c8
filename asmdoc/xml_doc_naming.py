"""Documentation-ID strings as written by the C# compiler into XML doc files.

Format reference:
https://learn.microsoft.com/dotnet/csharp/language-reference/xmldoc/#id-strings

- Nested types are joined with `.` and keep their arity suffix (`Outer`1.Inner`).
- Parameter types are fully qualified, generic instances use braces
  (`List{System.Int32}`), type generic parameters are `` `n `` and method
  generic parameters are ``` ``n ```.
- By-ref parameters end in `@`, pointers in `*`, vectors in `[]`, and
  multi-dimensional arrays list `lowerbound:size` per dimension with unknown
  parts omitted (`[0:,0:]`).
- Conversion operators append `~ReturnType`.
"""

from asmdoc.models import (
    ArrayDimension,
    ArrayTypeRef,
    ByRefTypeRef,
    EntityKind,
    EventDefinition,
    FieldDefinition,
    GenericInstanceTypeRef,
    GenericParameter,
    MethodDefinition,
    Namespace,
    NamedTypeRef,
    PointerTypeRef,
    PropertyDefinition,
    TypeDefinition,
    TypeRef,
    arity_of,
    strip_arity,
)
from asmdoc.naming import indexer_parameters, is_indexer

CONVERSION_OPERATORS = frozenset({"op_Implicit", "op_Explicit"})


def _qualify(namespace: str, name: str) -> str:
    return f"{namespace}.{name}" if namespace else name


def type_id(t: NamedTypeRef) -> str:
    """Open type name: Namespace.Outer`1.Inner."""
    chain = t.chain()
    return _qualify(chain[0].namespace, ".".join(level.name for level in chain))


def _dimension(d: ArrayDimension) -> str:
    if d.lower_bound is None and d.size is None:
        return ""
    lower = "" if d.lower_bound is None else str(d.lower_bound)
    size = "" if d.size is None else str(d.size)
    return f"{lower}:{size}"


def parameter_type_id(t: TypeRef) -> str:
    """Encode a type as it appears inside a member's parameter list."""
    match t:
        case ByRefTypeRef(element=element):
            return parameter_type_id(element) + "@"
        case PointerTypeRef(element=element):
            return parameter_type_id(element) + "*"
        case ArrayTypeRef(element=element, dimensions=dimensions):
            if len(dimensions) < 2:
                return parameter_type_id(element) + "[]"
            bounds = ",".join(_dimension(d) for d in dimensions)
            return f"{parameter_type_id(element)}[{bounds}]"
        case GenericParameter(position=position, is_method_parameter=is_method):
            return f"``{position}" if is_method else f"`{position}"
        case GenericInstanceTypeRef(element=element, arguments=arguments):
            args = [parameter_type_id(a) for a in arguments]
            chain = element.chain()
            parts = []
            position = 0
            for level in chain:
                count = arity_of(level.name)
                own = args[position : position + count]
                position += count
                text = strip_arity(level.name)
                if own:
                    text += "{" + ",".join(own) + "}"
                parts.append(text)
            return _qualify(chain[0].namespace, ".".join(parts))
        case NamedTypeRef():
            return type_id(t)
    raise TypeError(f"Unsupported type reference: {t!r}")


def _member_id(name: str) -> str:
    # Explicit implementations (IFoo<T>.Bar) and constructors (.ctor)
    return name.replace(".", "#").replace("<", "{").replace(">", "}").replace(",", "@")


def _declaring_id(
    member: FieldDefinition | PropertyDefinition | EventDefinition | MethodDefinition,
) -> str:
    if member.declaring_type is None:
        return ""
    return type_id(member.declaring_type.reference) + "."


def doc_name(
    entity: Namespace
    | TypeDefinition
    | FieldDefinition
    | PropertyDefinition
    | EventDefinition
    | MethodDefinition,
) -> str:
    """Documentation ID without its `X:` kind prefix."""
    match entity:
        case Namespace(name=name):
            return name
        case TypeDefinition():
            return type_id(entity.reference)
        case FieldDefinition() | EventDefinition():
            return _declaring_id(entity) + _member_id(entity.name)
        case PropertyDefinition():
            name = _declaring_id(entity) + _member_id(entity.name)
            if is_indexer(entity):
                params = ",".join(
                    parameter_type_id(p.parameter_type) for p in indexer_parameters(entity)
                )
                name += f"({params})"
            return name
        case MethodDefinition():
            name = _declaring_id(entity) + _member_id(entity.name)
            if entity.generic_parameters:
                name += f"``{len(entity.generic_parameters)}"
            if entity.parameters:
                params = ",".join(parameter_type_id(p.parameter_type) for p in entity.parameters)
                name += f"({params})"
            if entity.name in CONVERSION_OPERATORS:
                name += "~" + parameter_type_id(entity.return_type)
            return name
    raise TypeError(f"Unsupported entity: {entity!r}")


def doc_id(
    entity: Namespace
    | TypeDefinition
    | FieldDefinition
    | PropertyDefinition
    | EventDefinition
    | MethodDefinition,
) -> str:
    """Full documentation ID, e.g. `M:NS.Type.Method(System.Int32)`."""
    kind: EntityKind = entity.kind
    return f"{kind.value}:{doc_name(entity)}"
