"""In-memory model of an assembly's metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar, Union

ARITY_RE = re.compile(r"`(\d+)$")

OBJECT_TYPE = "System.Object"
MULTICAST_DELEGATE_TYPE = "System.MulticastDelegate"
ENUM_TYPE = "System.Enum"
VALUE_TYPE = "System.ValueType"
EXTENSION_ATTRIBUTE = "System.Runtime.CompilerServices.ExtensionAttribute"
PARAM_ARRAY_ATTRIBUTE = "System.ParamArrayAttribute"
EDITOR_BROWSABLE_ATTRIBUTE = "System.ComponentModel.EditorBrowsableAttribute"


def strip_arity(name: str) -> str:
    """Drop the generic arity suffix: List`1 -> List."""
    index = name.find("`")
    return name[:index] if index >= 0 else name


def arity_of(name: str) -> int:
    """Return the generic arity encoded in a metadata name."""
    m = ARITY_RE.search(name)
    return int(m.group(1)) if m else 0


class EntityKind(Enum):
    """Documentable entity kinds; values are documentation-ID prefixes."""

    NAMESPACE = "N"
    TYPE = "T"
    FIELD = "F"
    PROPERTY = "P"
    EVENT = "E"
    METHOD = "M"

    @classmethod
    def from_prefix(cls, prefix: str) -> EntityKind | None:
        for kind in cls:
            if kind.value == prefix:
                return kind
        return None


class Access(Enum):
    """Member accessibility, valued by its C# keyword."""

    PRIVATE = "private"
    FAMILY_AND_ASSEMBLY = "private protected"
    ASSEMBLY = "internal"
    FAMILY = "protected"
    FAMILY_OR_ASSEMBLY = "protected internal"
    PUBLIC = "public"


class TypeCategory(Enum):
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    DELEGATE = "delegate"


class Variance(Enum):
    NONE = ""
    COVARIANT = "out"
    CONTRAVARIANT = "in"


class ElementType(IntEnum):
    """ECMA-335 II.23.1.16 element types."""

    END = 0x00
    VOID = 0x01
    BOOLEAN = 0x02
    CHAR = 0x03
    I1 = 0x04
    U1 = 0x05
    I2 = 0x06
    U2 = 0x07
    I4 = 0x08
    U4 = 0x09
    I8 = 0x0A
    U8 = 0x0B
    R4 = 0x0C
    R8 = 0x0D
    STRING = 0x0E
    PTR = 0x0F
    BYREF = 0x10
    VALUETYPE = 0x11
    CLASS = 0x12
    VAR = 0x13
    ARRAY = 0x14
    GENERICINST = 0x15
    TYPEDBYREF = 0x16
    I = 0x18
    U = 0x19
    FNPTR = 0x1B
    OBJECT = 0x1C
    SZARRAY = 0x1D
    MVAR = 0x1E
    CMOD_REQD = 0x1F
    CMOD_OPT = 0x20
    SENTINEL = 0x41
    PINNED = 0x45
    # custom attribute blobs only
    SYSTEM_TYPE = 0x50
    BOXED = 0x51
    ENUM = 0x55


# -----------------------------
# Type references
# -----------------------------


@dataclass(frozen=True)
class GenericParameter:
    """A generic parameter, owned by a type or by a method."""

    name: str
    position: int
    is_method_parameter: bool = False
    variance: Variance = Variance.NONE


@dataclass(frozen=True)
class NamedTypeRef:
    """A reference to a named (possibly nested, possibly open generic) type."""

    namespace: str
    name: str  # raw metadata name, arity suffix included
    declaring_type: NamedTypeRef | None = None
    generic_parameters: tuple[GenericParameter, ...] = ()
    is_value_type: bool = False

    @property
    def outermost(self) -> NamedTypeRef:
        t = self
        while t.declaring_type is not None:
            t = t.declaring_type
        return t

    @property
    def full_name(self) -> str:
        """Metadata-style full name: Namespace.Outer`1+Inner."""
        if self.declaring_type is not None:
            return f"{self.declaring_type.full_name}+{self.name}"
        if self.namespace:
            return f"{self.namespace}.{self.name}"
        return self.name

    def chain(self) -> list[NamedTypeRef]:
        """Return the declaring chain, outermost first."""
        out: list[NamedTypeRef] = []
        t: NamedTypeRef | None = self
        while t is not None:
            out.append(t)
            t = t.declaring_type
        out.reverse()
        return out


@dataclass(frozen=True)
class GenericInstanceTypeRef:
    element: NamedTypeRef
    arguments: tuple[TypeRef, ...]


@dataclass(frozen=True)
class ByRefTypeRef:
    element: TypeRef


@dataclass(frozen=True)
class PointerTypeRef:
    element: TypeRef


@dataclass(frozen=True)
class ArrayDimension:
    lower_bound: int | None = None
    size: int | None = None


@dataclass(frozen=True)
class ArrayTypeRef:
    """An array; no dimensions means a single-dimensional zero-based vector."""

    element: TypeRef
    dimensions: tuple[ArrayDimension, ...] = ()

    @property
    def rank(self) -> int:
        return max(1, len(self.dimensions))


TypeRef = Union[
    NamedTypeRef,
    GenericInstanceTypeRef,
    GenericParameter,
    ByRefTypeRef,
    PointerTypeRef,
    ArrayTypeRef,
]


def named_type_of(type_ref: TypeRef) -> NamedTypeRef | None:
    """Return the named type behind a plain or generic-instance reference."""
    match type_ref:
        case NamedTypeRef():
            return type_ref
        case GenericInstanceTypeRef(element=element):
            return element
    return None


# -----------------------------
# Definitions
# -----------------------------


@dataclass(eq=False)
class CustomAttribute:
    """An applied attribute with its decoded fixed constructor arguments."""

    attribute_type: NamedTypeRef
    arguments: tuple[Any, ...] = ()

    @property
    def full_name(self) -> str:
        return self.attribute_type.full_name


@dataclass(frozen=True)
class Constant:
    """A literal default value; type_code is the ECMA-335 element type."""

    type_code: int
    value: Any


@dataclass(eq=False)
class ParameterDefinition:
    name: str | None
    index: int
    parameter_type: TypeRef
    is_in: bool = False
    is_out: bool = False
    default: Constant | None = None
    attributes: list[CustomAttribute] = field(default_factory=list)

    def has_attribute(self, full_name: str) -> bool:
        return any(a.full_name == full_name for a in self.attributes)

    @property
    def is_params_array(self) -> bool:
        return self.has_attribute(PARAM_ARRAY_ATTRIBUTE)


@dataclass(eq=False)
class _Member:
    name: str
    declaring_type: TypeDefinition | None = field(default=None, repr=False)
    attributes: list[CustomAttribute] = field(default_factory=list)

    def has_attribute(self, full_name: str) -> bool:
        return any(a.full_name == full_name for a in self.attributes)


@dataclass(eq=False)
class FieldDefinition(_Member):
    kind: ClassVar[EntityKind] = EntityKind.FIELD

    field_type: TypeRef = field(default_factory=lambda: NamedTypeRef("System", "Object"))
    access: Access = Access.PUBLIC
    is_static: bool = False
    is_init_only: bool = False
    is_literal: bool = False
    is_special_name: bool = False
    constant: Constant | None = None


@dataclass(eq=False)
class MethodDefinition(_Member):
    kind: ClassVar[EntityKind] = EntityKind.METHOD

    return_type: TypeRef = field(default_factory=lambda: NamedTypeRef("System", "Void"))
    parameters: list[ParameterDefinition] = field(default_factory=list)
    generic_parameters: list[GenericParameter] = field(default_factory=list)
    access: Access = Access.PUBLIC
    is_static: bool = False
    is_virtual: bool = False
    is_abstract: bool = False
    is_final: bool = False
    is_new_slot: bool = False
    is_special_name: bool = False
    has_this: bool = True

    @property
    def is_constructor(self) -> bool:
        return self.is_special_name and self.name in (".ctor", ".cctor")

    @property
    def is_extension(self) -> bool:
        return (
            self.is_static
            and not self.has_this
            and bool(self.parameters)
            and self.has_attribute(EXTENSION_ATTRIBUTE)
        )


@dataclass(eq=False)
class PropertyDefinition(_Member):
    kind: ClassVar[EntityKind] = EntityKind.PROPERTY

    property_type: TypeRef = field(default_factory=lambda: NamedTypeRef("System", "Object"))
    getter: MethodDefinition | None = None
    setter: MethodDefinition | None = None


@dataclass(eq=False)
class EventDefinition(_Member):
    kind: ClassVar[EntityKind] = EntityKind.EVENT

    event_type: TypeRef = field(default_factory=lambda: NamedTypeRef("System", "EventHandler"))
    adder: MethodDefinition | None = None
    remover: MethodDefinition | None = None


@dataclass(eq=False)
class TypeDefinition:
    """A type declared by the assembly being documented."""

    kind: ClassVar[EntityKind] = EntityKind.TYPE

    reference: NamedTypeRef
    category: TypeCategory = TypeCategory.CLASS
    access: Access = Access.PUBLIC
    is_nested: bool = False
    is_abstract: bool = False
    is_sealed: bool = False
    base_type: TypeRef | None = None
    interfaces: list[TypeRef] = field(default_factory=list)
    declaring_type: TypeDefinition | None = field(default=None, repr=False)
    fields: list[FieldDefinition] = field(default_factory=list)
    properties: list[PropertyDefinition] = field(default_factory=list)
    events: list[EventDefinition] = field(default_factory=list)
    methods: list[MethodDefinition] = field(default_factory=list)
    nested_types: list[TypeDefinition] = field(default_factory=list)
    attributes: list[CustomAttribute] = field(default_factory=list)
    enum_underlying_type: TypeRef | None = None

    @property
    def name(self) -> str:
        return self.reference.name

    @property
    def namespace(self) -> str:
        return self.reference.outermost.namespace

    @property
    def full_name(self) -> str:
        return self.reference.full_name

    @property
    def generic_parameters(self) -> tuple[GenericParameter, ...]:
        return self.reference.generic_parameters

    def has_attribute(self, full_name: str) -> bool:
        return any(a.full_name == full_name for a in self.attributes)

    def add_member(
        self,
        member: FieldDefinition | PropertyDefinition | EventDefinition | MethodDefinition,
    ) -> None:
        """Attach a member and set its back reference."""
        member.declaring_type = self
        match member:
            case FieldDefinition():
                self.fields.append(member)
            case PropertyDefinition():
                self.properties.append(member)
            case EventDefinition():
                self.events.append(member)
            case MethodDefinition():
                self.methods.append(member)

    def invoke_method(self) -> MethodDefinition | None:
        """Return the Invoke method of a delegate type."""
        return next((m for m in self.methods if m.name == "Invoke"), None)


@dataclass(frozen=True)
class Namespace:
    kind: ClassVar[EntityKind] = EntityKind.NAMESPACE

    name: str


@dataclass(eq=False)
class AssemblyDefinition:
    name: str
    version: str = "0.0.0.0"
    types: list[TypeDefinition] = field(default_factory=list)
    attributes: list[CustomAttribute] = field(default_factory=list)

    def all_types(self) -> list[TypeDefinition]:
        """Return every type, nested types included, in declaration order."""
        out: list[TypeDefinition] = []

        def walk(t: TypeDefinition) -> None:
            out.append(t)
            for n in t.nested_types:
                walk(n)

        for t in self.types:
            walk(t)
        return out


Entity = Union[
    Namespace,
    TypeDefinition,
    FieldDefinition,
    PropertyDefinition,
    EventDefinition,
    MethodDefinition,
]
Member = Union[FieldDefinition, PropertyDefinition, EventDefinition, MethodDefinition]
