"""Decoding of ECMA-335 signature and constant blobs (Partition II, 23.2)."""

import logging
import struct
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from asmdoc.errors import SignatureError
from asmdoc.models import (
    ArrayDimension,
    ArrayTypeRef,
    ByRefTypeRef,
    Constant,
    ElementType,
    GenericInstanceTypeRef,
    GenericParameter,
    NamedTypeRef,
    PointerTypeRef,
    TypeRef,
)

logger = logging.getLogger(__name__)

HAS_THIS = 0x20
GENERIC = 0x10
FIELD_SIG = 0x06
PROPERTY_SIG = 0x08

# TypeDefOrRefOrSpecEncoded tags
TAG_TYPE_DEF = 0
TAG_TYPE_REF = 1
TAG_TYPE_SPEC = 2


def _system(name: str, *, value_type: bool = True) -> NamedTypeRef:
    return NamedTypeRef("System", name, is_value_type=value_type)


PRIMITIVES = {
    ElementType.VOID: _system("Void"),
    ElementType.BOOLEAN: _system("Boolean"),
    ElementType.CHAR: _system("Char"),
    ElementType.I1: _system("SByte"),
    ElementType.U1: _system("Byte"),
    ElementType.I2: _system("Int16"),
    ElementType.U2: _system("UInt16"),
    ElementType.I4: _system("Int32"),
    ElementType.U4: _system("UInt32"),
    ElementType.I8: _system("Int64"),
    ElementType.U8: _system("UInt64"),
    ElementType.R4: _system("Single"),
    ElementType.R8: _system("Double"),
    ElementType.I: _system("IntPtr"),
    ElementType.U: _system("UIntPtr"),
    ElementType.TYPEDBYREF: _system("TypedReference"),
    ElementType.STRING: _system("String", value_type=False),
    ElementType.OBJECT: _system("Object", value_type=False),
}

# struct formats for fixed-size primitive values
PRIMITIVE_FORMATS = {
    ElementType.BOOLEAN: "<?",
    ElementType.CHAR: "<H",
    ElementType.I1: "<b",
    ElementType.U1: "<B",
    ElementType.I2: "<h",
    ElementType.U2: "<H",
    ElementType.I4: "<i",
    ElementType.U4: "<I",
    ElementType.I8: "<q",
    ElementType.U8: "<Q",
    ElementType.R4: "<f",
    ElementType.R8: "<d",
}

TypeResolver = Callable[[int, int], TypeRef]


class BlobReader:
    """Sequential reader over a blob heap entry."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def byte(self) -> int:
        if self.pos >= len(self.data):
            raise SignatureError("Unexpected end of blob")
        b = self.data[self.pos]
        self.pos += 1
        return b

    def peek(self) -> int:
        if self.pos >= len(self.data):
            raise SignatureError("Unexpected end of blob")
        return self.data[self.pos]

    def read(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise SignatureError("Unexpected end of blob")
        out = self.data[self.pos : self.pos + size]
        self.pos += size
        return out

    def unpack(self, fmt: str) -> object:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

    def _compressed(self) -> tuple[int, int]:
        first = self.byte()
        if first & 0x80 == 0:
            return first, 1
        if first & 0xC0 == 0x80:
            return ((first & 0x3F) << 8) | self.byte(), 2
        if first & 0xE0 == 0xC0:
            rest = self.read(3)
            return ((first & 0x1F) << 24) | (rest[0] << 16) | (rest[1] << 8) | rest[2], 4
        raise SignatureError(f"Invalid compressed integer lead byte 0x{first:02x}")

    def compressed_uint(self) -> int:
        return self._compressed()[0]

    def compressed_int(self) -> int:
        """Signed compressed integer: sign bit rotated into the lowest bit."""
        value, size = self._compressed()
        negative = value & 1
        value >>= 1
        if negative:
            value -= {1: 0x40, 2: 0x2000, 4: 0x10000000}[size]
        return value

    def ser_string(self) -> str | None:
        if self.peek() == 0xFF:
            self.pos += 1
            return None
        length = self.compressed_uint()
        try:
            return self.read(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureError(f"Invalid UTF-8 in serialized string: {e}") from e


@dataclass(frozen=True)
class MethodSignature:
    has_this: bool
    generic_count: int
    return_type: TypeRef
    parameter_types: tuple[TypeRef, ...]


class SignatureDecoder:
    """Decode type signatures in the context of the enclosing generic parameters."""

    def __init__(
        self,
        resolve: TypeResolver,
        type_parameters: Sequence[GenericParameter] = (),
        method_parameters: Sequence[GenericParameter] = (),
        type_specs: Callable[[int], bytes] | None = None,
    ) -> None:
        self.resolve = resolve
        self.type_specs = type_specs
        self.type_parameters = type_parameters
        self.method_parameters = method_parameters

    def _type_def_or_ref(self, r: BlobReader) -> TypeRef:
        coded = r.compressed_uint()
        return self.resolve_coded(coded & 0x03, coded >> 2)

    def resolve_coded(self, tag: int, index: int) -> TypeRef:
        """Resolve a TypeDefOrRef index; TypeSpecs decode in this generic context."""
        if tag == TAG_TYPE_SPEC:
            if self.type_specs is None:
                raise SignatureError(f"Cannot resolve TypeSpec row {index}")
            return self.type_spec(self.type_specs(index))
        return self.resolve(tag, index)

    def _generic_parameter(self, position: int, is_method: bool) -> GenericParameter:
        params = self.method_parameters if is_method else self.type_parameters
        if position < len(params):
            return params[position]
        logger.debug("Unbound generic parameter %d (method=%s)", position, is_method)
        name = f"!!{position}" if is_method else f"!{position}"
        return GenericParameter(name, position, is_method)

    def decode_type(self, r: BlobReader) -> TypeRef:
        et = r.byte()
        if et in PRIMITIVES:
            return PRIMITIVES[ElementType(et)]

        match et:
            case ElementType.CMOD_REQD | ElementType.CMOD_OPT:
                r.compressed_uint()
                return self.decode_type(r)
            case ElementType.PINNED | ElementType.SENTINEL:
                return self.decode_type(r)
            case ElementType.PTR:
                return PointerTypeRef(self.decode_type(r))
            case ElementType.BYREF:
                return ByRefTypeRef(self.decode_type(r))
            case ElementType.SZARRAY:
                return ArrayTypeRef(self.decode_type(r))
            case ElementType.VALUETYPE | ElementType.CLASS:
                resolved = self._type_def_or_ref(r)
                if et == ElementType.VALUETYPE and isinstance(resolved, NamedTypeRef):
                    return replace(resolved, is_value_type=True)
                return resolved
            case ElementType.VAR:
                return self._generic_parameter(r.compressed_uint(), False)
            case ElementType.MVAR:
                return self._generic_parameter(r.compressed_uint(), True)
            case ElementType.GENERICINST:
                kind = r.byte()
                element = self._type_def_or_ref(r)
                count = r.compressed_uint()
                args = tuple(self.decode_type(r) for _ in range(count))
                if not isinstance(element, NamedTypeRef):
                    raise SignatureError("Generic instance over a non-named type")
                if kind == ElementType.VALUETYPE:
                    element = replace(element, is_value_type=True)
                return GenericInstanceTypeRef(element, args)
            case ElementType.ARRAY:
                element = self.decode_type(r)
                rank = r.compressed_uint()
                sizes = [r.compressed_uint() for _ in range(r.compressed_uint())]
                lower = [r.compressed_int() for _ in range(r.compressed_uint())]
                dims = tuple(
                    ArrayDimension(
                        lower[i] if i < len(lower) else None,
                        sizes[i] if i < len(sizes) else None,
                    )
                    for i in range(rank)
                )
                return ArrayTypeRef(element, dims)
            case ElementType.FNPTR:
                self.method_signature_from(r)
                logger.debug("Function pointer rendered as IntPtr")
                return PRIMITIVES[ElementType.I]
        raise SignatureError(f"Unsupported element type 0x{et:02x}")

    def method_signature_from(self, r: BlobReader) -> MethodSignature:
        header = r.byte()
        generic_count = r.compressed_uint() if header & GENERIC else 0
        count = r.compressed_uint()
        return_type = self.decode_type(r)
        params = []
        for _ in range(count):
            if not r.at_end and r.peek() == ElementType.SENTINEL:
                r.byte()
            params.append(self.decode_type(r))
        return MethodSignature(bool(header & HAS_THIS), generic_count, return_type, tuple(params))

    def method_signature(self, blob: bytes) -> MethodSignature:
        return self.method_signature_from(BlobReader(blob))

    def field_signature(self, blob: bytes) -> TypeRef:
        r = BlobReader(blob)
        if r.byte() != FIELD_SIG:
            raise SignatureError("Not a field signature")
        return self.decode_type(r)

    def property_signature(self, blob: bytes) -> MethodSignature:
        r = BlobReader(blob)
        header = r.byte()
        if header & 0x0F != PROPERTY_SIG:
            raise SignatureError("Not a property signature")
        count = r.compressed_uint()
        prop_type = self.decode_type(r)
        params = tuple(self.decode_type(r) for _ in range(count))
        return MethodSignature(bool(header & HAS_THIS), 0, prop_type, params)

    def type_spec(self, blob: bytes) -> TypeRef:
        return self.decode_type(BlobReader(blob))


def decode_constant(type_code: int, blob: bytes) -> Constant:
    """Decode a Constant table value."""
    if type_code == ElementType.STRING:
        return Constant(type_code, blob.decode("utf-16-le"))
    if type_code == ElementType.CLASS:
        return Constant(type_code, None)
    try:
        fmt = PRIMITIVE_FORMATS[ElementType(type_code)]
    except (KeyError, ValueError) as e:
        raise SignatureError(f"Unsupported constant type 0x{type_code:02x}") from e
    size = struct.calcsize(fmt)
    if len(blob) < size:
        raise SignatureError(f"Constant blob too short for type 0x{type_code:02x}")
    (value,) = struct.unpack(fmt, blob[:size])
    return Constant(type_code, value)
