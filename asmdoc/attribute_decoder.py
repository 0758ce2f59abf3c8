"""Decoding of custom attribute value blobs (ECMA-335 II.23.3)."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from asmdoc.errors import SignatureError
from asmdoc.models import (
    ArrayTypeRef,
    ElementType,
    GenericInstanceTypeRef,
    NamedTypeRef,
    TypeRef,
)
from asmdoc.signature_decoder import PRIMITIVE_FORMATS, BlobReader

logger = logging.getLogger(__name__)

PROLOG = b"\x01\x00"
NULL_ARRAY = 0xFFFFFFFF

PRIMITIVE_NAMES = {
    "System.Boolean": ElementType.BOOLEAN,
    "System.Char": ElementType.CHAR,
    "System.SByte": ElementType.I1,
    "System.Byte": ElementType.U1,
    "System.Int16": ElementType.I2,
    "System.UInt16": ElementType.U2,
    "System.Int32": ElementType.I4,
    "System.UInt32": ElementType.U4,
    "System.Int64": ElementType.I8,
    "System.UInt64": ElementType.U8,
    "System.Single": ElementType.R4,
    "System.Double": ElementType.R8,
}

# Resolves an enum type's full name to the element type of its underlying integer.
EnumResolver = Callable[[str], ElementType | None]


class AttributeDecoder:
    """Decode the fixed arguments of an attribute constructor call."""

    def __init__(self, enum_underlying: EnumResolver) -> None:
        self.enum_underlying = enum_underlying

    def _enum_code(self, full_name: str) -> ElementType:
        code = self.enum_underlying(full_name)
        if code is None:
            logger.debug("Assuming int underlying type for enum %s", full_name)
            return ElementType.I4
        return code

    def _primitive(self, r: BlobReader, code: int) -> Any:
        value = r.unpack(PRIMITIVE_FORMATS[ElementType(code)])
        if code == ElementType.CHAR:
            return chr(value)
        return value

    def _tagged(self, r: BlobReader, code: int) -> Any:
        """Read a value whose type is given by a FieldOrPropType tag."""
        match code:
            case ElementType.STRING | ElementType.SYSTEM_TYPE:
                return r.ser_string()
            case ElementType.BOXED:
                return self._tagged(r, r.byte())
            case ElementType.ENUM:
                enum_name = r.ser_string() or ""
                return self._primitive(r, self._enum_code(enum_name))
            case ElementType.SZARRAY:
                element = r.byte()
                if element == ElementType.ENUM:
                    enum_name = r.ser_string() or ""
                    element = self._enum_code(enum_name)
                return self._array(r, lambda: self._tagged(r, element))
        if code in PRIMITIVE_FORMATS:
            return self._primitive(r, code)
        raise SignatureError(f"Unsupported attribute argument type 0x{code:02x}")

    def _array(self, r: BlobReader, read_one: Callable[[], Any]) -> tuple[Any, ...] | None:
        count = r.unpack("<I")
        if count == NULL_ARRAY:
            return None
        return tuple(read_one() for _ in range(count))

    def _typed(self, r: BlobReader, t: TypeRef) -> Any:
        """Read a value whose type is given by a constructor parameter."""
        if isinstance(t, ArrayTypeRef):
            return self._array(r, lambda: self._typed(r, t.element))
        if isinstance(t, GenericInstanceTypeRef):
            raise SignatureError("Generic attribute argument types are not supported")
        if not isinstance(t, NamedTypeRef):
            raise SignatureError(f"Unsupported attribute parameter type {t!r}")

        name = t.full_name
        if name in PRIMITIVE_NAMES:
            return self._primitive(r, PRIMITIVE_NAMES[name])
        if name in ("System.String", "System.Type"):
            return r.ser_string()
        if name == "System.Object":
            return self._tagged(r, r.byte())
        if t.is_value_type:
            return self._primitive(r, self._enum_code(name))
        raise SignatureError(f"Unsupported attribute parameter type {name}")

    def decode(self, blob: bytes, parameter_types: Sequence[TypeRef]) -> tuple[Any, ...]:
        """Return the fixed arguments, or () when the blob cannot be decoded."""
        if not blob:
            return ()
        try:
            r = BlobReader(blob)
            if r.read(2) != PROLOG:
                raise SignatureError("Missing custom attribute prolog")
            return tuple(self._typed(r, t) for t in parameter_types)
        except SignatureError as e:
            logger.debug("Skipping attribute arguments: %s", e)
            return ()
