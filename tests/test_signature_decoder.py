"""Tests for signature and constant blob decoding."""

import struct

import pytest

from asmdoc.errors import SignatureError
from asmdoc.models import (
    ArrayDimension,
    ArrayTypeRef,
    ByRefTypeRef,
    ElementType,
    GenericInstanceTypeRef,
    GenericParameter,
    NamedTypeRef,
    PointerTypeRef,
)
from asmdoc.signature_decoder import (
    PRIMITIVES,
    BlobReader,
    SignatureDecoder,
    decode_constant,
)

INT32 = PRIMITIVES[ElementType.I4]
STRING = PRIMITIVES[ElementType.STRING]

TYPES = {
    (0, 2): NamedTypeRef("Demo", "Point"),
    (1, 1): NamedTypeRef("System.Collections.Generic", "List`1"),
}


def _resolve(tag: int, index: int) -> NamedTypeRef:
    return TYPES[(tag, index)]


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\x03", 0x03),
        (b"\x7f", 0x7F),
        (b"\x80\x80", 0x80),
        (b"\xae\x57", 0x2E57),
        (b"\xbf\xff", 0x3FFF),
        (b"\xc0\x00\x40\x00", 0x4000),
        (b"\xdf\xff\xff\xff", 0x1FFFFFFF),
    ],
)
def test_compressed_unsigned(data: bytes, expected: int) -> None:
    """Verify the one, two and four byte encodings."""
    assert BlobReader(data).compressed_uint() == expected


@pytest.mark.parametrize(
    "data,expected",
    [
        (b"\x06", 3),
        (b"\x7b", -3),
        (b"\x80\x80", 64),
        (b"\x01", -64),
        (b"\xc0\x00\x40\x00", 8192),
        (b"\x80\x01", -8192),
        (b"\xdf\xff\xff\xfe", 268435455),
        (b"\xc0\x00\x00\x01", -268435456),
    ],
)
def test_compressed_signed(data: bytes, expected: int) -> None:
    """Verify the rotated sign bit is restored."""
    assert BlobReader(data).compressed_int() == expected


def test_reader_errors() -> None:
    """Verify truncated data and invalid lead bytes raise SignatureError."""
    with pytest.raises(SignatureError):
        BlobReader(b"").byte()
    with pytest.raises(SignatureError):
        BlobReader(b"\x80").compressed_uint()
    with pytest.raises(SignatureError):
        BlobReader(b"\xe0").compressed_uint()


def test_ser_string() -> None:
    """Verify length-prefixed UTF-8 strings and the null marker."""
    r = BlobReader(b"\x03abc\xff")
    assert r.ser_string() == "abc"
    assert r.ser_string() is None
    assert r.at_end
    with pytest.raises(SignatureError, match="UTF-8"):
        BlobReader(b"\x02\xff\xfe").ser_string()


def test_method_signature() -> None:
    """Verify instance methods with primitive parameters."""
    sig = SignatureDecoder(_resolve).method_signature(b"\x20\x02\x02\x08\x0e")
    assert sig.has_this
    assert sig.generic_count == 0
    assert sig.return_type == PRIMITIVES[ElementType.BOOLEAN]
    assert sig.parameter_types == (INT32, STRING)


def test_generic_method_signature() -> None:
    """Verify method generic parameters bind to the method's own parameters."""
    t = GenericParameter("T", 0, True)
    decoder = SignatureDecoder(_resolve, method_parameters=(t,))
    sig = decoder.method_signature(b"\x30\x01\x01\x1e\x00\x1e\x00")
    assert sig.generic_count == 1
    assert sig.return_type is t
    assert sig.parameter_types == (t,)

    unbound = SignatureDecoder(_resolve).method_signature(b"\x10\x01\x00\x1e\x00")
    assert unbound.return_type == GenericParameter("!!0", 0, True)
    assert not unbound.has_this


def test_property_signature() -> None:
    """Verify indexer properties keep their parameter types."""
    sig = SignatureDecoder(_resolve).property_signature(b"\x28\x01\x0e\x08")
    assert sig.has_this
    assert sig.return_type == STRING
    assert sig.parameter_types == (INT32,)

    with pytest.raises(SignatureError):
        SignatureDecoder(_resolve).property_signature(b"\x06\x08")


def test_field_signatures() -> None:
    """Verify composite field types."""
    decoder = SignatureDecoder(_resolve)
    assert decoder.field_signature(b"\x06\x1d\x08") == ArrayTypeRef(INT32)
    assert decoder.field_signature(b"\x06\x10\x08") == ByRefTypeRef(INT32)
    assert decoder.field_signature(b"\x06\x0f\x01") == PointerTypeRef(
        PRIMITIVES[ElementType.VOID]
    )
    assert decoder.field_signature(b"\x06\x1f\x05\x08") == INT32

    with pytest.raises(SignatureError):
        decoder.field_signature(b"\x07\x08")


def test_class_and_value_type_references() -> None:
    """Verify TypeDefOrRef coding and value-type marking."""
    decoder = SignatureDecoder(_resolve)
    listed = decoder.field_signature(b"\x06\x12\x05")
    assert listed == TYPES[(1, 1)]
    assert not listed.is_value_type

    point = decoder.field_signature(b"\x06\x11\x08")
    assert point.full_name == "Demo.Point"
    assert point.is_value_type


def test_generic_instance() -> None:
    """Verify closed generic types."""
    decoder = SignatureDecoder(_resolve)
    closed = decoder.field_signature(b"\x06\x15\x12\x05\x01\x08")
    assert closed == GenericInstanceTypeRef(TYPES[(1, 1)], (INT32,))


def test_general_array() -> None:
    """Verify array shapes with sizes and negative lower bounds."""
    decoder = SignatureDecoder(_resolve)
    array = decoder.field_signature(b"\x06\x14\x08\x02\x01\x03\x02\x00\x7b")
    assert array == ArrayTypeRef(INT32, (ArrayDimension(0, 3), ArrayDimension(-3, None)))
    assert array.rank == 2


def test_type_spec_reference() -> None:
    """Verify TypeSpec rows decode in the surrounding generic context."""
    t = GenericParameter("T", 0)
    specs = {1: b"\x13\x00"}
    decoder = SignatureDecoder(_resolve, type_parameters=(t,), type_specs=specs.__getitem__)
    assert decoder.field_signature(b"\x06\x12\x06") is t

    with pytest.raises(SignatureError):
        SignatureDecoder(_resolve).field_signature(b"\x06\x12\x06")


def test_function_pointer_is_intptr() -> None:
    """Verify function pointers collapse to IntPtr."""
    decoder = SignatureDecoder(_resolve)
    assert decoder.field_signature(b"\x06\x1b\x00\x00\x01") == PRIMITIVES[ElementType.I]


def test_unsupported_and_truncated() -> None:
    """Verify malformed signatures raise SignatureError."""
    decoder = SignatureDecoder(_resolve)
    with pytest.raises(SignatureError):
        decoder.field_signature(b"\x06\x40")
    with pytest.raises(SignatureError):
        decoder.method_signature(b"\x20\x01\x01")


def test_decode_constant() -> None:
    """Verify literal values of each storage kind."""
    assert decode_constant(ElementType.I4, b"\x02\x00\x00\x00").value == 2
    assert decode_constant(ElementType.I2, b"\xff\xff").value == -1
    assert decode_constant(ElementType.BOOLEAN, b"\x01").value is True
    assert decode_constant(ElementType.R8, struct.pack("<d", 2.5)).value == 2.5
    assert decode_constant(ElementType.STRING, "hi".encode("utf-16-le")).value == "hi"
    assert decode_constant(ElementType.CLASS, b"\x00\x00\x00\x00").value is None

    with pytest.raises(SignatureError):
        decode_constant(0x40, b"\x00")
    with pytest.raises(SignatureError):
        decode_constant(ElementType.I8, b"\x00\x00")
