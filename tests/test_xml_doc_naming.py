"""Tests for documentation-ID generation."""

from model_builders import (
    BOOL,
    INT,
    STRING,
    add_constructor,
    add_field,
    add_method,
    add_property,
    make_type,
    param,
)

from asmdoc.models import (
    ArrayDimension,
    ArrayTypeRef,
    ByRefTypeRef,
    EventDefinition,
    GenericInstanceTypeRef,
    GenericParameter,
    Namespace,
    NamedTypeRef,
    PointerTypeRef,
)
from asmdoc.xml_doc_naming import doc_id, doc_name, parameter_type_id


def test_type_and_namespace_ids() -> None:
    """Verify namespaces, plain, generic and nested types."""
    widget = make_type("Demo", "Widget")
    outer = make_type("Demo", "Outer`1", generic=("T",))
    inner = make_type("Demo", "Inner", declaring=outer)
    rootless = make_type("", "Loose")

    assert doc_id(Namespace("Demo")) == "N:Demo"
    assert doc_id(widget) == "T:Demo.Widget"
    assert doc_id(outer) == "T:Demo.Outer`1"
    assert doc_id(inner) == "T:Demo.Outer`1.Inner"
    assert doc_id(rootless) == "T:Loose"


def test_method_ids() -> None:
    """Verify constructors, parameterless methods and generic methods."""
    widget = make_type("Demo", "Widget")
    ctor = add_constructor(widget, [param("size", INT)])
    clear = add_method(widget, "Clear")
    t = GenericParameter("T", 0, True)
    mapper = add_method(widget, "Map", t, [param("value", t)], generic_parameters=[t])

    assert doc_id(ctor) == "M:Demo.Widget.#ctor(System.Int32)"
    assert doc_id(clear) == "M:Demo.Widget.Clear"
    assert doc_id(mapper) == "M:Demo.Widget.Map``1(``0)"


def test_type_generic_parameter_reference() -> None:
    """Verify a type's generic parameter is written as `n."""
    box = make_type("Demo", "Box`1", generic=("T",))
    setter = add_method(box, "Set", parameters=[param("value", box.generic_parameters[0])])
    assert doc_name(setter) == "Demo.Box`1.Set(`0)"


def test_parameter_type_ids() -> None:
    """Verify encoding of composite parameter types."""
    list_ref = NamedTypeRef("System.Collections.Generic", "List`1")
    assert parameter_type_id(ByRefTypeRef(INT)) == "System.Int32@"
    assert parameter_type_id(PointerTypeRef(INT)) == "System.Int32*"
    assert parameter_type_id(ArrayTypeRef(STRING)) == "System.String[]"
    assert parameter_type_id(GenericInstanceTypeRef(list_ref, (INT,))) == (
        "System.Collections.Generic.List{System.Int32}"
    )
    bounded = ArrayTypeRef(INT, (ArrayDimension(0, None), ArrayDimension(0, None)))
    assert parameter_type_id(bounded) == "System.Int32[0:,0:]"
    unknown = ArrayTypeRef(INT, (ArrayDimension(), ArrayDimension()))
    assert parameter_type_id(unknown) == "System.Int32[,]"


def test_member_ids() -> None:
    """Verify fields, properties, indexers, events and conversion operators."""
    widget = make_type("Demo", "Widget")
    count = add_field(widget, "Count", INT)
    name = add_property(widget, "Name", STRING)
    item = add_property(widget, "Item", STRING, index_parameters=[param("index", INT)])
    changed = EventDefinition(name="Changed")
    widget.add_member(changed)
    to_int = add_method(widget, "op_Implicit", INT, [param("w", widget.reference)], is_static=True)
    pair = [param("a", widget.reference), param("b", widget.reference, 1)]
    equals = add_method(widget, "Equals", BOOL, pair)

    assert doc_id(count) == "F:Demo.Widget.Count"
    assert doc_id(name) == "P:Demo.Widget.Name"
    assert doc_id(item) == "P:Demo.Widget.Item(System.Int32)"
    assert doc_id(changed) == "E:Demo.Widget.Changed"
    assert doc_id(to_int) == "M:Demo.Widget.op_Implicit(Demo.Widget)~System.Int32"
    assert doc_id(equals) == "M:Demo.Widget.Equals(Demo.Widget,Demo.Widget)"


def test_explicit_implementation_names_are_escaped() -> None:
    """Verify dots and brackets in member names are replaced."""
    widget = make_type("Demo", "Widget")
    explicit = add_method(widget, "System.IComparable<Demo.Widget>.CompareTo", INT)
    assert doc_name(explicit) == "Demo.Widget.System#IComparable{Demo#Widget}#CompareTo"
