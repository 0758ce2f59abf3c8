"""Build the in-memory assembly model from a .NET binary using dnfile."""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any

from asmdoc import dnfile_tables
from asmdoc.assembly_resolver import AssemblyResolver, enum_underlying_types
from asmdoc.attribute_decoder import AttributeDecoder
from asmdoc.dnfile_tables import blob, rows, table_name, text
from asmdoc.errors import SignatureError
from asmdoc.models import (
    ENUM_TYPE,
    MULTICAST_DELEGATE_TYPE,
    VALUE_TYPE,
    Access,
    AssemblyDefinition,
    CustomAttribute,
    Constant,
    ElementType,
    EventDefinition,
    FieldDefinition,
    GenericParameter,
    MethodDefinition,
    NamedTypeRef,
    ParameterDefinition,
    PropertyDefinition,
    TypeCategory,
    TypeDefinition,
    TypeRef,
    Variance,
    named_type_of,
)
from asmdoc.signature_decoder import (
    TAG_TYPE_DEF,
    TAG_TYPE_REF,
    SignatureDecoder,
    decode_constant,
)

logger = logging.getLogger(__name__)

MODULE_TYPE = "<Module>"
VALUE_FIELD = "value__"

TYPE_ACCESS = {
    "tdPublic": Access.PUBLIC,
    "tdNotPublic": Access.ASSEMBLY,
    "tdNestedPublic": Access.PUBLIC,
    "tdNestedPrivate": Access.PRIVATE,
    "tdNestedFamily": Access.FAMILY,
    "tdNestedAssembly": Access.ASSEMBLY,
    "tdNestedFamANDAssem": Access.FAMILY_AND_ASSEMBLY,
    "tdNestedFamORAssem": Access.FAMILY_OR_ASSEMBLY,
}
METHOD_ACCESS = {
    "mdPublic": Access.PUBLIC,
    "mdPrivate": Access.PRIVATE,
    "mdFamANDAssem": Access.FAMILY_AND_ASSEMBLY,
    "mdAssem": Access.ASSEMBLY,
    "mdFamily": Access.FAMILY,
    "mdFamORAssem": Access.FAMILY_OR_ASSEMBLY,
}
FIELD_ACCESS = {
    "fdPublic": Access.PUBLIC,
    "fdPrivate": Access.PRIVATE,
    "fdFamANDAssem": Access.FAMILY_AND_ASSEMBLY,
    "fdAssembly": Access.ASSEMBLY,
    "fdFamily": Access.FAMILY,
    "fdFamORAssem": Access.FAMILY_OR_ASSEMBLY,
}

# Tables whose rows can carry attributes we keep.
ATTRIBUTE_PARENTS = ("TypeDef", "MethodDef", "Field", "Param", "Property", "Event", "Assembly")


def _access(flags: Any, table: dict[str, Access]) -> Access:
    for flag, access in table.items():
        if getattr(flags, flag, False):
            return access
    return Access.PRIVATE


class _MetadataReader:
    """One pass over the metadata tables of a single module."""

    def __init__(self, tables: Any, resolver: AssemblyResolver) -> None:
        self.tables = tables
        self.resolver = resolver
        self.type_defs = rows(tables, "TypeDef")
        self.type_refs = rows(tables, "TypeRef")
        self.type_specs = rows(tables, "TypeSpec")
        self.fields = rows(tables, "Field")
        self.method_defs = rows(tables, "MethodDef")
        self.enclosing = dnfile_tables.nesting(tables)
        self.full_names = dnfile_tables.type_def_full_names(tables)
        self.local_enums = enum_underlying_types(tables)

        self._type_def_refs: dict[int, NamedTypeRef] = {}
        self._type_ref_refs: dict[int, NamedTypeRef] = {}
        # TypeRef full name -> simple name of the assembly declaring it
        self._ref_scopes: dict[str, str] = {}

        self.generic_params: dict[tuple[str, int], list[GenericParameter]] = defaultdict(list)
        for row in sorted(rows(tables, "GenericParam"), key=lambda r: r.Number):
            owner = table_name(row.Owner)
            if owner is None:
                continue
            variance = Variance.NONE
            if row.Flags.gpCovariant:
                variance = Variance.COVARIANT
            elif row.Flags.gpContravariant:
                variance = Variance.CONTRAVARIANT
            self.generic_params[(owner, row.Owner.row_index)].append(
                GenericParameter(text(row.Name), row.Number, owner == "MethodDef", variance)
            )

        self.method_owner: dict[int, int] = {}
        for index, row in enumerate(self.type_defs, start=1):
            for ref in row.MethodList or []:
                self.method_owner[ref.row_index] = index

        self.attribute_decoder = AttributeDecoder(self._enum_underlying)
        self.constants: dict[tuple[str, int], Constant] = {}
        self.attributes: dict[tuple[str, int], list[CustomAttribute]] = defaultdict(list)
        self.methods: dict[int, MethodDefinition] = {}

    # -----------------------------
    # Type references
    # -----------------------------

    def _type_spec_blob(self, index: int) -> bytes:
        return blob(self.type_specs[index - 1].Signature)

    def _decoder(
        self,
        type_parameters: tuple[GenericParameter, ...] | list[GenericParameter] = (),
        method_parameters: list[GenericParameter] | tuple[GenericParameter, ...] = (),
    ) -> SignatureDecoder:
        return SignatureDecoder(
            self._resolve, type_parameters, method_parameters, self._type_spec_blob
        )

    def _resolve(self, tag: int, index: int) -> TypeRef:
        if tag == TAG_TYPE_DEF:
            return self.type_def_ref(index)
        if tag == TAG_TYPE_REF:
            return self.type_ref(index)
        raise SignatureError(f"Unexpected TypeDefOrRef tag {tag}")

    def _coded_type(self, coded: Any, decoder: SignatureDecoder) -> TypeRef | None:
        """Resolve a TypeDefOrRef column value; None for a null reference."""
        if coded is None or not coded.row_index:
            return None
        match table_name(coded):
            case "TypeDef":
                return self.type_def_ref(coded.row_index)
            case "TypeRef":
                return self.type_ref(coded.row_index)
            case "TypeSpec":
                return decoder.type_spec(self._type_spec_blob(coded.row_index))
        return None

    def _extends_name(self, row: Any) -> str | None:
        extends = row.Extends
        if extends is None or not extends.row_index:
            return None
        match table_name(extends):
            case "TypeDef":
                return self.full_names.get(extends.row_index)
            case "TypeRef":
                return self.type_ref(extends.row_index).full_name
        return None

    def category(self, index: int) -> TypeCategory:
        row = self.type_defs[index - 1]
        if row.Flags.tdInterface:
            return TypeCategory.INTERFACE
        base = self._extends_name(row)
        own = self.full_names[index]
        if base == ENUM_TYPE:
            return TypeCategory.ENUM
        if base == VALUE_TYPE and own != ENUM_TYPE:
            return TypeCategory.STRUCT
        if base == MULTICAST_DELEGATE_TYPE:
            return TypeCategory.DELEGATE
        return TypeCategory.CLASS

    def type_def_ref(self, index: int) -> NamedTypeRef:
        if index in self._type_def_refs:
            return self._type_def_refs[index]
        row = self.type_defs[index - 1]
        declaring = self.type_def_ref(self.enclosing[index]) if index in self.enclosing else None
        ref = NamedTypeRef(
            namespace="" if declaring is not None else text(row.TypeNamespace),
            name=text(row.TypeName),
            declaring_type=declaring,
            generic_parameters=tuple(self.generic_params.get(("TypeDef", index), ())),
            is_value_type=self.category(index) in (TypeCategory.STRUCT, TypeCategory.ENUM),
        )
        self._type_def_refs[index] = ref
        return ref

    def type_ref(self, index: int) -> NamedTypeRef:
        if index in self._type_ref_refs:
            return self._type_ref_refs[index]
        row = self.type_refs[index - 1]
        scope = row.ResolutionScope
        declaring = None
        assembly = None
        match table_name(scope):
            case "TypeRef":
                declaring = self.type_ref(scope.row_index)
                assembly = self._ref_scopes.get(declaring.full_name)
            case "AssemblyRef":
                assembly = text(scope.row.Name)
        ref = NamedTypeRef(
            namespace="" if declaring is not None else text(row.TypeNamespace),
            name=text(row.TypeName),
            declaring_type=declaring,
        )
        if assembly:
            self._ref_scopes[ref.full_name] = assembly
        self._type_ref_refs[index] = ref
        return ref

    def _enum_underlying(self, full_name: str) -> ElementType | None:
        """Underlying type of an enum named in an attribute blob."""
        name, _, qualifier = full_name.partition(",")
        name = name.strip()
        if name in self.local_enums:
            return self.local_enums[name]
        assembly = qualifier.split(",")[0].strip() or self._ref_scopes.get(name)
        if not assembly:
            return None
        return self.resolver.enum_underlying_type(assembly, name)

    # -----------------------------
    # Attributes and constants
    # -----------------------------

    def read_constants(self) -> None:
        for row in rows(self.tables, "Constant"):
            parent = table_name(row.Parent)
            if parent is None:
                continue
            try:
                self.constants[(parent, row.Parent.row_index)] = decode_constant(
                    row.Type, blob(row.Value)
                )
            except SignatureError as e:
                logger.debug("Skipping constant on %s %d: %s", parent, row.Parent.row_index, e)

    def _attribute_constructor(self, row: Any) -> tuple[NamedTypeRef | None, bytes]:
        ctor = row.Type
        decoder = self._decoder()
        match table_name(ctor):
            case "MethodDef":
                owner = self.method_owner.get(ctor.row_index)
                if owner is None:
                    return None, b""
                return self.type_def_ref(owner), blob(ctor.row.Signature)
            case "MemberRef":
                member = ctor.row
                attribute_type = self._coded_type(member.Class, decoder)
                if attribute_type is None:
                    return None, b""
                return named_type_of(attribute_type), blob(member.Signature)
        return None, b""

    def read_attributes(self) -> None:
        for row in rows(self.tables, "CustomAttribute"):
            parent = table_name(row.Parent)
            if parent not in ATTRIBUTE_PARENTS:
                continue
            try:
                attribute_type, signature = self._attribute_constructor(row)
                if attribute_type is None:
                    continue
                ctor = self._decoder().method_signature(signature)
            except SignatureError as e:
                logger.debug("Skipping attribute on %s %d: %s", parent, row.Parent.row_index, e)
                continue
            arguments = self.attribute_decoder.decode(blob(row.Value), ctor.parameter_types)
            self.attributes[(parent, row.Parent.row_index)].append(
                CustomAttribute(attribute_type, arguments)
            )

    # -----------------------------
    # Members
    # -----------------------------

    def read_field(self, index: int, decoder: SignatureDecoder) -> FieldDefinition:
        row = self.fields[index - 1]
        flags = row.Flags
        return FieldDefinition(
            name=text(row.Name),
            attributes=list(self.attributes.get(("Field", index), ())),
            field_type=decoder.field_signature(blob(row.Signature)),
            access=_access(flags, FIELD_ACCESS),
            is_static=flags.fdStatic,
            is_init_only=flags.fdInitOnly,
            is_literal=flags.fdLiteral,
            is_special_name=flags.fdSpecialName,
            constant=self.constants.get(("Field", index)),
        )

    def read_method(
        self, index: int, type_parameters: tuple[GenericParameter, ...]
    ) -> MethodDefinition:
        row = self.method_defs[index - 1]
        flags = row.Flags
        method_parameters = self.generic_params.get(("MethodDef", index), [])
        signature = self._decoder(type_parameters, method_parameters).method_signature(
            blob(row.Signature)
        )

        param_rows = {}
        for ref in row.ParamList or []:
            param = ref.row
            if param is not None and param.Sequence > 0:
                param_rows[param.Sequence] = (ref.row_index, param)

        parameters = []
        for i, parameter_type in enumerate(signature.parameter_types):
            p = ParameterDefinition(name=None, index=i, parameter_type=parameter_type)
            if (i + 1) in param_rows:
                param_index, param = param_rows[i + 1]
                p.name = text(param.Name) or None
                p.is_in = param.Flags.pdIn
                p.is_out = param.Flags.pdOut
                if param.Flags.pdHasDefault:
                    p.default = self.constants.get(("Param", param_index))
                p.attributes = list(self.attributes.get(("Param", param_index), ()))
            parameters.append(p)

        method = MethodDefinition(
            name=text(row.Name),
            attributes=list(self.attributes.get(("MethodDef", index), ())),
            return_type=signature.return_type,
            parameters=parameters,
            generic_parameters=list(method_parameters),
            access=_access(flags, METHOD_ACCESS),
            is_static=flags.mdStatic,
            is_virtual=flags.mdVirtual,
            is_abstract=flags.mdAbstract,
            is_final=flags.mdFinal,
            is_new_slot=flags.mdNewSlot,
            is_special_name=flags.mdSpecialName,
            has_this=signature.has_this,
        )
        self.methods[index] = method
        return method

    def _semantics(self) -> dict[tuple[str, int], dict[str, int]]:
        """Map (Property|Event, row) to accessor role -> MethodDef row."""
        out: dict[tuple[str, int], dict[str, int]] = defaultdict(dict)
        for row in rows(self.tables, "MethodSemantics"):
            association = table_name(row.Association)
            if association is None:
                continue
            key = (association, row.Association.row_index)
            for role in ("msGetter", "msSetter", "msAddOn", "msRemoveOn"):
                if getattr(row.Semantics, role, False):
                    out[key][role] = row.Method.row_index
        return out

    def read_properties_and_events(self, types: dict[int, TypeDefinition]) -> None:
        semantics = self._semantics()
        methods = self.methods

        for row in rows(self.tables, "PropertyMap"):
            t = types.get(row.Parent.row_index)
            if t is None:
                continue
            decoder = self._decoder(t.generic_parameters)
            for ref in row.PropertyList or []:
                prop = ref.row
                roles = semantics.get(("Property", ref.row_index), {})
                try:
                    signature = decoder.property_signature(blob(prop.Type))
                except SignatureError as e:
                    logger.warning(
                        "Skipping property %s of %s: %s", text(prop.Name), t.full_name, e
                    )
                    continue
                t.add_member(
                    PropertyDefinition(
                        name=text(prop.Name),
                        attributes=list(self.attributes.get(("Property", ref.row_index), ())),
                        property_type=signature.return_type,
                        getter=methods.get(roles.get("msGetter", 0)),
                        setter=methods.get(roles.get("msSetter", 0)),
                    )
                )

        for row in rows(self.tables, "EventMap"):
            t = types.get(row.Parent.row_index)
            if t is None:
                continue
            decoder = self._decoder(t.generic_parameters)
            for ref in row.EventList or []:
                event = ref.row
                roles = semantics.get(("Event", ref.row_index), {})
                event_type = self._coded_type(event.EventType, decoder)
                t.add_member(
                    EventDefinition(
                        name=text(event.Name),
                        attributes=list(self.attributes.get(("Event", ref.row_index), ())),
                        event_type=event_type or NamedTypeRef("System", "EventHandler"),
                        adder=methods.get(roles.get("msAddOn", 0)),
                        remover=methods.get(roles.get("msRemoveOn", 0)),
                    )
                )

    def _method_indices(self, type_index: int) -> list[int]:
        return [ref.row_index for ref in self.type_defs[type_index - 1].MethodList or []]

    # -----------------------------
    # Types
    # -----------------------------

    def read_type(self, index: int, interfaces: list[TypeRef]) -> TypeDefinition:
        row = self.type_defs[index - 1]
        flags = row.Flags
        ref = self.type_def_ref(index)
        decoder = self._decoder(ref.generic_parameters)
        t = TypeDefinition(
            reference=ref,
            category=self.category(index),
            access=_access(flags, TYPE_ACCESS),
            is_nested=index in self.enclosing,
            is_abstract=flags.tdAbstract,
            is_sealed=flags.tdSealed,
            base_type=self._coded_type(row.Extends, decoder),
            interfaces=interfaces,
            attributes=list(self.attributes.get(("TypeDef", index), ())),
        )
        for field_ref in row.FieldList or []:
            try:
                f = self.read_field(field_ref.row_index, decoder)
            except SignatureError as e:
                logger.warning(
                    "Skipping field %d of %s: %s", field_ref.row_index, ref.full_name, e
                )
                continue
            if f.name == VALUE_FIELD and t.category is TypeCategory.ENUM:
                t.enum_underlying_type = f.field_type
            t.add_member(f)
        for method_index in self._method_indices(index):
            try:
                method = self.read_method(method_index, ref.generic_parameters)
            except SignatureError as e:
                logger.warning("Skipping method %d of %s: %s", method_index, ref.full_name, e)
                continue
            t.add_member(method)
        return t

    def read_interfaces(self) -> dict[int, list[TypeRef]]:
        out: dict[int, list[TypeRef]] = defaultdict(list)
        for row in rows(self.tables, "InterfaceImpl"):
            owner = row.Class.row_index
            decoder = self._decoder(self.type_def_ref(owner).generic_parameters)
            interface = self._coded_type(row.Interface, decoder)
            if interface is not None:
                out[owner].append(interface)
        return out

    def read_assembly(self, default_name: str) -> AssemblyDefinition:
        self.read_constants()
        self.read_attributes()

        assembly_rows = rows(self.tables, "Assembly")
        if assembly_rows:
            a = assembly_rows[0]
            name = text(a.Name) or default_name
            version = f"{a.MajorVersion}.{a.MinorVersion}.{a.BuildNumber}.{a.RevisionNumber}"
            attributes = list(self.attributes.get(("Assembly", 1), ()))
        else:
            name, version, attributes = default_name, "0.0.0.0", []
        assembly = AssemblyDefinition(name=name, version=version, attributes=attributes)

        interfaces = self.read_interfaces()
        types: dict[int, TypeDefinition] = {}
        for index, row in enumerate(self.type_defs, start=1):
            if text(row.TypeName) == MODULE_TYPE and index not in self.enclosing:
                continue
            types[index] = self.read_type(index, interfaces.get(index, []))
        self.read_properties_and_events(types)

        for index, t in types.items():
            parent = types.get(self.enclosing.get(index, 0))
            if parent is not None:
                t.declaring_type = parent
                parent.nested_types.append(t)
            elif index not in self.enclosing:
                assembly.types.append(t)
        return assembly


def load_assembly(path: Path | str, resolver: AssemblyResolver | None = None) -> AssemblyDefinition:
    """Read the assembly at *path* into an AssemblyDefinition."""
    path = Path(path)
    if resolver is None:
        resolver = AssemblyResolver([path.parent])
    pe = dnfile_tables.open_assembly(path)
    try:
        reader = _MetadataReader(pe.net.mdtables, resolver)
        assembly = reader.read_assembly(path.stem)
    except SignatureError as e:
        raise SignatureError(e.message, path) from e
    finally:
        pe.close()
    logger.info("Assembly loaded: %s (%d types)", path, len(assembly.all_types()))
    return assembly
