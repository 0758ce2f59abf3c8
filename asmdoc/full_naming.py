"""Signature-bearing canonical keys, unique per documented entity."""

from asmdoc.models import (
    EventDefinition,
    FieldDefinition,
    MethodDefinition,
    Namespace,
    PropertyDefinition,
    TypeDefinition,
)
from asmdoc.naming import property_name, signatured_name, type_name


def _declaring_key(member: FieldDefinition | PropertyDefinition | EventDefinition) -> str:
    if member.declaring_type is None:
        return ""
    return full_name(member.declaring_type) + "."


def full_name(
    entity: Namespace
    | TypeDefinition
    | FieldDefinition
    | PropertyDefinition
    | EventDefinition
    | MethodDefinition,
) -> str:
    """Return the canonical key: namespace-qualified, parameters included."""
    match entity:
        case Namespace(name=name):
            return f"N:{name}"
        case TypeDefinition():
            return type_name(entity.reference, qualified=True)
        case FieldDefinition() | EventDefinition():
            return _declaring_key(entity) + entity.name
        case PropertyDefinition():
            name = property_name(entity, include_parameter_names=False, qualified=True)
            return _declaring_key(entity) + name
        case MethodDefinition():
            return signatured_name(entity, qualified=True)
    raise TypeError(f"Unsupported entity: {entity!r}")
