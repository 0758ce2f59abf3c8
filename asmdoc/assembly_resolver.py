"""Locate dependency assemblies in search directories."""

import logging
from collections.abc import Iterable
from pathlib import Path

from asmdoc import dnfile_tables
from asmdoc.errors import LoadError
from asmdoc.models import ElementType

logger = logging.getLogger(__name__)

ASSEMBLY_EXTENSIONS = (".dll", ".exe")
VALUE_FIELD = "value__"


class AssemblyResolver:
    """Find referenced assemblies by simple name and answer enum questions about them."""

    def __init__(self, search_dirs: Iterable[Path | str] = ()) -> None:
        self.search_dirs: list[Path] = []
        for d in search_dirs:
            path = Path(d).resolve()
            if path not in self.search_dirs:
                self.search_dirs.append(path)
                logger.debug("Reference search directory: %s", path)
        self._enums: dict[str, dict[str, ElementType]] = {}

    def locate(self, assembly_name: str) -> Path | None:
        for d in self.search_dirs:
            for ext in ASSEMBLY_EXTENSIONS:
                candidate = d / f"{assembly_name}{ext}"
                if candidate.is_file():
                    return candidate
        return None

    def _load_enums(self, assembly_name: str) -> dict[str, ElementType]:
        path = self.locate(assembly_name)
        if path is None:
            logger.debug("Assembly %s not found in search directories", assembly_name)
            return {}
        try:
            pe = dnfile_tables.open_assembly(path)
        except LoadError as e:
            logger.warning("Cannot load referenced assembly: %s", e)
            return {}
        try:
            enums = enum_underlying_types(pe.net.mdtables)
        finally:
            pe.close()
        logger.info("Assembly loaded: %s", path)
        return enums

    def enum_underlying_type(self, assembly_name: str, type_full_name: str) -> ElementType | None:
        """Underlying element type of an enum declared in another assembly."""
        if assembly_name not in self._enums:
            self._enums[assembly_name] = self._load_enums(assembly_name)
        return self._enums[assembly_name].get(type_full_name)


def enum_underlying_types(tables) -> dict[str, ElementType]:
    """Map each enum's full name to the element type of its value__ field."""
    type_defs = dnfile_tables.rows(tables, "TypeDef")
    names = dnfile_tables.type_def_full_names(tables)
    out: dict[str, ElementType] = {}
    for index, row in enumerate(type_defs, start=1):
        for ref in row.FieldList or []:
            field = ref.row
            if field is None or dnfile_tables.text(field.Name) != VALUE_FIELD:
                continue
            signature = dnfile_tables.blob(field.Signature)
            if len(signature) >= 2:
                try:
                    out[names[index]] = ElementType(signature[1])
                except ValueError:
                    logger.debug("Unexpected enum storage type in %s", names[index])
            break
    return out
