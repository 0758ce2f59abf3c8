"""Thin helpers over dnfile's metadata tables."""

import logging
from pathlib import Path
from typing import Any

import dnfile
import pefile

from asmdoc.errors import LoadError, MetadataFormatError

logger = logging.getLogger(__name__)


def open_assembly(path: Path) -> dnfile.dnPE:
    """Open a .NET binary; the caller closes it."""
    try:
        pe = dnfile.dnPE(str(path))
    except pefile.PEFormatError as e:
        raise MetadataFormatError(f"Not a PE image: {e}", path) from e
    except OSError as e:
        raise LoadError(f"Cannot read assembly: {e}", path) from e
    if pe.net is None or pe.net.mdtables is None:
        pe.close()
        raise MetadataFormatError("No .NET metadata found", path)
    return pe


def text(value: Any) -> str:
    """Heap string column as str."""
    if value is None:
        return ""
    return str(value)


def blob(value: Any) -> bytes:
    """Blob column as bytes."""
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    data = getattr(value, "value", None)
    return data if isinstance(data, bytes) else b""


def rows(tables: Any, name: str) -> list[Any]:
    table = getattr(tables, name, None)
    if table is None:
        return []
    return list(table.rows)


def table_name(index: Any) -> str | None:
    """Name of the table a (coded) index points into."""
    table = getattr(index, "table", None)
    return table.name if table is not None else None


def nesting(tables: Any) -> dict[int, int]:
    """Map nested TypeDef row index to its enclosing TypeDef row index."""
    return {
        row.NestedClass.row_index: row.EnclosingClass.row_index
        for row in rows(tables, "NestedClass")
    }


def type_def_full_names(tables: Any) -> dict[int, str]:
    """Map every TypeDef row index to its metadata full name (nesting with '+')."""
    type_defs = rows(tables, "TypeDef")
    enclosing = nesting(tables)
    names: dict[int, str] = {}

    def full(index: int) -> str:
        if index in names:
            return names[index]
        row = type_defs[index - 1]
        name = text(row.TypeName)
        if index in enclosing:
            result = f"{full(enclosing[index])}+{name}"
        else:
            namespace = text(row.TypeNamespace)
            result = f"{namespace}.{name}" if namespace else name
        names[index] = result
        return result

    for i in range(1, len(type_defs) + 1):
        full(i)
    return names

