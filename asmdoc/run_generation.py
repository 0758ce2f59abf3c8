"""Orchestration logic for generating one Markdown document from an assembly."""

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from asmdoc.assembly_resolver import AssemblyResolver
from asmdoc.comment_document import EMPTY_DOCUMENT, CommentDocument, load_comment_document
from asmdoc.document_writer import DocumentWriter
from asmdoc.errors import AssemblyMismatchError, OutputError
from asmdoc.identity_assigner import build_anchor_map
from asmdoc.load_config import load_config
from asmdoc.metadata_loader import load_assembly
from asmdoc.models import AssemblyDefinition

logger = logging.getLogger(__name__)


def default_xml_path(assembly_path: Path) -> Path:
    return assembly_path.with_suffix(".xml")


def default_output_path(assembly_path: Path) -> Path:
    return assembly_path.with_suffix(".md")


def _load_comments(xml_path: Path | None, assembly_path: Path) -> CommentDocument:
    if xml_path is not None:
        return load_comment_document(xml_path)
    candidate = default_xml_path(assembly_path)
    if not candidate.exists():
        logger.info("No documentation file next to %s; rendering without comments", assembly_path)
        return EMPTY_DOCUMENT
    return load_comment_document(candidate)


async def load_inputs(
    assembly_path: Path,
    xml_path: Path | None,
    resolver: AssemblyResolver,
) -> tuple[AssemblyDefinition, CommentDocument]:
    """Load the comment document and the assembly concurrently."""
    comments, assembly = await asyncio.gather(
        asyncio.to_thread(_load_comments, xml_path, assembly_path),
        asyncio.to_thread(load_assembly, assembly_path, resolver),
    )
    if comments.assembly_name is not None and comments.assembly_name != assembly.name:
        raise AssemblyMismatchError(
            f"Documentation is for assembly '{comments.assembly_name}', "
            f"not '{assembly.name}'",
            xml_path or default_xml_path(assembly_path),
        )
    return assembly, comments


def write_document(
    assembly: AssemblyDefinition,
    comments: CommentDocument,
    output_path: Path,
    *,
    initial_level: int = 1,
    metadata_attributes: Sequence[str] = (),
) -> None:
    """Render the document; a partially written file is removed on failure."""
    anchors = build_anchor_map(assembly)
    writer = DocumentWriter(
        anchors,
        comments,
        initial_level=initial_level,
        metadata_attributes=metadata_attributes,
    )
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="\n") as out:
            writer.write(assembly, out)
    except OSError as e:
        if output_path.is_file():
            output_path.unlink()
        raise OutputError(f"Cannot write output: {e.strerror or e}", output_path) from e
    except BaseException:
        output_path.unlink(missing_ok=True)
        raise


def generate(
    assembly_path: Path,
    *,
    xml_path: Path | None = None,
    output_path: Path | None = None,
    search_dirs: Sequence[Path | str] = (),
    initial_level: int = 1,
    metadata_attributes: Sequence[str] = (),
) -> Path:
    """Generate the Markdown document and return its path."""
    output_path = output_path or default_output_path(assembly_path)
    resolver = AssemblyResolver([assembly_path.parent, *search_dirs])
    assembly, comments = asyncio.run(load_inputs(assembly_path, xml_path, resolver))
    write_document(
        assembly,
        comments,
        output_path,
        initial_level=initial_level,
        metadata_attributes=metadata_attributes,
    )
    return output_path


def _settings(args: argparse.Namespace) -> dict[str, Any]:
    """Merge command-line flags over the loaded configuration."""
    config = load_config(args.config)
    initial_level = args.level if args.level is not None else config["output"]["initial_level"]
    search_dirs = [*config["search_dirs"], *(args.search_dir or [])]
    return {
        "initial_level": int(initial_level),
        "metadata_attributes": list(config["metadata_attributes"]),
        "search_dirs": search_dirs,
    }


def run_generation(args: argparse.Namespace) -> int:
    """Execute the full generation pipeline."""
    settings = _settings(args)
    output = generate(
        args.assembly,
        xml_path=args.xml,
        output_path=args.output,
        **settings,
    )
    print(f"Generated Markdown documentation into: {output}")
    return 0
