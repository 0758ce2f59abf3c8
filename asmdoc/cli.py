"""Command-line entry point."""

import argparse
import logging
from pathlib import Path

from asmdoc.errors import AsmdocError
from asmdoc.run_generation import run_generation

logger = logging.getLogger("asmdoc")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="asmdoc",
        description=(
            "Generate one Markdown document from a .NET assembly and its XML "
            "documentation file."
        ),
    )
    ap.add_argument("assembly", type=Path, help="Path to the .dll or .exe to document")
    ap.add_argument(
        "--xml",
        type=Path,
        help="XML documentation file (default: next to the assembly, same base name)",
    )
    ap.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Markdown output path (default: next to the assembly, .md extension)",
    )
    ap.add_argument(
        "--search-dir",
        action="append",
        type=Path,
        help="Extra directory searched for referenced assemblies (repeatable)",
    )
    ap.add_argument(
        "--level",
        type=int,
        help="Heading level of the top-level heading (default: 1)",
    )
    ap.add_argument("--config", help="Path to configuration file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def main(argv: list[str] | None = None) -> int:
    """Run the generator."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.level is not None and args.level < 1:
        logger.error("--level must be at least 1")
        return 2
    try:
        return run_generation(args)
    except AsmdocError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
