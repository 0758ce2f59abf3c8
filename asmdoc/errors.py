"""Exceptions raised while generating documentation."""

from pathlib import Path


class AsmdocError(Exception):
    """Base exception for all generation failures."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(f"{path}: {message}" if path is not None else message)


class LoadError(AsmdocError):
    """Raised when an input file cannot be read."""


class MetadataFormatError(LoadError):
    """Raised when a binary is not a readable .NET assembly."""


class CommentFormatError(LoadError):
    """Raised when an XML documentation file is malformed."""


class AssemblyMismatchError(LoadError):
    """Raised when the XML documentation belongs to another assembly."""


class SignatureError(MetadataFormatError):
    """Raised when a signature or attribute blob cannot be decoded."""


class OutputError(AsmdocError):
    """Raised when the output document cannot be written."""
