"""Exception hierarchy for pandoc-tar."""

from __future__ import annotations

__all__ = [
    "PandocTarError",
    "ConversionError",
    "FormatUnknownError",
    "FormatNotTextReadableError",
    "FormatNotTextWritableError",
    "TemplateError",
    "ParseError",
    "RenderError",
    "ArchiveError",
    "ArchiveDecodeError",
    "PathEncodingError",
    "DependencyError",
]


class PandocTarError(RuntimeError):
    """Base class for every error raised by pandoc-tar."""


class ConversionError(PandocTarError):
    """Raised when a document cannot be converted."""


class FormatUnknownError(ConversionError):
    """Raised when a reader or writer format is not in the registry."""

    def __init__(self, format_name: str, role: str = "format") -> None:
        super().__init__(f"Unknown {role} format '{format_name}'.")
        self.format_name = format_name
        self.role = role


class FormatNotTextReadableError(ConversionError):
    """Raised when the requested reader only handles binary input."""

    def __init__(self, format_name: str) -> None:
        super().__init__(f"{format_name} is not a text reader")
        self.format_name = format_name


class FormatNotTextWritableError(ConversionError):
    """Raised when the requested writer only produces binary output."""

    def __init__(self, format_name: str) -> None:
        super().__init__(f"{format_name} is not a text writer")
        self.format_name = format_name


class TemplateError(ConversionError):
    """Raised when a standalone template cannot be loaded or compiled."""


class ParseError(ConversionError):
    """Raised when the reader rejects the source text."""


class RenderError(ConversionError):
    """Raised when the writer fails while rendering a document."""


class ArchiveError(PandocTarError):
    """Base class for tar codec failures."""


class ArchiveDecodeError(ArchiveError):
    """Raised when tar headers or member data cannot be decoded."""


class PathEncodingError(ArchiveError):
    """Raised when an entry path does not fit the tar header limits."""


class DependencyError(PandocTarError):
    """Raised when pypandoc or the pandoc binary is unavailable."""
