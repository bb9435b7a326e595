"""Document engine seam used by the converter.

The converter only ever talks to an object satisfying :class:`DocumentEngine`.
The protocol exposes parsing, rendering and template loading and nothing
else, so a conversion has no way to reach the filesystem or the network
through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .formats import ResolvedFormat
from .params import WrapPolicy

__all__ = [
    "Document",
    "DocumentEngine",
    "Template",
]


@dataclass(frozen=True)
class Document:
    """A parsed document in the engine's interchange form (pandoc JSON AST)."""

    ast: str


@dataclass(frozen=True)
class Template:
    """A compiled standalone template for one writer format.

    ``builtin`` templates are the engine's defaults; ``source`` then holds the
    default template text for reference only.
    """

    format: str
    source: str
    builtin: bool = False


class DocumentEngine(Protocol):
    """Readers, writers and templates for the supported formats."""

    def read(
        self,
        reader: ResolvedFormat,
        text: str,
        *,
        standalone: bool,
    ) -> Document:
        ...

    def write(
        self,
        writer: ResolvedFormat,
        document: Document,
        *,
        wrap: WrapPolicy,
        columns: int,
        template: Optional[Template],
    ) -> str:
        ...

    def default_template(self, base_name: str) -> Template:
        ...

    def compile_template(
        self, writer: ResolvedFormat, source: str
    ) -> Template:
        ...
