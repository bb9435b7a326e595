"""Closed registry of reader/writer capabilities keyed by format name.

A format identifier is ``base`` optionally followed by extension modifiers
such as ``markdown+smart-raw_html``. Identifiers are case-insensitive. The
full identifier (modifiers included) is what gets handed to the engine; only
the base name is looked up here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import FormatUnknownError

__all__ = [
    "Capability",
    "FormatCapabilities",
    "FormatSpec",
    "ResolvedFormat",
    "REGISTRY",
    "parse_format",
    "resolve_reader",
    "resolve_writer",
    "template_base_name",
]

_FORMAT_PATTERN = re.compile(r"^([a-z0-9_]+)((?:[+-][a-z0-9_]+)*)$")
_MODIFIER_PATTERN = re.compile(r"[+-][a-z0-9_]+")


class Capability(Enum):
    """Whether a reader or writer works on text or on raw bytes."""

    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class FormatCapabilities:
    name: str
    reader: Optional[Capability] = None
    writer: Optional[Capability] = None


@dataclass(frozen=True)
class FormatSpec:
    """A parsed format identifier."""

    name: str
    base: str
    modifiers: tuple[str, ...] = ()

    @property
    def enabled_extensions(self) -> tuple[str, ...]:
        return tuple(m[1:] for m in self.modifiers if m.startswith("+"))

    @property
    def disabled_extensions(self) -> tuple[str, ...]:
        return tuple(m[1:] for m in self.modifiers if m.startswith("-"))


@dataclass(frozen=True)
class ResolvedFormat:
    """A format spec paired with the capability it resolved to."""

    spec: FormatSpec
    capability: Capability

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def is_text(self) -> bool:
        return self.capability is Capability.TEXT


_T = Capability.TEXT
_B = Capability.BINARY

# Text readers and writers, by pandoc name.
_TEXT_BOTH = (
    "biblatex",
    "bibtex",
    "commonmark",
    "commonmark_x",
    "csljson",
    "djot",
    "docbook",
    "dokuwiki",
    "fb2",
    "gfm",
    "haddock",
    "html",
    "ipynb",
    "jats",
    "jira",
    "json",
    "latex",
    "man",
    "markdown",
    "markdown_mmd",
    "markdown_phpextra",
    "markdown_strict",
    "mediawiki",
    "muse",
    "native",
    "opml",
    "org",
    "rst",
    "rtf",
    "textile",
    "typst",
)
_TEXT_READERS_ONLY = (
    "creole",
    "csv",
    "endnotexml",
    "mdoc",
    "pod",
    "ris",
    "t2t",
    "tikiwiki",
    "tsv",
    "twiki",
    "vimwiki",
)
_TEXT_WRITERS_ONLY = (
    "ansi",
    "asciidoc",
    "asciidoc_legacy",
    "asciidoctor",
    "beamer",
    "bbcode",
    "context",
    "docbook4",
    "docbook5",
    "dzslides",
    "html4",
    "html5",
    "icml",
    "jats_archiving",
    "jats_articleauthoring",
    "jats_publishing",
    "markua",
    "ms",
    "opendocument",
    "plain",
    "revealjs",
    "s5",
    "slideous",
    "slidy",
    "tei",
    "texinfo",
    "vimdoc",
    "xwiki",
    "zimwiki",
)


def _build_registry() -> dict[str, FormatCapabilities]:
    table: dict[str, FormatCapabilities] = {}
    for name in _TEXT_BOTH:
        table[name] = FormatCapabilities(name, reader=_T, writer=_T)
    for name in _TEXT_READERS_ONLY:
        table[name] = FormatCapabilities(name, reader=_T)
    for name in _TEXT_WRITERS_ONLY:
        table[name] = FormatCapabilities(name, writer=_T)
    for name in ("docx", "odt", "epub", "pptx"):
        table[name] = FormatCapabilities(name, reader=_B, writer=_B)
    table["xlsx"] = FormatCapabilities("xlsx", reader=_B)
    for name in ("epub2", "epub3", "pdf", "chunkedhtml"):
        table[name] = FormatCapabilities(name, writer=_B)
    return table


def _validate_registry(table: Mapping[str, FormatCapabilities]) -> None:
    for key, entry in table.items():
        if key != entry.name or not re.fullmatch(r"[a-z0-9_]+", key):
            raise RuntimeError(f"Malformed format registry key '{key}'.")
        if entry.reader is None and entry.writer is None:
            raise RuntimeError(
                f"Format '{key}' has neither a reader nor a writer."
            )


_REGISTRY = _build_registry()
_validate_registry(_REGISTRY)
REGISTRY: Mapping[str, FormatCapabilities] = MappingProxyType(_REGISTRY)


def parse_format(value: str, *, role: str = "format") -> FormatSpec:
    """Parse ``value`` into a :class:`FormatSpec` or raise."""

    normalized = value.strip().lower()
    match = _FORMAT_PATTERN.match(normalized)
    if match is None:
        raise FormatUnknownError(value, role)
    base, modifiers = match.groups()
    return FormatSpec(
        name=normalized,
        base=base,
        modifiers=tuple(_MODIFIER_PATTERN.findall(modifiers)),
    )


def resolve_reader(value: str) -> ResolvedFormat:
    spec = parse_format(value, role="reader")
    entry = REGISTRY.get(spec.base)
    if entry is None or entry.reader is None:
        raise FormatUnknownError(value, "reader")
    return ResolvedFormat(spec=spec, capability=entry.reader)


def resolve_writer(value: str) -> ResolvedFormat:
    spec = parse_format(value, role="writer")
    entry = REGISTRY.get(spec.base)
    if entry is None or entry.writer is None:
        raise FormatUnknownError(value, "writer")
    return ResolvedFormat(spec=spec, capability=entry.writer)


def template_base_name(value: str) -> str:
    """Return the default-template name for a writer format.

    Keeps the leading run of alphanumeric characters and lower-cases it, so
    ``HTML5+smart`` becomes ``html5`` and ``markdown_strict`` becomes
    ``markdown``.
    """

    chars = []
    for char in value:
        if not char.isalnum():
            break
        chars.append(char)
    return "".join(chars).lower()
