"""Document conversion: resolve formats, parse, render."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .engine import DocumentEngine, Template
from .errors import FormatNotTextReadableError, FormatNotTextWritableError
from .formats import (
    ResolvedFormat,
    resolve_reader,
    resolve_writer,
    template_base_name,
)
from .params import ConversionParams

__all__ = [
    "ConversionOutcome",
    "ConversionStatus",
    "convert_document",
]


class ConversionStatus(Enum):
    """Outcome status for a single document conversion."""

    CONVERTED = "converted"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionOutcome:
    """Either the converted text or the reason the conversion failed."""

    status: ConversionStatus
    text: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def converted(cls, text: str) -> "ConversionOutcome":
        return cls(status=ConversionStatus.CONVERTED, text=text)

    @classmethod
    def failed(cls, error: Exception) -> "ConversionOutcome":
        return cls(
            status=ConversionStatus.FAILED,
            reason=str(error) or type(error).__name__,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.status is ConversionStatus.CONVERTED


def convert_document(
    params: ConversionParams, engine: DocumentEngine
) -> ConversionOutcome:
    """Convert ``params.text`` and report the outcome without raising.

    ``engine`` is the only collaborator; the parameters carry no paths or
    handles, so whatever the document contains, converting it cannot read
    files or reach the network.
    """

    try:
        text = _convert_document(params, engine)
    except Exception as exc:
        return ConversionOutcome.failed(exc)
    return ConversionOutcome.converted(text)


def _convert_document(params: ConversionParams, engine: DocumentEngine) -> str:
    reader = resolve_reader(params.reader_format)
    writer = resolve_writer(params.writer_format)

    if not reader.is_text:
        raise FormatNotTextReadableError(reader.name)
    if not writer.is_text:
        raise FormatNotTextWritableError(writer.name)

    standalone = params.is_standalone
    template = (
        _resolve_template(params, writer, engine) if standalone else None
    )

    document = engine.read(reader, params.text, standalone=standalone)
    return engine.write(
        writer,
        document,
        wrap=params.wrap_policy,
        columns=params.column_width,
        template=template,
    )


def _resolve_template(
    params: ConversionParams,
    writer: ResolvedFormat,
    engine: DocumentEngine,
) -> Template:
    if params.template is None:
        return engine.default_template(template_base_name(writer.name))
    return engine.compile_template(writer, params.template)
