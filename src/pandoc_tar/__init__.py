"""Convert the text documents inside a tar archive with pandoc."""

from __future__ import annotations

from .archive import (
    Entry,
    EntryKind,
    NormalFile,
    OtherContent,
    file_entry,
    iter_entries,
    to_tar_path,
    write_entries,
)
from .converter import ConversionOutcome, ConversionStatus, convert_document
from .engine import Document, DocumentEngine, Template
from .errors import (
    ArchiveDecodeError,
    ConversionError,
    DependencyError,
    FormatNotTextReadableError,
    FormatNotTextWritableError,
    FormatUnknownError,
    PandocTarError,
    ParseError,
    PathEncodingError,
    RenderError,
    TemplateError,
)
from .params import ConversionParams, WrapPolicy
from .pipeline import (
    PipelineResult,
    PipelineSummary,
    run_pipeline,
    transcode_archive,
)
from .transcoder import (
    EntryOutcome,
    EntryStatus,
    transcode_entry,
    transcode_entry_outcome,
)

__all__ = [
    "Entry",
    "EntryKind",
    "NormalFile",
    "OtherContent",
    "file_entry",
    "iter_entries",
    "to_tar_path",
    "write_entries",
    "ConversionOutcome",
    "ConversionStatus",
    "convert_document",
    "Document",
    "DocumentEngine",
    "Template",
    "ArchiveDecodeError",
    "ConversionError",
    "DependencyError",
    "FormatNotTextReadableError",
    "FormatNotTextWritableError",
    "FormatUnknownError",
    "PandocTarError",
    "ParseError",
    "PathEncodingError",
    "RenderError",
    "TemplateError",
    "ConversionParams",
    "WrapPolicy",
    "PipelineResult",
    "PipelineSummary",
    "run_pipeline",
    "transcode_archive",
    "EntryOutcome",
    "EntryStatus",
    "transcode_entry",
    "transcode_entry_outcome",
]
