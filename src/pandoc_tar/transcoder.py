"""Per-entry transcoding with failure isolation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .archive import Entry, NormalFile, file_entry, to_tar_path
from .converter import convert_document
from .engine import DocumentEngine
from .errors import PathEncodingError
from .params import ConversionParams

__all__ = [
    "EntryOutcome",
    "EntryStatus",
    "transcode_entry",
    "transcode_entry_outcome",
]


class EntryStatus(Enum):
    """What happened to one archive entry."""

    CONVERTED = "converted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EntryOutcome:
    """The entry to emit plus how it was produced from ``source``."""

    source: Entry
    entry: Entry
    status: EntryStatus
    reason: Optional[str] = None


def transcode_entry(
    params: ConversionParams,
    entry: Entry,
    *,
    engine: DocumentEngine,
) -> Entry:
    """Return the converted replacement for ``entry`` or ``entry`` itself."""

    return transcode_entry_outcome(params, entry, engine=engine).entry


def transcode_entry_outcome(
    params: ConversionParams,
    entry: Entry,
    *,
    engine: DocumentEngine,
) -> EntryOutcome:
    """Convert a regular-file entry, passing anything else through.

    Never raises. A failed conversion leaves the original entry in place; a
    successful one yields a brand-new file entry, so only the path and the
    content survive from the source.
    """

    content = entry.content
    if not isinstance(content, NormalFile):
        return EntryOutcome(
            source=entry,
            entry=entry,
            status=EntryStatus.SKIPPED,
            reason=f"{content.kind.value} entries are not converted",
        )

    try:
        target_path = to_tar_path(entry.path, False)
    except PathEncodingError:
        target_path = entry.path

    try:
        text = content.data.decode("utf-8")
    except UnicodeDecodeError as exc:
        return EntryOutcome(
            source=entry,
            entry=entry,
            status=EntryStatus.FAILED,
            reason=f"Content is not valid UTF-8: {exc}",
        )

    outcome = convert_document(params.with_text(text), engine)
    if not outcome.ok or outcome.text is None:
        return EntryOutcome(
            source=entry,
            entry=entry,
            status=EntryStatus.FAILED,
            reason=outcome.reason,
        )

    return EntryOutcome(
        source=entry,
        entry=file_entry(target_path, outcome.text.encode("utf-8")),
        status=EntryStatus.CONVERTED,
    )
