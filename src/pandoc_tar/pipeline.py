"""Archive pipeline: decode, transcode each entry in order, re-encode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .archive import iter_entries, write_entries
from .engine import DocumentEngine
from .errors import ArchiveDecodeError
from .params import ConversionParams
from .transcoder import EntryOutcome, EntryStatus, transcode_entry_outcome

__all__ = [
    "PipelineResult",
    "PipelineSummary",
    "run_pipeline",
    "transcode_archive",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSummary:
    """Per-entry outcomes and archive-level status for one run."""

    outcomes: tuple[EntryOutcome, ...]
    decode_error: Optional[str] = None

    @property
    def entry_count(self) -> int:
        return len(self.outcomes)

    @property
    def converted_count(self) -> int:
        return self._count(EntryStatus.CONVERTED)

    @property
    def skipped_count(self) -> int:
        return self._count(EntryStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(EntryStatus.FAILED)

    @property
    def truncated(self) -> bool:
        return self.decode_error is not None

    def _count(self, status: EntryStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)


@dataclass(frozen=True)
class PipelineResult:
    data: bytes
    summary: PipelineSummary


def run_pipeline(
    params: ConversionParams,
    data: bytes,
    *,
    engine: DocumentEngine,
    logger: Optional[logging.Logger] = None,
) -> PipelineResult:
    """Transcode every entry of the tar archive ``data``.

    Conversion failures keep the original entry. A decode error ends the
    archive at that point: entries read before it are still written and the
    output is properly terminated. Nothing here raises for bad input.
    """

    log = logger or _LOGGER
    log.info(
        "Starting archive transcode",
        extra={
            "input_bytes": len(data),
            "reader_format": params.reader_format,
            "writer_format": params.writer_format,
            "standalone": params.is_standalone,
        },
    )

    outcomes: list[EntryOutcome] = []
    decode_error: Optional[str] = None
    try:
        for entry in iter_entries(data):
            outcome = transcode_entry_outcome(params, entry, engine=engine)
            outcomes.append(outcome)
            _log_outcome(log, outcome)
    except ArchiveDecodeError as exc:
        decode_error = str(exc)
        log.warning(
            "Archive decode stopped early; remaining data ignored",
            extra={"reason": decode_error, "entries_read": len(outcomes)},
        )

    summary = PipelineSummary(
        outcomes=tuple(outcomes), decode_error=decode_error
    )
    output = write_entries(outcome.entry for outcome in summary.outcomes)

    log.info(
        "Completed archive transcode",
        extra={
            "entry_count": summary.entry_count,
            "converted_count": summary.converted_count,
            "skipped_count": summary.skipped_count,
            "failed_count": summary.failed_count,
            "truncated": summary.truncated,
            "output_bytes": len(output),
        },
    )
    return PipelineResult(data=output, summary=summary)


def transcode_archive(
    params: ConversionParams,
    data: bytes,
    *,
    engine: DocumentEngine,
) -> bytes:
    """Bytes-in, bytes-out form of :func:`run_pipeline`."""

    return run_pipeline(params, data, engine=engine).data


def _log_outcome(log: logging.Logger, outcome: EntryOutcome) -> None:
    details = {
        "entry_path": outcome.source.path,
        "entry_kind": outcome.source.kind.value,
    }
    if outcome.status is EntryStatus.CONVERTED:
        log.debug(
            "Converted entry",
            extra={**details, "output_path": outcome.entry.path},
        )
    elif outcome.status is EntryStatus.SKIPPED:
        log.debug("Passed entry through", extra=details)
    else:
        log.warning(
            "Conversion failed; entry kept unchanged",
            extra={**details, "reason": outcome.reason},
        )
