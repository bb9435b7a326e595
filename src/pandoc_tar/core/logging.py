"""Per-run logging for pandoc-tar.

stdout carries the output archive, so nothing may log there. Each run gets
one JSON-lines file handler in the workspace ``logs/`` directory and, with
``verbose``, a plain stderr handler. :func:`configure_logger` replaces any
handlers a previous run left behind; :func:`close_logger` ends the run.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, TextIO

__all__ = [
    "LOG_FILENAME",
    "JsonLogFormatter",
    "close_logger",
    "configure_logger",
    "parse_level",
]

LOG_FILENAME = "pandoc_tar.log"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3
_HANDLER_MARKER = "_pandoc_tar_handler"
_CONSOLE_FORMAT = "pandoc-tar: %(levelname)s %(message)s"

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields land under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def parse_level(name: str) -> int:
    """Return the numeric level for ``name``; unknown names raise ValueError."""

    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{name}'")
    return level


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    console_stream: TextIO | None = None,
) -> tuple[logging.Logger, Path]:
    """Attach this run's handlers to logger ``name``.

    Returns the logger and the log file actually opened, which is under a
    temp directory when ``log_dir`` is not writable. ``verbose`` lowers the
    file threshold to DEBUG and echoes records to ``console_stream``
    (stderr by default).
    """

    logger = logging.getLogger(name)
    close_logger(logger)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    try:
        file_handler, log_path = _open_log_file(log_dir)
    except PermissionError:
        file_handler, log_path = _open_log_file(_fallback_log_dir())
    file_handler.setLevel(logging.DEBUG if verbose else parse_level(level))
    _attach(logger, file_handler)

    if verbose:
        console = logging.StreamHandler(console_stream or sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        _attach(logger, console)

    return logger, log_path


def close_logger(logger: logging.Logger) -> None:
    """Flush and detach the handlers :func:`configure_logger` added."""

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()


def _open_log_file(log_dir: Path) -> tuple[RotatingFileHandler, Path]:
    log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    path = log_dir / LOG_FILENAME
    handler = RotatingFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    path.chmod(0o600)
    handler.setFormatter(JsonLogFormatter())
    return handler, path


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "pandoc-tar-logs"
