"""Shared helpers for pandoc-tar: logging, TOML config, workspace."""

from __future__ import annotations

from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    read_config_template,
    write_config_template,
)
from .logging import (
    LOG_FILENAME,
    JsonLogFormatter,
    close_logger,
    configure_logger,
    parse_level,
)
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "read_config_template",
    "write_config_template",
    "LOG_FILENAME",
    "JsonLogFormatter",
    "close_logger",
    "configure_logger",
    "parse_level",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
