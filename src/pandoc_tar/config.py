"""Configuration loader for pandoc-tar runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from .core import config as core_config
from .core import logging as core_logging
from .core import workspace as workspace_mod
from .params import ConversionParams, WrapPolicy

CONFIG_FILENAME = "pandoc_tar.toml"
CONFIG_ENV = "PANDOC_TAR_CONFIG"
ENV_PREFIX = "PANDOC_TAR_"

_DEFAULT_LOG_LEVEL = "INFO"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class PandocTarConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class PandocTarConfig:
    """Fully resolved configuration for a run."""

    from_format: Optional[str]
    to_format: Optional[str]
    wrap: Optional[WrapPolicy]
    columns: Optional[int]
    standalone: bool
    template_path: Optional[Path]
    log_level: str

    def to_params(self, template: Optional[str] = None) -> ConversionParams:
        """Build the parameter template shared by every entry."""

        return ConversionParams(
            from_format=self.from_format,
            to_format=self.to_format,
            wrap=self.wrap,
            columns=self.columns,
            standalone=self.standalone,
            template=template,
        )


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    from_format: Optional[str] = None
    to_format: Optional[str] = None
    wrap: Optional[WrapPolicy] = None
    columns: Optional[int] = None
    standalone: Optional[bool] = None
    template_path: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: PandocTarConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise PandocTarConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    defaults = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(defaults, parsed)
        except core_config.TomlConfigError as exc:
            raise PandocTarConfigError(str(exc)) from exc
    elif config_path is not None or _has_env_config(env_map):
        raise PandocTarConfigError(f"Config file not found: {requested_path}")

    conversion = defaults["conversion"]

    from_format = _resolve_format(
        overrides.from_format,
        _parse_env_string(env_map, "FROM"),
        conversion["from"],
        key="conversion.from",
    )
    to_format = _resolve_format(
        overrides.to_format,
        _parse_env_string(env_map, "TO"),
        conversion["to"],
        key="conversion.to",
    )
    wrap = _resolve_wrap(
        overrides.wrap,
        _parse_env_string(env_map, "WRAP"),
        conversion["wrap"],
    )
    columns = _resolve_columns(
        overrides.columns,
        _parse_env_string(env_map, "COLUMNS"),
        conversion["columns"],
    )
    standalone = _resolve_standalone(
        overrides.standalone,
        _parse_env_string(env_map, "STANDALONE"),
        conversion["standalone"],
    )
    template_path = _resolve_template_path(
        _pick_first(
            overrides.template_path,
            _parse_env_string(env_map, "TEMPLATE"),
            conversion["template"],
        ),
        layout=layout,
    )
    log_level = _resolve_log_level(
        overrides.log_level,
        _parse_env_string(env_map, "LOG_LEVEL"),
        defaults["logging"]["level"],
    )

    config = PandocTarConfig(
        from_format=from_format,
        to_format=to_format,
        wrap=wrap,
        columns=columns,
        standalone=standalone,
        template_path=template_path,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "conversion": {
            "from": None,
            "to": None,
            "wrap": None,
            "columns": None,
            "standalone": None,
            "template": None,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    return bool((env_map.get(CONFIG_ENV) or "").strip())


def _resolve_format(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
    *,
    key: str,
) -> Optional[str]:
    candidate = _pick_first(override, env_value, file_value)
    if candidate is None:
        return None
    if not isinstance(candidate, str):
        raise PandocTarConfigError(f"{key} must be a string.")
    value = candidate.strip()
    return value or None


def _resolve_wrap(
    override: Optional[WrapPolicy],
    env_value: Optional[str],
    file_value: object,
) -> Optional[WrapPolicy]:
    candidate = _pick_first(override, env_value, file_value)
    if candidate is None or isinstance(candidate, WrapPolicy):
        return candidate
    if not isinstance(candidate, str):
        raise PandocTarConfigError("conversion.wrap must be a string.")
    if not candidate.strip():
        return None
    try:
        return WrapPolicy.from_value(candidate)
    except ValueError as exc:
        raise PandocTarConfigError(str(exc)) from exc


def _resolve_columns(
    override: Optional[int],
    env_value: Optional[str],
    file_value: object,
) -> Optional[int]:
    candidate = _pick_first(override, env_value, file_value)
    if candidate is None:
        return None
    if isinstance(candidate, bool):
        raise PandocTarConfigError("conversion.columns must be an integer.")
    if isinstance(candidate, str):
        try:
            candidate = int(candidate.strip())
        except ValueError as exc:
            raise PandocTarConfigError(
                f"conversion.columns must be an integer, got '{candidate}'."
            ) from exc
    if not isinstance(candidate, int):
        raise PandocTarConfigError("conversion.columns must be an integer.")
    if candidate <= 0:
        raise PandocTarConfigError("conversion.columns must be positive.")
    return candidate


def _resolve_standalone(
    override: Optional[bool],
    env_value: Optional[str],
    file_value: object,
) -> bool:
    candidate = _pick_first(override, env_value, file_value)
    if candidate is None:
        return False
    if isinstance(candidate, bool):
        return candidate
    if isinstance(candidate, str):
        lowered = candidate.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise PandocTarConfigError(
        f"conversion.standalone must be a boolean, got '{candidate}'."
    )


def _resolve_template_path(
    candidate: object, *, layout: workspace_mod.WorkspaceLayout
) -> Optional[Path]:
    if candidate is None:
        return None
    if isinstance(candidate, str):
        raw = candidate.strip()
        if not raw:
            return None
        candidate = Path(raw)
    if not isinstance(candidate, Path):
        raise PandocTarConfigError(
            "conversion.template must be a path string when provided."
        )
    expanded = candidate.expanduser()
    if not expanded.is_absolute():
        return (layout.home / expanded).resolve()
    return expanded


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if candidate is None:
        raise PandocTarConfigError("logging.level must be provided.")
    if not isinstance(candidate, str):
        raise PandocTarConfigError("logging.level must be a string.")
    level = candidate.strip()
    if not level:
        raise PandocTarConfigError(
            "logging.level must be a non-empty string."
        )
    try:
        core_logging.parse_level(level)
    except ValueError as exc:
        raise PandocTarConfigError(str(exc)) from exc
    return level.upper()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
