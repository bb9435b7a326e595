"""Reading, merging and scaffolding the ``pandoc_tar.toml`` file."""

from __future__ import annotations

import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "read_config_template",
    "write_config_template",
]

_TEMPLATE_RESOURCE = "template.toml"


class TomlConfigError(RuntimeError):
    """A config file could not be read, parsed, merged or written."""


def load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except IsADirectoryError as exc:
        raise TomlConfigError(f"Config path is a directory: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Invalid TOML in {path}: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Copy ``override`` into ``base`` in place.

    Only keys already present in ``base`` are accepted, and a table may only
    replace a table. ``path`` is the dotted prefix used in error messages.
    """

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        current = base[key]
        if isinstance(current, MutableMapping):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"'{dotted}' must be a table, "
                    f"not {type(value).__name__}."
                )
            merge_defaults(current, value, path=f"{dotted}.")
        elif isinstance(value, Mapping):
            raise TomlConfigError(f"'{dotted}' must be a value, not a table.")
        else:
            base[key] = value


def read_config_template() -> str:
    """Return the commented default config shipped with the package."""

    resource = resources.files("pandoc_tar").joinpath(_TEMPLATE_RESOURCE)
    return resource.read_text(encoding="utf-8")


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the default config to ``path``, readable by the owner only."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_config_template(), encoding="utf-8")
    path.chmod(0o600)
    return path
