"""CLI entry point: transcode a tar archive read from stdin to stdout."""

from __future__ import annotations

import argparse
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    PandocTarConfigError,
    load_config,
)
from .core import workspace as workspace_mod
from .core.config import TomlConfigError, write_config_template
from .core.logging import close_logger, configure_logger
from .core.workspace import WorkspaceError
from .engine import DocumentEngine
from .errors import DependencyError
from .params import WrapPolicy
from .pipeline import PipelineSummary, run_pipeline
from .transcoder import EntryStatus

USAGE = "pandoc-tar [-f FORMAT] -t FORMAT <in.tar >out.tar"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pandoc-tar",
        usage=USAGE,
        description=(
            "Convert every text document inside a tar archive read from "
            "stdin and write the rebuilt archive to stdout. Entries that "
            "cannot be converted are copied unchanged."
        ),
        epilog=(
            "Run `pandoc-tar config init` to scaffold the default "
            "pandoc_tar.toml template."
        ),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
        help="show version and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="write details to stderr",
    )
    parser.add_argument(
        "-f",
        "--from",
        dest="from_format",
        metavar="FORMAT",
        help="read this markup format (default: markdown)",
    )
    parser.add_argument(
        "-t",
        "--to",
        dest="to_format",
        metavar="FORMAT",
        help="write this markup format (default: json)",
    )
    parser.add_argument(
        "--wrap",
        choices=[policy.value for policy in WrapPolicy],
        help="line wrapping mode for the writer (default: auto)",
    )
    parser.add_argument(
        "--columns",
        type=int,
        metavar="N",
        help="line width used when wrapping (default: 72)",
    )
    parser.add_argument(
        "-s",
        "--standalone",
        action="store_true",
        default=None,
        help="produce complete documents using a template",
    )
    parser.add_argument(
        "--template",
        type=Path,
        metavar="PATH",
        help="template file for standalone output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory)."
        ),
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and log files.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the log file level for the run (defaults to INFO).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    if args.columns is not None and args.columns <= 0:
        parser.error("--columns must be a positive integer.")

    overrides = ConfigOverrides(
        from_format=args.from_format,
        to_format=args.to_format,
        wrap=WrapPolicy.from_value(args.wrap) if args.wrap else None,
        columns=args.columns,
        standalone=args.standalone,
        template_path=_absolute(args.template),
        log_level=args.log_level,
    )

    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
        config = load_result.config
        template_source = _read_template(config.template_path)
    except PandocTarConfigError as exc:
        parser.error(str(exc))

    try:
        engine, engine_version = _build_engine()
    except DependencyError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    logger, log_path = configure_logger(
        "pandoc_tar",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "pandoc-tar CLI invoked",
        extra={
            "config_path": load_result.config_path,
            "engine_version": engine_version,
        },
    )

    try:
        result = run_pipeline(
            config.to_params(template_source),
            _read_input(),
            engine=engine,
            logger=logger,
        )
        _write_output(result.data)
    finally:
        close_logger(logger)

    if args.verbose:
        _print_summary(result.summary, log_path)
    return 0


def _build_engine() -> tuple[DocumentEngine, str]:
    """Return the pandoc engine and its version, failing fast if missing."""

    try:
        from .pandoc import PandocEngine
    except ImportError as exc:
        raise DependencyError(
            "pypandoc is required for document conversion. Install it with "
            "`pip install pypandoc` (or `pypandoc_binary` to bundle pandoc)."
        ) from exc

    engine = PandocEngine()
    return engine, engine.version()


def _read_template(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PandocTarConfigError(
            f"Unable to read template {path}: {exc}"
        ) from exc


def _read_input() -> bytes:
    return sys.stdin.buffer.read()


def _write_output(data: bytes) -> None:
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def _print_summary(
    summary: PipelineSummary,
    log_path: Path,
    console: Console | None = None,
) -> None:
    console = console or Console(stderr=True)
    table = Table(
        title="pandoc-tar summary", box=box.SIMPLE, show_header=False
    )
    table.add_column("item")
    table.add_column("value", justify="right")
    table.add_row("entries", str(summary.entry_count))
    table.add_row("converted", str(summary.converted_count))
    table.add_row("passed through", str(summary.skipped_count))
    table.add_row("failed", str(summary.failed_count))
    table.add_row("truncated", "yes" if summary.truncated else "no")
    table.add_row("log file", escape(str(log_path)))
    console.print(table)

    for outcome in summary.outcomes:
        if outcome.status is EntryStatus.FAILED:
            console.print(
                "[yellow]kept[/yellow] {0}: {1}".format(
                    escape(outcome.source.path),
                    escape(outcome.reason or "conversion failed"),
                )
            )
    if summary.decode_error:
        console.print(
            "[red]archive truncated[/red] {0}".format(
                escape(summary.decode_error)
            )
        )


def _package_version() -> str:
    try:
        return metadata.version("pandoc-tar")
    except metadata.PackageNotFoundError:
        return "unknown"


def _absolute(path: Optional[Path]) -> Optional[Path]:
    if path is None:
        return None
    candidate = path.expanduser()
    if not candidate.is_absolute():
        candidate = (Path.cwd() / candidate).resolve()
    return candidate


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)

    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pandoc-tar config",
        description="Manage configuration files for pandoc-tar.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help=f"Write the default {CONFIG_FILENAME} template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Workspace root override used when resolving the default config "
            "path."
        ),
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    try:
        written = write_config_template(target, overwrite=args.force)
    except TomlConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote pandoc-tar config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        return _absolute(args.path)  # type: ignore[return-value]

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
