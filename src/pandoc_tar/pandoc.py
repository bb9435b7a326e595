"""Pandoc implementation of the document engine, driven through pypandoc.

Every pandoc invocation runs with ``--sandbox``: readers and writers may only
touch files named on the command line, so a document cannot pull in includes,
remote images or other resources while being converted.
"""

from __future__ import annotations

import re
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

import pypandoc

from .engine import Document, Template
from .errors import (
    ConversionError,
    DependencyError,
    FormatUnknownError,
    ParseError,
    RenderError,
    TemplateError,
)
from .formats import ResolvedFormat
from .params import WrapPolicy

__all__ = [
    "SANDBOX_ARGS",
    "PandocEngine",
]

SANDBOX_ARGS: tuple[str, ...] = ("--sandbox",)

_EXIT_CODE_PATTERN = re.compile(r'exitcode "(-?\d+)"')
_TEMPLATE_EXIT_CODE = 5
_UNKNOWN_READER_EXIT_CODE = 21
_UNKNOWN_WRITER_EXIT_CODE = 22

# Smallest native document; used to exercise a template once.
_EMPTY_NATIVE_DOCUMENT = "[]"


class PandocEngine:
    """Convert documents with the pandoc executable located by pypandoc."""

    def __init__(self) -> None:
        self._default_templates: dict[str, Template] = {}
        self._compiled_templates: dict[tuple[str, str], Template] = {}

    def version(self) -> str:
        """Return the pandoc version or raise :class:`DependencyError`."""

        try:
            return pypandoc.get_pandoc_version()
        except OSError as exc:
            raise DependencyError(
                "pandoc executable not found. Install pandoc or "
                "`pip install pypandoc_binary`."
            ) from exc

    def read(
        self,
        reader: ResolvedFormat,
        text: str,
        *,
        standalone: bool,
    ) -> Document:
        args = list(SANDBOX_ARGS)
        if standalone:
            args.append("--standalone")
        ast = self._run(
            text,
            source_format=reader.name,
            target_format="json",
            args=args,
            failure=ParseError,
        )
        return Document(ast=ast)

    def write(
        self,
        writer: ResolvedFormat,
        document: Document,
        *,
        wrap: WrapPolicy,
        columns: int,
        template: Optional[Template],
    ) -> str:
        args = [
            *SANDBOX_ARGS,
            f"--wrap={wrap.value}",
            f"--columns={columns}",
        ]
        if template is None:
            return self._render(writer, document, args)

        args.append("--standalone")
        if template.builtin:
            return self._render(writer, document, args)
        with _template_file(template.source) as path:
            args.append(f"--template={path}")
            return self._render(writer, document, args)

    def default_template(self, base_name: str) -> Template:
        cached = self._default_templates.get(base_name)
        if cached is not None:
            return cached

        try:
            completed = subprocess.run(
                [
                    pypandoc.get_pandoc_path(),
                    f"--print-default-template={base_name}",
                ],
                capture_output=True,
                encoding="utf-8",
                check=False,
            )
        except OSError as exc:
            raise TemplateError(
                f"Unable to load default template '{base_name}': {exc}"
            ) from exc
        if completed.returncode != 0:
            detail = completed.stderr.strip() or "unknown error"
            raise TemplateError(
                f"No default template for '{base_name}': {detail}"
            )

        template = Template(
            format=base_name, source=completed.stdout, builtin=True
        )
        self._default_templates[base_name] = template
        return template

    def compile_template(
        self, writer: ResolvedFormat, source: str
    ) -> Template:
        key = (writer.name, source)
        cached = self._compiled_templates.get(key)
        if cached is not None:
            return cached

        with _template_file(source) as path:
            self._run(
                _EMPTY_NATIVE_DOCUMENT,
                source_format="native",
                target_format=writer.name,
                args=[*SANDBOX_ARGS, "--standalone", f"--template={path}"],
                failure=TemplateError,
            )

        template = Template(format=writer.name, source=source)
        self._compiled_templates[key] = template
        return template

    def _render(
        self,
        writer: ResolvedFormat,
        document: Document,
        args: Sequence[str],
    ) -> str:
        return self._run(
            document.ast,
            source_format="json",
            target_format=writer.name,
            args=args,
            failure=RenderError,
        )

    def _run(
        self,
        source: str,
        *,
        source_format: str,
        target_format: str,
        args: Sequence[str],
        failure: type[ConversionError],
    ) -> str:
        try:
            return pypandoc.convert_text(
                source,
                target_format,
                format=source_format,
                extra_args=list(args),
                verify_format=False,
            )
        except RuntimeError as exc:
            raise _translate_failure(
                exc,
                source_format=source_format,
                target_format=target_format,
                default=failure,
            ) from exc


def _translate_failure(
    exc: RuntimeError,
    *,
    source_format: str,
    target_format: str,
    default: type[ConversionError],
) -> ConversionError:
    message = str(exc)
    code = _exit_code(message)
    if code == _TEMPLATE_EXIT_CODE:
        return TemplateError(message)
    if code == _UNKNOWN_READER_EXIT_CODE:
        return FormatUnknownError(source_format, "reader")
    if code == _UNKNOWN_WRITER_EXIT_CODE:
        return FormatUnknownError(target_format, "writer")
    return default(message)


def _exit_code(message: str) -> Optional[int]:
    match = _EXIT_CODE_PATTERN.search(message)
    if match is None:
        return None
    return int(match.group(1))


@contextmanager
def _template_file(source: str) -> Iterator[Path]:
    with tempfile.TemporaryDirectory(prefix="pandoc-tar-") as tmp:
        path = Path(tmp) / "custom.template"
        path.write_text(source, encoding="utf-8")
        yield path
