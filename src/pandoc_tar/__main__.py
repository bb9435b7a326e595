"""Allow ``python -m pandoc_tar``."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
