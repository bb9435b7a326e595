from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Make src/ importable when the package is not installed.
ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import FakeEngine  # noqa: E402

from pandoc_tar.params import ConversionParams  # noqa: E402


@pytest.fixture
def engine() -> FakeEngine:
    """A fresh in-memory engine that records its calls."""

    return FakeEngine()


@pytest.fixture
def params() -> ConversionParams:
    """Default parameter template (markdown -> json)."""

    return ConversionParams()


@pytest.fixture(autouse=True)
def _isolated_workspace(tmp_path, monkeypatch):
    monkeypatch.setenv("PANDOC_TAR_HOME", str(tmp_path / "pandoc-tar-home"))
    for key in (
        "PANDOC_TAR_CONFIG",
        "PANDOC_TAR_FROM",
        "PANDOC_TAR_TO",
        "PANDOC_TAR_WRAP",
        "PANDOC_TAR_COLUMNS",
        "PANDOC_TAR_STANDALONE",
        "PANDOC_TAR_TEMPLATE",
        "PANDOC_TAR_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
