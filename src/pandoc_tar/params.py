"""Conversion request parameters."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = [
    "DEFAULT_COLUMNS",
    "DEFAULT_READER_FORMAT",
    "DEFAULT_WRITER_FORMAT",
    "ConversionParams",
    "WrapPolicy",
]

DEFAULT_READER_FORMAT = "markdown"
DEFAULT_WRITER_FORMAT = "json"
DEFAULT_COLUMNS = 72


class WrapPolicy(Enum):
    """Line wrapping modes understood by the writers."""

    AUTO = "auto"
    NONE = "none"
    PRESERVE = "preserve"

    @classmethod
    def from_value(cls, value: str) -> "WrapPolicy":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown wrap policy '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class ConversionParams:
    """A single conversion request.

    Unset fields fall back to the documented defaults through the resolved
    properties below. The archive pipeline keeps one instance as a template
    and derives a per-entry copy with :meth:`with_text`.
    """

    text: str = ""
    from_format: Optional[str] = None
    to_format: Optional[str] = None
    wrap: Optional[WrapPolicy] = None
    columns: Optional[int] = None
    standalone: Optional[bool] = None
    template: Optional[str] = None

    def with_text(self, text: str) -> "ConversionParams":
        return dataclasses.replace(self, text=text)

    @property
    def reader_format(self) -> str:
        return self.from_format or DEFAULT_READER_FORMAT

    @property
    def writer_format(self) -> str:
        return self.to_format or DEFAULT_WRITER_FORMAT

    @property
    def wrap_policy(self) -> WrapPolicy:
        return self.wrap if self.wrap is not None else WrapPolicy.AUTO

    @property
    def column_width(self) -> int:
        return self.columns if self.columns is not None else DEFAULT_COLUMNS

    @property
    def is_standalone(self) -> bool:
        return bool(self.standalone)
