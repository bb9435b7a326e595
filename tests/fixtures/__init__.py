"""Shared testing fixtures for the pandoc_tar test suite."""

from .archives import (  # noqa: F401
    Member,
    build_tar,
    corrupt_header,
    describe,
    directory,
    header_offsets,
    read_members,
    regular,
    retype_member,
    symlink,
)
from .engine import BROKEN_TEMPLATE, UNPARSEABLE, FakeEngine  # noqa: F401

__all__ = [
    "BROKEN_TEMPLATE",
    "FakeEngine",
    "Member",
    "UNPARSEABLE",
    "build_tar",
    "corrupt_header",
    "describe",
    "directory",
    "header_offsets",
    "read_members",
    "regular",
    "retype_member",
    "symlink",
]
