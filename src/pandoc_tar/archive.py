"""Tar codec: decode entries lazily, encode them back, build file entries."""

from __future__ import annotations

import copy
import io
import os
import tarfile
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, Optional, Union

from .errors import ArchiveDecodeError, PathEncodingError

__all__ = [
    "Entry",
    "EntryContent",
    "EntryKind",
    "NormalFile",
    "OtherContent",
    "file_entry",
    "iter_entries",
    "to_tar_path",
    "write_entries",
]

# ustar header field sizes, in bytes.
USTAR_NAME_MAX = 100
USTAR_PREFIX_MAX = 155

NEW_FILE_MODE = 0o644


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    CHARDEV = "chardev"
    BLOCKDEV = "blockdev"
    FIFO = "fifo"
    OTHER = "other"


@dataclass(frozen=True)
class NormalFile:
    """Content of a regular file entry."""

    data: bytes
    kind: ClassVar[EntryKind] = EntryKind.FILE

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class OtherContent:
    """Content of any non-regular entry; never inspected or converted."""

    kind: EntryKind


EntryContent = Union[NormalFile, OtherContent]


@dataclass(frozen=True, eq=False)
class Entry:
    """One archive member.

    ``header`` holds the member metadata (mode, owner, times, link target,
    pax records). Decoded entries also keep ``raw``, the member exactly as it
    appeared in the input (extended headers, header block, padded data), and
    are written back from it byte for byte.
    """

    path: str
    content: EntryContent
    header: tarfile.TarInfo
    raw: Optional[bytes] = field(default=None, repr=False)

    @property
    def kind(self) -> EntryKind:
        return self.content.kind

    @property
    def is_normal_file(self) -> bool:
        return isinstance(self.content, NormalFile)


def iter_entries(data: bytes) -> Iterator[Entry]:
    """Yield the entries of the tar archive in ``data`` in order.

    Iteration stops at the end-of-archive marker. A damaged header or
    truncated member raises :class:`ArchiveDecodeError` once every entry
    before it has been yielded. Empty input is an empty archive.
    """

    if not data:
        return

    try:
        archive = tarfile.open(fileobj=io.BytesIO(data), mode="r:")
    except tarfile.TarError as exc:
        raise ArchiveDecodeError(
            f"Invalid tar header at offset 0: {exc}"
        ) from exc

    with archive:
        start = 0
        while True:
            try:
                member = archive.next()
                if member is None:
                    break
                content = _content_for(archive, member)
            except tarfile.TarError as exc:
                raise ArchiveDecodeError(
                    f"Invalid tar data at offset {archive.offset}: {exc}"
                ) from exc
            # archive.offset now points past this member's data; a global
            # pax header before it belongs to its byte range too.
            end = archive.offset
            if end > len(data):
                raise ArchiveDecodeError(
                    f"Truncated tar member at offset {start}"
                )
            yield Entry(
                path=member.name,
                content=content,
                header=member,
                raw=data[start:end],
            )
            start = end
        _check_trailer(data, archive.offset)


def write_entries(entries: Iterable[Entry]) -> bytes:
    """Serialize ``entries`` as a terminated, record-padded tar archive.

    Entries carrying ``raw`` bytes are copied verbatim, whatever tar dialect
    they came from. Other entries get a fresh PAX header.
    """

    buffer = io.BytesIO()
    for entry in entries:
        if entry.raw is not None:
            buffer.write(entry.raw)
        else:
            buffer.write(_encode_entry(entry))
    buffer.write(tarfile.NUL * (2 * tarfile.BLOCKSIZE))
    remainder = buffer.tell() % tarfile.RECORDSIZE
    if remainder:
        buffer.write(tarfile.NUL * (tarfile.RECORDSIZE - remainder))
    return buffer.getvalue()


def file_entry(path: str, data: bytes) -> Entry:
    """Build a fresh regular-file entry with default metadata."""

    header = tarfile.TarInfo(path)
    header.type = tarfile.REGTYPE
    header.size = len(data)
    header.mode = NEW_FILE_MODE
    header.mtime = 0
    header.uid = 0
    header.gid = 0
    header.uname = ""
    header.gname = ""
    return Entry(path=path, content=NormalFile(data), header=header)


def to_tar_path(raw: str, is_directory: bool) -> str:
    """Normalize ``raw`` into a path that fits a ustar header.

    Separators become ``/`` and directories get a trailing slash. Paths
    longer than the name field must split at a ``/`` into a prefix and name
    that both fit, otherwise :class:`PathEncodingError` is raised.
    """

    path = raw.replace(os.sep, "/") if os.sep != "/" else raw
    if not path:
        raise PathEncodingError("Entry path is empty.")
    if is_directory and not path.endswith("/"):
        path += "/"

    if _encoded_length(path) <= USTAR_NAME_MAX:
        return path

    components = path.split("/")
    for index in range(1, len(components)):
        prefix = "/".join(components[:index])
        name = "/".join(components[index:])
        if not name:
            break
        if (
            _encoded_length(prefix) <= USTAR_PREFIX_MAX
            and _encoded_length(name) <= USTAR_NAME_MAX
        ):
            return path
    raise PathEncodingError(f"Path too long for a tar header: {raw}")


def _content_for(
    archive: tarfile.TarFile, member: tarfile.TarInfo
) -> EntryContent:
    if member.isreg():
        handle = archive.extractfile(member)
        return NormalFile(handle.read() if handle is not None else b"")
    return OtherContent(_kind_for(member))


def _encode_entry(entry: Entry) -> bytes:
    header = copy.copy(entry.header)
    header.name = entry.path
    if not isinstance(entry.content, NormalFile):
        return header.tobuf(tarfile.PAX_FORMAT, "utf-8", "surrogateescape")

    # The content is already expanded, so sparse members become plain files.
    header.type = tarfile.REGTYPE
    header.size = entry.content.size
    blocks = header.tobuf(tarfile.PAX_FORMAT, "utf-8", "surrogateescape")
    padding = -header.size % tarfile.BLOCKSIZE
    return blocks + entry.content.data + tarfile.NUL * padding


def _kind_for(member: tarfile.TarInfo) -> EntryKind:
    if member.isdir():
        return EntryKind.DIRECTORY
    if member.issym():
        return EntryKind.SYMLINK
    if member.islnk():
        return EntryKind.HARDLINK
    if member.ischr():
        return EntryKind.CHARDEV
    if member.isblk():
        return EntryKind.BLOCKDEV
    if member.isfifo():
        return EntryKind.FIFO
    return EntryKind.OTHER


def _check_trailer(data: bytes, offset: int) -> None:
    # tarfile stops quietly on a bad header past the first one; anything
    # other than zero padding from there on is a damaged archive.
    if data[offset:].strip(b"\0"):
        raise ArchiveDecodeError(f"Invalid tar header at offset {offset}")


def _encoded_length(value: str) -> int:
    return len(value.encode("utf-8", "surrogateescape"))
