"""
In-memory tar archives.

Provides an immutable path -> entry mapping built from a tar stream, and the
directory normalization used to strip the single top-level directory GitHub
puts in repository tarballs.

Usage:
    from github_utils.utils.archive import make_archive_from_reader

    with gzip.GzipFile(fileobj=io.BytesIO(body)) as stream:
        archive = make_archive_from_reader(stream)

    unprefixed = archive.set_directory("octo-widgets-abc123")
    if unprefixed is None:
        ...  # some entry lives outside the prefix
"""

import tarfile
import zlib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import IO, Optional

from github_utils.errors import ArchiveDecodeError
from github_utils.utils.logging import get_logger

logger = get_logger(__name__)

PATH_SEPARATOR = "/"


class EntryKind(str, Enum):
    """Type of a tar archive entry."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    OTHER = "other"


@dataclass(frozen=True)
class ArchiveEntry:
    """A single entry of a tar archive, with its content held in memory."""

    name: str
    kind: EntryKind
    data: bytes = b""
    mode: int = 0o644
    mtime: float = 0.0
    linkname: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


def _entry_kind(member: tarfile.TarInfo) -> EntryKind:
    if member.isreg():
        return EntryKind.FILE
    if member.isdir():
        return EntryKind.DIRECTORY
    if member.issym():
        return EntryKind.SYMLINK
    if member.islnk():
        return EntryKind.HARDLINK
    return EntryKind.OTHER


def _normalize_path(name: str) -> str:
    while name.startswith("./"):
        name = name[2:]
    return name.rstrip(PATH_SEPARATOR)


class Archive(Mapping[str, ArchiveEntry]):
    """
    Read-only mapping of archive-relative path to ArchiveEntry.

    Paths use ``/`` as separator and never end with one.
    """

    def __init__(self, entries: Optional[Mapping[str, ArchiveEntry]] = None):
        self._entries: dict[str, ArchiveEntry] = dict(entries or {})

    def __getitem__(self, path: str) -> ArchiveEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Archive({len(self._entries)} entries)"

    def files(self) -> Iterator[ArchiveEntry]:
        """Iterate over regular file entries."""
        return (entry for entry in self._entries.values() if entry.is_file)

    def read(self, path: str) -> bytes:
        """Return the content of the regular file at ``path``."""
        entry = self._entries[path]
        if not entry.is_file:
            raise IsADirectoryError(path) if entry.is_dir else KeyError(path)
        return entry.data

    def set_directory(self, prefix: str) -> Optional["Archive"]:
        """
        Re-root the archive at ``prefix``.

        Every entry must be the ``prefix`` directory itself or live below
        it. The prefix directory entry is dropped and ``prefix/`` is removed
        from every other path (and from hardlink targets).

        Returns:
            The re-rooted archive, or None if any entry lies outside
            ``prefix``. No partial result is ever returned.
        """
        prefix = prefix.strip(PATH_SEPARATOR)
        if not prefix:
            return None

        leading = prefix + PATH_SEPARATOR
        entries: dict[str, ArchiveEntry] = {}
        for path, entry in self._entries.items():
            if path == prefix:
                if entry.is_dir:
                    continue
                return None
            if not path.startswith(leading):
                logger.debug("archive_entry_outside_prefix", path=path, prefix=prefix)
                return None

            relative_path = path[len(leading):]
            linkname = entry.linkname
            if entry.kind is EntryKind.HARDLINK and linkname.startswith(leading):
                linkname = linkname[len(leading):]
            entries[relative_path] = replace(entry, name=relative_path, linkname=linkname)

        return Archive(entries)


def make_archive_from_reader(reader: IO[bytes]) -> Archive:
    """
    Build an Archive by reading a tar stream to its end.

    The reader is consumed in a single forward pass; it may be a
    non-seekable stream such as a GzipFile.

    Raises:
        ArchiveDecodeError: The stream is not a readable tar archive, or the
            underlying decompression fails part way.
    """
    entries: dict[str, ArchiveEntry] = {}
    try:
        with tarfile.open(fileobj=reader, mode="r|") as tar:
            for member in tar:
                name = _normalize_path(member.name)
                if not name:
                    continue

                kind = _entry_kind(member)
                data = b""
                if kind is EntryKind.FILE:
                    extracted = tar.extractfile(member)
                    if extracted is not None:
                        data = extracted.read()

                entries[name] = ArchiveEntry(
                    name=name,
                    kind=kind,
                    data=data,
                    mode=member.mode,
                    mtime=member.mtime,
                    linkname=member.linkname,
                )
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise ArchiveDecodeError(
            "An error occurred when making an archive from the tarball reader.",
            entries_read=len(entries),
        ) from e

    return Archive(entries)
