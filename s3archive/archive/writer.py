# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Archive Writer - Stream a directory tree into a ZIP container.

The walk is permissive: entries that cannot be listed, inspected or
opened are reported as SkippedEntry and left out of the archive instead
of aborting the backup. Failures writing to the sink are fatal.

Every record carries the same Unix permission bits and timestamp, so
member metadata depends only on the tree's names and contents.
"""

import os
import stat
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator, List, Set

import structlog

from s3archive.archive.paths import relative_name
from s3archive.config import DEFAULT_CHUNK_SIZE, CompressionMethod
from s3archive.exceptions import ArchiveError, NotADirectory

logger = structlog.get_logger()

FIXED_PERMISSIONS = 0o755
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)

_UNIX_SYSTEM = 3
_MSDOS_DIRECTORY_FLAG = 0x10


class EntryKind(str, Enum):
    """Kind of a filesystem entry or archive record."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class TreeEntry:
    """A readable entry found while walking the tree."""

    path: Path
    name: str  # archive-relative, "" for the root
    kind: EntryKind
    size: int = 0


@dataclass(frozen=True)
class SkippedEntry:
    """An entry the walk could not read."""

    path: Path
    reason: str


@dataclass
class WriteSummary:
    """Result of writing a tree into an archive."""

    files_written: int = 0
    directories_written: int = 0
    bytes_read: int = 0
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def entries_written(self) -> int:
        return self.files_written + self.directories_written


def walk_tree(root: Path | str) -> Iterator[TreeEntry | SkippedEntry]:
    """
    Walk every entry under root, yielding a result per entry.

    The root itself is yielded first with an empty name. A directory is
    always yielded before its contents; beyond that the order is not
    defined. Symlinks to files are followed, symlinks to directories are
    recorded but not descended into.

    Args:
        root: Directory to walk

    Yields:
        TreeEntry for readable entries, SkippedEntry for unreadable ones
    """
    root = Path(root)
    yield TreeEntry(path=root, name="", kind=EntryKind.DIRECTORY)

    pending: List[Path] = [root]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                children = list(it)
        except OSError as e:
            yield SkippedEntry(path=current, reason=str(e))
            continue

        for child in children:
            path = Path(child.path)
            try:
                if child.is_file():
                    size = child.stat().st_size
                    yield TreeEntry(
                        path=path,
                        name=relative_name(root, path),
                        kind=EntryKind.FILE,
                        size=size,
                    )
                elif child.is_dir():
                    yield TreeEntry(
                        path=path,
                        name=relative_name(root, path),
                        kind=EntryKind.DIRECTORY,
                    )
                    if not child.is_symlink():
                        pending.append(path)
                else:
                    yield SkippedEntry(path=path, reason="unsupported file type")
            except OSError as e:
                yield SkippedEntry(path=path, reason=str(e))


class SequentialWriter:
    """
    Append-only ZIP writer.

    Records are written in call order; the central directory is only
    written by finish(). The writer never reads back from the sink.
    """

    def __init__(
        self,
        sink: BinaryIO,
        compression: CompressionMethod | str = CompressionMethod.DEFLATED,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        try:
            method = CompressionMethod(compression)
        except ValueError as e:
            raise ArchiveError(
                f"Unsupported compression method: {compression!r}",
                details={"supported": [m.value for m in CompressionMethod]},
            ) from e

        self._compress_type = method.zip_constant
        self._chunk_size = chunk_size
        self._names: Set[str] = set()
        self._finished = False
        try:
            self._zip = zipfile.ZipFile(sink, mode="w", compression=self._compress_type)
        except OSError as e:
            raise ArchiveError(f"Failed to open archive sink: {e}") from e

    def __enter__(self) -> "SequentialWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.finish()
        else:
            self.close()

    def _claim(self, name: str) -> None:
        if self._finished:
            raise ArchiveError("Archive already finished", details={"name": name})
        if name in self._names:
            raise ArchiveError(f"Duplicate archive member: {name}", details={"name": name})
        self._names.add(name)

    def add_directory(self, name: str) -> None:
        """Append a directory record (no payload)."""
        record_name = name.rstrip("/") + "/"
        self._claim(record_name)

        info = zipfile.ZipInfo(record_name, date_time=FIXED_DATE_TIME)
        info.create_system = _UNIX_SYSTEM
        info.compress_type = zipfile.ZIP_STORED
        info.external_attr = ((stat.S_IFDIR | FIXED_PERMISSIONS) << 16) | _MSDOS_DIRECTORY_FLAG

        try:
            self._zip.writestr(info, b"")
        except OSError as e:
            raise ArchiveError(
                f"Failed to write directory record: {e}",
                details={"name": record_name},
            ) from e

    def add_file(self, name: str, source: BinaryIO, size: int | None = None) -> int:
        """
        Append a file record, streaming source through the compressor.

        Args:
            name: Archive-relative member name
            source: Open binary stream with the file's content
            size: Expected size, used to decide whether ZIP64 is needed

        Returns:
            Number of bytes read from source
        """
        self._claim(name)

        info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
        info.create_system = _UNIX_SYSTEM
        info.compress_type = self._compress_type
        info.external_attr = (stat.S_IFREG | FIXED_PERMISSIONS) << 16

        force_zip64 = size is None or size >= zipfile.ZIP64_LIMIT
        copied = 0
        try:
            with self._zip.open(info, mode="w", force_zip64=force_zip64) as dest:
                while True:
                    chunk = source.read(self._chunk_size)
                    if not chunk:
                        break
                    dest.write(chunk)
                    copied += len(chunk)
        except OSError as e:
            raise ArchiveError(
                f"Failed to write file record: {e}",
                details={"name": name},
            ) from e
        return copied

    def finish(self) -> None:
        """Write the central directory. No records can be added afterwards."""
        if self._finished:
            return
        self._finished = True
        try:
            self._zip.close()
        except OSError as e:
            raise ArchiveError(f"Failed to finalize archive: {e}") from e

    def close(self) -> None:
        """Release the underlying zip handle without raising."""
        if self._finished:
            return
        self._finished = True
        try:
            self._zip.close()
        except (OSError, ValueError) as e:
            logger.debug("archive_close_failed", error=str(e))


def write_tree(
    root_path: Path | str,
    sink: BinaryIO,
    compression: CompressionMethod | str = CompressionMethod.DEFLATED,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> WriteSummary:
    """
    Archive a directory tree into sink.

    Args:
        root_path: Directory to archive
        sink: Writable binary stream receiving the ZIP container
        compression: Compression method for file records
        chunk_size: Read size used when streaming file contents

    Returns:
        WriteSummary with counts and skipped entries

    Raises:
        NotADirectory: If root_path is missing or not a directory
        ArchiveError: If writing to the sink fails
    """
    root = Path(root_path)
    if not root.is_dir():
        raise NotADirectory(
            f"Not a directory: {root}",
            details={"path": str(root)},
        )

    summary = WriteSummary()

    with SequentialWriter(sink, compression=compression, chunk_size=chunk_size) as writer:
        for entry in walk_tree(root):
            if isinstance(entry, SkippedEntry):
                summary.skipped.append(entry)
                logger.debug("entry_skipped", path=str(entry.path), reason=entry.reason)
                continue

            if entry.kind is EntryKind.FILE:
                try:
                    source = open(entry.path, "rb")
                except OSError as e:
                    skipped = SkippedEntry(path=entry.path, reason=str(e))
                    summary.skipped.append(skipped)
                    logger.debug("entry_skipped", path=str(entry.path), reason=skipped.reason)
                    continue
                with source:
                    summary.bytes_read += writer.add_file(entry.name, source, entry.size)
                summary.files_written += 1
            elif entry.name:
                writer.add_directory(entry.name)
                summary.directories_written += 1

    try:
        sink.flush()
    except OSError as e:
        raise ArchiveError(f"Failed to flush archive sink: {e}") from e

    logger.info(
        "tree_archived",
        root=str(root),
        files=summary.files_written,
        directories=summary.directories_written,
        bytes_read=summary.bytes_read,
        skipped=len(summary.skipped),
    )
    return summary
