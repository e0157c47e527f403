# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Archive Reader - Random-access extraction from a ZIP container.

The reader needs a seekable, fully written archive: the central
directory is parsed on open and members are looked up by name.
"""

import shutil
import zipfile
import zlib
from pathlib import Path
from typing import List

import structlog

from s3archive.archive.paths import is_safe_member_name
from s3archive.config import DEFAULT_CHUNK_SIZE
from s3archive.exceptions import ArchiveError, MemberNotFound

logger = structlog.get_logger()


class RandomAccessReader:
    """
    Read-only view of a finished archive.

    Usable as a context manager; the archive file is closed on exit.
    """

    def __init__(self, archive_path: Path | str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.archive_path = Path(archive_path)
        self._chunk_size = chunk_size
        try:
            self._zip = zipfile.ZipFile(self.archive_path, mode="r")
        except zipfile.BadZipFile as e:
            raise ArchiveError(
                f"Not a valid archive: {e}",
                details={"archive_path": str(self.archive_path)},
            ) from e
        except OSError as e:
            raise ArchiveError(
                f"Failed to open archive: {e}",
                details={"archive_path": str(self.archive_path)},
            ) from e

    def __enter__(self) -> "RandomAccessReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def names(self) -> List[str]:
        """Return member names in archive order."""
        return self._zip.namelist()

    def _lookup(self, member_name: str) -> zipfile.ZipInfo:
        for candidate in (member_name, member_name.rstrip("/") + "/"):
            try:
                return self._zip.getinfo(candidate)
            except KeyError:
                continue
        raise MemberNotFound(
            f"Member not found in archive: {member_name}",
            details={"member": member_name, "archive_path": str(self.archive_path)},
        )

    def extract_all(self, destination_root: Path | str) -> int:
        """
        Recreate every member under destination_root.

        Parent directories are created as needed and existing files are
        overwritten. Stored permissions are not applied.

        Args:
            destination_root: Directory to extract into

        Returns:
            Number of members extracted

        Raises:
            ArchiveError: On unsafe member names or I/O failures
        """
        destination = Path(destination_root)
        members = self._zip.infolist()

        for info in members:
            if not is_safe_member_name(info.filename):
                raise ArchiveError(
                    f"Unsafe path in archive: {info.filename}",
                    details={"archive_path": str(self.archive_path)},
                )

        try:
            destination.mkdir(parents=True, exist_ok=True)
            for info in members:
                target = destination / info.filename
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                self._copy_member(info, target)
        except (OSError, EOFError, zipfile.BadZipFile, zlib.error, RuntimeError) as e:
            raise ArchiveError(
                f"Failed to extract archive: {e}",
                details={
                    "archive_path": str(self.archive_path),
                    "destination": str(destination),
                },
            ) from e

        logger.info(
            "archive_extracted",
            archive_path=str(self.archive_path),
            destination=str(destination),
            members=len(members),
        )
        return len(members)

    def extract_one(self, member_name: str, destination_path: Path | str) -> int:
        """
        Stream a single member to destination_path.

        The lookup happens before anything touches the filesystem, so a
        missing member leaves the destination untouched.

        Args:
            member_name: Archive-relative member name
            destination_path: File to create or truncate

        Returns:
            Number of bytes written (0 for a directory member)

        Raises:
            MemberNotFound: If the member is absent
            ArchiveError: On I/O failures
        """
        info = self._lookup(member_name)
        target = Path(destination_path)

        try:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                written = 0
            else:
                written = self._copy_member(info, target)
        except (OSError, EOFError, zipfile.BadZipFile, zlib.error, RuntimeError) as e:
            raise ArchiveError(
                f"Failed to extract member: {e}",
                details={"member": member_name, "destination": str(target)},
            ) from e

        logger.info(
            "member_extracted",
            archive_path=str(self.archive_path),
            member=info.filename,
            destination=str(target),
            size=written,
        )
        return written

    def _copy_member(self, info: zipfile.ZipInfo, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        with self._zip.open(info, mode="r") as source, open(target, "wb") as dest:
            shutil.copyfileobj(source, dest, self._chunk_size)
        return info.file_size


def extract_all(archive_path: Path | str, destination_root: Path | str) -> int:
    """Open archive_path and extract every member under destination_root."""
    with RandomAccessReader(archive_path) as reader:
        return reader.extract_all(destination_root)


def extract_one(
    archive_path: Path | str,
    member_name: str,
    destination_path: Path | str,
) -> int:
    """Open archive_path and extract a single member to destination_path."""
    with RandomAccessReader(archive_path) as reader:
        return reader.extract_one(member_name, destination_path)
