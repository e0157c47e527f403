# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive path mapping.

Archive member names are POSIX-style paths relative to the backed-up
root, with no leading separator. The root itself maps to the empty
name and is never written as a record.
"""

from pathlib import Path, PurePosixPath

from s3archive.exceptions import PathError


def relative_name(root: Path | str, entry_path: Path | str) -> str:
    """
    Compute the archive-relative name of an entry under root.

    Args:
        root: Root directory of the tree being archived
        entry_path: Path of an entry inside the tree

    Returns:
        POSIX-style relative name ("" for the root itself)

    Raises:
        PathError: If entry_path is not under root
    """
    try:
        relative = Path(entry_path).relative_to(Path(root))
    except ValueError as e:
        raise PathError(
            f"Path is not under archive root: {entry_path}",
            details={"root": str(root), "path": str(entry_path)},
        ) from e

    if relative == Path("."):
        return ""
    return relative.as_posix()


def is_safe_member_name(name: str) -> bool:
    """
    Check that a member name stays inside the extraction root.

    Absolute names, drive-qualified names and names with ".." parts
    are rejected.
    """
    if not name:
        return False
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        return False
    return ".." not in PurePosixPath(normalized).parts
