# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Engine - ZIP container writing and extraction.
"""

from s3archive.archive.paths import relative_name

from s3archive.archive.writer import (
    EntryKind,
    SequentialWriter,
    SkippedEntry,
    TreeEntry,
    WriteSummary,
    walk_tree,
    write_tree,
)

from s3archive.archive.reader import (
    RandomAccessReader,
    extract_all,
    extract_one,
)

__all__ = [
    # Paths
    "relative_name",
    # Writer
    "EntryKind",
    "SequentialWriter",
    "SkippedEntry",
    "TreeEntry",
    "WriteSummary",
    "walk_tree",
    "write_tree",
    # Reader
    "RandomAccessReader",
    "extract_all",
    "extract_one",
]
