# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for s3archive.

These helpers centralize wording for common configuration and input
errors so that the CLI and the library present consistent, actionable
messages.
"""


def explain_invalid_bucket_name(bucket: str) -> str:
    """
    Explain that a bucket name violates the S3 naming rules.
    """

    return (
        f"Invalid bucket name: {bucket!r}. "
        "Bucket names must be 3-63 characters of lowercase letters, digits, "
        "hyphens or periods, and must start and end with a letter or digit."
    )


def explain_empty_key() -> str:
    """
    Explain that an object key is required.
    """

    return "Object key must not be empty. Pass -k <key> to choose where the archive lives."


def explain_source_not_directory(path: str) -> str:
    """
    Explain that the backup source is not a directory.
    """

    return (
        f"Backup source is not a directory: {path!r}. "
        "s3archive archives whole directory trees; point -p at a directory."
    )


def explain_invalid_chunk_size_env(value: str | None) -> str:
    """
    Explain that S3ARCHIVE_CHUNK_SIZE is invalid.
    """

    return (
        f"Invalid S3ARCHIVE_CHUNK_SIZE value: {value!r}. "
        "It must be a positive integer number of bytes."
    )


def explain_invalid_compression_env(value: str | None) -> str:
    """
    Explain that S3ARCHIVE_COMPRESSION is invalid.
    """

    return (
        f"Invalid S3ARCHIVE_COMPRESSION value: {value!r}. "
        "Expected 'deflated' or 'stored'."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 1, 0, true, false, yes, no, on, off."
    )
