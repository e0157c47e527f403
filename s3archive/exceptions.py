# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Exceptions - Custom exceptions for the s3archive package.
"""


class S3ArchiveError(Exception):
    """Base exception for all s3archive errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(S3ArchiveError):
    """Raised when configuration is invalid."""

    pass


class PathError(S3ArchiveError):
    """Raised when a path cannot be mapped to an archive name."""

    pass


class ArchiveError(S3ArchiveError):
    """Raised when writing or reading an archive fails."""

    pass


class NotADirectory(ArchiveError):
    """Raised when the backup source is missing or not a directory."""

    pass


class MemberNotFound(ArchiveError):
    """Raised when a named member is absent from an archive."""

    pass


class StoreError(S3ArchiveError):
    """Raised when object store operations fail."""

    pass


class BucketError(StoreError):
    """Raised when a bucket cannot be probed or created."""

    pass


class GetFailed(StoreError):
    """Raised when an object cannot be downloaded."""

    pass


class ObjectNotFound(GetFailed):
    """Raised when the requested key does not exist."""

    pass


class PutFailed(StoreError):
    """Raised when an object cannot be uploaded."""

    pass
