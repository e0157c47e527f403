# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive - Directory backup and restore against S3.

Archives a local directory tree into a single ZIP container, uploads it
under a bucket/key, and restores either the whole tree or a single
member back to disk.
"""

__version__ = "0.1.0"

# Configuration
from s3archive.config import ArchiveConfig, CompressionMethod
from s3archive.env import create_config_from_env

# Core functions
from s3archive.core import (
    BackupResult,
    RestoreResult,
    backup,
    restore,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "ArchiveConfig",
    "CompressionMethod",
    "create_config_from_env",
    # Core orchestration functions
    "BackupResult",
    "RestoreResult",
    "backup",
    "restore",
]
