# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so that a backup
or restore never observes settings changing underneath it.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List
import re
import zipfile


DEFAULT_REGION = "us-east-1"
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class CompressionMethod(str, Enum):
    """Compression method used for archive data records."""

    DEFLATED = "deflated"
    STORED = "stored"

    @property
    def zip_constant(self) -> int:
        """The matching zipfile compression constant."""
        if self is CompressionMethod.STORED:
            return zipfile.ZIP_STORED
        return zipfile.ZIP_DEFLATED


def validate_bucket_name(bucket: str) -> bool:
    """
    Validate S3 bucket name according to AWS rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    # Must be lowercase letters, numbers, hyphens, or periods
    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    # No consecutive periods
    if ".." in bucket:
        return False

    # Not IP address format
    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


@dataclass(frozen=True)
class ArchiveConfig:
    """
    Immutable configuration for backup and restore operations.

    Bucket and key are per-operation arguments and are not part of the
    configuration; everything here applies to every operation.
    """

    # AWS region (default: us-east-1)
    region: str = DEFAULT_REGION

    # Custom S3 endpoint (MinIO, LocalStack, ...)
    endpoint_url: str | None = None

    # Directory for staging files (default: system temp directory)
    staging_dir: Path | None = None

    # Chunk size for streaming copies, in bytes
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Compression method for file records
    compression: CompressionMethod = CompressionMethod.DEFLATED

    # Treat any bucket probe failure as "bucket absent" and try to create it
    lenient_bucket_probe: bool = False

    # Logging
    log_level: str = "info"
    log_json: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.region:
            errors.append("region must not be empty")

        if self.chunk_size < 1:
            errors.append(f"chunk_size must be >= 1, got {self.chunk_size}")

        if not isinstance(self.compression, CompressionMethod):
            errors.append(f"Invalid compression method: {self.compression!r}")

        if self.log_level.lower() not in LOG_LEVELS:
            errors.append(f"Invalid log_level: {self.log_level!r}")

        if self.staging_dir is not None and not Path(self.staging_dir).is_dir():
            errors.append(f"staging_dir is not a directory: {self.staging_dir}")

        # Raise all errors at once
        if errors:
            from s3archive.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "ArchiveConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return ArchiveConfig(**current)
