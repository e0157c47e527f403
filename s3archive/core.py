# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Core - Backup and restore orchestration.

backup:  validate -> ensure bucket -> archive tree into staging file -> upload
restore: download into staging file -> open archive -> extract all or one

Each stage's failure aborts the operation and propagates unchanged.
Staging files never outlive the call that created them.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path
from typing import AsyncIterator, List

import structlog

from s3archive.archive.paths import is_safe_member_name
from s3archive.archive.reader import RandomAccessReader
from s3archive.archive.writer import WriteSummary, write_tree
from s3archive.config import ArchiveConfig, CompressionMethod, validate_bucket_name
from s3archive.errors import (
    explain_empty_key,
    explain_invalid_bucket_name,
    explain_source_not_directory,
)
from s3archive.exceptions import (
    ArchiveError,
    ConfigurationError,
    NotADirectory,
    S3ArchiveError,
)
from s3archive.store.gateway import ObjectStoreGateway, open_gateway

logger = structlog.get_logger()


@dataclass
class BackupResult:
    """Result of a backup operation."""

    operation_id: str  # ULID
    bucket: str
    key: str
    source: str
    files_written: int
    directories_written: int
    bytes_read: int
    archive_size: int
    bucket_created: bool
    etag: str | None
    duration_seconds: float
    skipped_paths: List[str] = field(default_factory=list)


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    operation_id: str  # ULID
    bucket: str
    key: str
    destination: str
    member: str | None
    extracted_count: int
    archive_size: int
    duration_seconds: float


@asynccontextmanager
async def staging_file(config: ArchiveConfig) -> AsyncIterator[Path]:
    """
    Create a temporary archive file, removed when the block exits.

    Args:
        config: Supplies the staging directory (system temp if unset)

    Yields:
        Path of the empty staging file
    """
    try:
        fd, name = tempfile.mkstemp(
            prefix="s3archive-",
            suffix=".zip",
            dir=config.staging_dir,
        )
    except OSError as e:
        raise ArchiveError(
            f"Failed to create staging file: {e}",
            details={"staging_dir": str(config.staging_dir or tempfile.gettempdir())},
        ) from e
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("staging_file_removed", path=str(path))


def _validate_key(key: str) -> None:
    if not key:
        raise ConfigurationError(explain_empty_key())


def _archive_to_path(
    source: Path,
    archive_path: Path,
    compression: CompressionMethod,
    chunk_size: int,
) -> WriteSummary:
    try:
        sink = open(archive_path, "wb")
    except OSError as e:
        raise ArchiveError(
            f"Failed to open staging file: {e}",
            details={"path": str(archive_path)},
        ) from e
    with sink:
        return write_tree(source, sink, compression=compression, chunk_size=chunk_size)


def _extract_from_path(
    archive_path: Path,
    destination: Path,
    member: str | None,
    chunk_size: int,
) -> int:
    with RandomAccessReader(archive_path, chunk_size=chunk_size) as reader:
        if member is None:
            return reader.extract_all(destination)
        reader.extract_one(member, destination / member)
        return 1


async def backup(
    config: ArchiveConfig,
    path: Path | str,
    bucket: str,
    key: str,
    gateway: ObjectStoreGateway | None = None,
) -> BackupResult:
    """
    Archive a directory tree and upload it to (bucket, key).

    The source is checked before any network call is made.

    Args:
        config: s3archive configuration
        path: Directory to back up
        bucket: Destination bucket (created if absent)
        key: Destination object key (overwritten if present)
        gateway: Optional gateway; one is opened from config if omitted

    Returns:
        BackupResult with operation details
    """
    from ulid import ULID

    operation_id = str(ULID())
    start_time = datetime.now(UTC)

    if not validate_bucket_name(bucket):
        raise ConfigurationError(explain_invalid_bucket_name(bucket))
    _validate_key(key)

    source = Path(path)
    if not source.is_dir():
        raise NotADirectory(
            explain_source_not_directory(str(path)),
            details={"path": str(path)},
        )

    logger.info(
        "backup_started",
        operation_id=operation_id,
        source=str(source),
        bucket=bucket,
        key=key,
    )

    try:
        if gateway is None:
            async with open_gateway(config) as opened:
                result = await _run_backup(config, opened, operation_id, source, bucket, key)
        else:
            result = await _run_backup(config, gateway, operation_id, source, bucket, key)
    except S3ArchiveError as e:
        logger.error("backup_failed", operation_id=operation_id, error=str(e))
        raise

    result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "backup_completed",
        operation_id=operation_id,
        files=result.files_written,
        directories=result.directories_written,
        skipped=len(result.skipped_paths),
        archive_size=result.archive_size,
        duration=result.duration_seconds,
    )
    return result


async def _run_backup(
    config: ArchiveConfig,
    gateway: ObjectStoreGateway,
    operation_id: str,
    source: Path,
    bucket: str,
    key: str,
) -> BackupResult:
    bucket_created = await gateway.ensure_bucket(bucket)

    async with staging_file(config) as archive_path:
        loop = asyncio.get_running_loop()
        summary = await loop.run_in_executor(
            None,
            _archive_to_path,
            source,
            archive_path,
            config.compression,
            config.chunk_size,
        )
        archive_size = archive_path.stat().st_size

        if summary.skipped:
            logger.warning(
                "entries_skipped",
                operation_id=operation_id,
                count=len(summary.skipped),
            )

        ack = await gateway.put_file(bucket, key, archive_path)

    return BackupResult(
        operation_id=operation_id,
        bucket=bucket,
        key=key,
        source=str(source),
        files_written=summary.files_written,
        directories_written=summary.directories_written,
        bytes_read=summary.bytes_read,
        archive_size=archive_size,
        bucket_created=bucket_created,
        etag=ack.get("ETag"),
        duration_seconds=0.0,
        skipped_paths=[str(s.path) for s in summary.skipped],
    )


async def restore(
    config: ArchiveConfig,
    path: Path | str,
    bucket: str,
    key: str,
    member: str | None = None,
    gateway: ObjectStoreGateway | None = None,
) -> RestoreResult:
    """
    Download the archive at (bucket, key) and extract it under path.

    Args:
        config: s3archive configuration
        path: Destination root directory
        bucket: Source bucket
        key: Source object key
        member: If given, extract only this member to path/member
        gateway: Optional gateway; one is opened from config if omitted

    Returns:
        RestoreResult with operation details
    """
    from ulid import ULID

    operation_id = str(ULID())
    start_time = datetime.now(UTC)

    if not validate_bucket_name(bucket):
        raise ConfigurationError(explain_invalid_bucket_name(bucket))
    _validate_key(key)
    if member is not None and not is_safe_member_name(member):
        raise ArchiveError(
            f"Unsafe member name: {member}",
            details={"member": member},
        )

    destination = Path(path)

    logger.info(
        "restore_started",
        operation_id=operation_id,
        destination=str(destination),
        bucket=bucket,
        key=key,
        member=member,
    )

    try:
        if gateway is None:
            async with open_gateway(config) as opened:
                result = await _run_restore(
                    config, opened, operation_id, destination, bucket, key, member
                )
        else:
            result = await _run_restore(
                config, gateway, operation_id, destination, bucket, key, member
            )
    except S3ArchiveError as e:
        logger.error("restore_failed", operation_id=operation_id, error=str(e))
        raise

    result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "restore_completed",
        operation_id=operation_id,
        extracted=result.extracted_count,
        archive_size=result.archive_size,
        duration=result.duration_seconds,
    )
    return result


async def _run_restore(
    config: ArchiveConfig,
    gateway: ObjectStoreGateway,
    operation_id: str,
    destination: Path,
    bucket: str,
    key: str,
    member: str | None,
) -> RestoreResult:
    async with staging_file(config) as archive_path:
        archive_size = await gateway.download_to(
            bucket, key, archive_path, chunk_size=config.chunk_size
        )

        loop = asyncio.get_running_loop()
        extracted = await loop.run_in_executor(
            None,
            _extract_from_path,
            archive_path,
            destination,
            member,
            config.chunk_size,
        )

    return RestoreResult(
        operation_id=operation_id,
        bucket=bucket,
        key=key,
        destination=str(destination),
        member=member,
        extracted_count=extracted,
        archive_size=archive_size,
        duration_seconds=0.0,
    )
