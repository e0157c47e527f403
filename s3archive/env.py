# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

Credentials are never read here: aiobotocore resolves them from the
ambient AWS environment (variables, shared config, instance profile).
This module only maps the s3archive-specific variables onto an
ArchiveConfig.
"""

from __future__ import annotations

import os
from pathlib import Path

from s3archive.config import DEFAULT_CHUNK_SIZE, DEFAULT_REGION, ArchiveConfig, CompressionMethod
from s3archive.errors import (
    explain_invalid_bool_env,
    explain_invalid_chunk_size_env,
    explain_invalid_compression_env,
)
from s3archive.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None, default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def _parse_chunk_size(value: str | None) -> int:
    if not value:
        return DEFAULT_CHUNK_SIZE
    try:
        size = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_chunk_size_env(value)) from exc
    if size < 1:
        raise ConfigurationError(explain_invalid_chunk_size_env(value))
    return size


def _parse_compression(value: str | None) -> CompressionMethod:
    if not value:
        return CompressionMethod.DEFLATED
    try:
        return CompressionMethod(value.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_compression_env(value)) from exc


def create_config_from_env(**overrides) -> ArchiveConfig:
    """
    Create an ArchiveConfig from environment variables.

    Keyword overrides take precedence over the environment, and are
    applied only when not None (so CLI flags that were not given fall
    through to the environment).

    Optional environment variables:
        - AWS_REGION: AWS region (default: us-east-1)
        - S3ARCHIVE_ENDPOINT_URL: Custom S3 endpoint URL
        - S3ARCHIVE_STAGING_DIR: Directory for temporary staging files
        - S3ARCHIVE_CHUNK_SIZE: Streaming chunk size in bytes (default: 1 MiB)
        - S3ARCHIVE_COMPRESSION: 'deflated' | 'stored' (default: deflated)
        - S3ARCHIVE_LENIENT_BUCKET_PROBE: Create the bucket on any probe failure
        - S3ARCHIVE_LOG_LEVEL: debug | info | warning | error (default: info)
        - S3ARCHIVE_LOG_JSON: Render logs as JSON lines
    """

    staging_env = os.getenv("S3ARCHIVE_STAGING_DIR")

    values = {
        "region": os.getenv("AWS_REGION") or DEFAULT_REGION,
        "endpoint_url": os.getenv("S3ARCHIVE_ENDPOINT_URL") or None,
        "staging_dir": Path(staging_env) if staging_env else None,
        "chunk_size": _parse_chunk_size(os.getenv("S3ARCHIVE_CHUNK_SIZE")),
        "compression": _parse_compression(os.getenv("S3ARCHIVE_COMPRESSION")),
        "lenient_bucket_probe": _parse_bool(
            "S3ARCHIVE_LENIENT_BUCKET_PROBE",
            os.getenv("S3ARCHIVE_LENIENT_BUCKET_PROBE"),
        ),
        "log_level": (os.getenv("S3ARCHIVE_LOG_LEVEL") or "info").lower(),
        "log_json": _parse_bool("S3ARCHIVE_LOG_JSON", os.getenv("S3ARCHIVE_LOG_JSON")),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    return ArchiveConfig(**values)
