# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command-line interface for s3archive.

The CLI only parses arguments, builds the configuration and delegates to
s3archive.core. Errors are printed to stderr and turned into a non-zero
exit status.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from s3archive.core import backup, restore
from s3archive.env import create_config_from_env
from s3archive.exceptions import S3ArchiveError
from s3archive.log import configure_logging


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-p", dest="path", required=True, help="Local directory")
    common.add_argument("-b", dest="bucket", required=True, help="Bucket name")
    common.add_argument("-k", dest="key", required=True, help="Object key of the archive")
    common.add_argument("--region", default=None, help="AWS region (default: $AWS_REGION or us-east-1)")
    common.add_argument("--endpoint-url", default=None, help="Custom S3 endpoint URL")
    common.add_argument("--log-level", default=None, help="debug, info, warning or error")
    common.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Render logs as JSON lines",
    )
    common.add_argument(
        "--lenient-bucket-probe",
        action="store_true",
        default=None,
        help="Try to create the bucket whenever the existence check fails",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="s3archive",
        description="Back up and restore directories as ZIP archives in S3",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    common = _common_options()

    sub.add_parser("backup", parents=[common], help="backup a directory")

    restore_p = sub.add_parser("restore", parents=[common], help="restore files")
    restore_p.add_argument(
        "-f",
        dest="file",
        default=None,
        help="Restore only this archive member (default: the whole tree)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Returns:
        0 on success, 1 if the operation failed
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = create_config_from_env(
            region=args.region,
            endpoint_url=args.endpoint_url,
            log_level=args.log_level.lower() if args.log_level else None,
            log_json=args.log_json,
            lenient_bucket_probe=args.lenient_bucket_probe,
        )
        configure_logging(config.log_level, config.log_json)

        if args.command == "backup":
            asyncio.run(backup(config, args.path, args.bucket, args.key))
        else:
            asyncio.run(restore(config, args.path, args.bucket, args.key, member=args.file))
    except S3ArchiveError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Console-script wrapper."""
    sys.exit(main())
