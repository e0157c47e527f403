# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Object Store - S3 bucket provisioning and object transfers.
"""

from s3archive.store.gateway import (
    BucketProbe,
    ObjectStoreGateway,
    ProbeStatus,
    open_gateway,
)

__all__ = [
    "BucketProbe",
    "ObjectStoreGateway",
    "ProbeStatus",
    "open_gateway",
]
