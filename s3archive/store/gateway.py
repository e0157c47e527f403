# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3archive Object Store Gateway - Idempotent S3 access over aiobotocore.

The gateway owns no client lifecycle: it wraps a client created by
open_gateway() (or injected by tests) and translates botocore errors
into the s3archive exception hierarchy.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Set

import aiofiles
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from s3archive.config import DEFAULT_CHUNK_SIZE, DEFAULT_REGION, ArchiveConfig
from s3archive.exceptions import BucketError, GetFailed, ObjectNotFound, PutFailed

logger = structlog.get_logger()

_NOT_FOUND_CODES = {"404", "NoSuchBucket", "NotFound"}
_MISSING_KEY_CODES = {"404", "NoSuchKey", "NotFound"}
_ALREADY_OWNED_CODES = {"BucketAlreadyOwnedByYou"}


class ProbeStatus(str, Enum):
    """Outcome of a bucket metadata probe."""

    EXISTS = "exists"
    NOT_FOUND = "not_found"
    PROBE_ERROR = "probe_error"


@dataclass(frozen=True)
class BucketProbe:
    """Tagged result of probing a bucket."""

    bucket: str
    status: ProbeStatus
    reason: str | None = None


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _status_code(error: ClientError) -> int | None:
    return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


class ObjectStoreGateway:
    """
    Bucket provisioning and streaming transfers for one S3 client.

    Buckets confirmed to exist (found or created) are remembered, so
    repeated ensure_bucket() calls on the same gateway do not go back
    to the store.
    """

    def __init__(
        self,
        client: Any,
        region: str = DEFAULT_REGION,
        lenient_bucket_probe: bool = False,
    ) -> None:
        self.client = client
        self.region = region
        self.lenient_bucket_probe = lenient_bucket_probe
        self._known_buckets: Set[str] = set()

    async def probe_bucket(self, bucket: str) -> BucketProbe:
        """
        Check bucket existence with a metadata request.

        Returns:
            BucketProbe tagged EXISTS, NOT_FOUND or PROBE_ERROR
        """
        try:
            await self.client.head_bucket(Bucket=bucket)
        except ClientError as e:
            code = _error_code(e)
            if code in _NOT_FOUND_CODES or _status_code(e) == 404:
                return BucketProbe(bucket=bucket, status=ProbeStatus.NOT_FOUND, reason=code)
            return BucketProbe(bucket=bucket, status=ProbeStatus.PROBE_ERROR, reason=str(e))
        except BotoCoreError as e:
            return BucketProbe(bucket=bucket, status=ProbeStatus.PROBE_ERROR, reason=str(e))
        return BucketProbe(bucket=bucket, status=ProbeStatus.EXISTS)

    async def ensure_bucket(self, bucket: str) -> bool:
        """
        Make sure bucket exists, creating it if the probe reports it absent.

        A probe error is fatal unless the gateway is lenient, in which
        case creation is attempted anyway.

        Returns:
            True if the bucket was created by this call

        Raises:
            BucketError: If the probe fails (strict mode) or creation fails
        """
        if bucket in self._known_buckets:
            return False

        probe = await self.probe_bucket(bucket)

        if probe.status is ProbeStatus.EXISTS:
            self._known_buckets.add(bucket)
            logger.debug("bucket_exists", bucket=bucket)
            return False

        if probe.status is ProbeStatus.PROBE_ERROR:
            if not self.lenient_bucket_probe:
                raise BucketError(
                    f"Failed to check bucket: {probe.reason}",
                    details={"bucket": bucket},
                )
            logger.warning("bucket_probe_failed_creating", bucket=bucket, reason=probe.reason)

        created = await self._create_bucket(bucket)
        self._known_buckets.add(bucket)
        return created

    async def _create_bucket(self, bucket: str) -> bool:
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        # us-east-1 rejects an explicit LocationConstraint
        if self.region and self.region != DEFAULT_REGION:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}

        try:
            await self.client.create_bucket(**kwargs)
        except ClientError as e:
            if _error_code(e) in _ALREADY_OWNED_CODES:
                logger.debug("bucket_already_owned", bucket=bucket)
                return False
            raise BucketError(
                f"Failed to create bucket: {e}",
                details={"bucket": bucket, "region": self.region},
            ) from e
        except BotoCoreError as e:
            raise BucketError(
                f"Failed to create bucket: {e}",
                details={"bucket": bucket, "region": self.region},
            ) from e

        logger.info("bucket_created", bucket=bucket, region=self.region)
        return True

    async def put_file(self, bucket: str, key: str, local_path: Path | str) -> Dict[str, Any]:
        """
        Upload a local file as the object body, overwriting any existing object.

        Returns:
            Write acknowledgement with ETag (and VersionId when the store sets one)

        Raises:
            PutFailed: If the file cannot be read or the store rejects the write
        """
        path = Path(local_path)
        try:
            # botocore needs a seekable sync file for checksums; aiofiles handles are not accepted
            with open(path, "rb") as body:
                response = await self.client.put_object(Bucket=bucket, Key=key, Body=body)
        except (ClientError, BotoCoreError, OSError) as e:
            raise PutFailed(
                f"Failed to upload object: {e}",
                details={"bucket": bucket, "key": key, "local_path": str(path)},
            ) from e

        ack = {"ETag": response.get("ETag")}
        if response.get("VersionId"):
            ack["VersionId"] = response["VersionId"]

        logger.info("object_uploaded", bucket=bucket, key=key, etag=ack["ETag"])
        return ack

    async def get(self, bucket: str, key: str) -> Any:
        """
        Open an object for reading.

        Returns:
            The object's streaming body (supports `async with` and `read(n)`)

        Raises:
            ObjectNotFound: If the key does not exist
            GetFailed: For any other store failure
        """
        try:
            response = await self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            details = {"bucket": bucket, "key": key}
            if _error_code(e) in _MISSING_KEY_CODES or _status_code(e) == 404:
                raise ObjectNotFound(f"Object not found: s3://{bucket}/{key}", details=details) from e
            if _error_code(e) == "NoSuchBucket":
                raise ObjectNotFound(f"Bucket not found: {bucket}", details=details) from e
            raise GetFailed(f"Failed to download object: {e}", details=details) from e
        except BotoCoreError as e:
            raise GetFailed(
                f"Failed to download object: {e}",
                details={"bucket": bucket, "key": key},
            ) from e
        return response["Body"]

    async def download_to(
        self,
        bucket: str,
        key: str,
        local_path: Path | str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> int:
        """
        Stream an object into a local file.

        Returns:
            Number of bytes written
        """
        path = Path(local_path)
        body = await self.get(bucket, key)

        written = 0
        try:
            async with body as stream:
                async with aiofiles.open(path, "wb") as f:
                    while True:
                        chunk = await stream.read(chunk_size)
                        if not chunk:
                            break
                        await f.write(chunk)
                        written += len(chunk)
        except (ClientError, BotoCoreError, OSError) as e:
            raise GetFailed(
                f"Failed to download object: {e}",
                details={"bucket": bucket, "key": key, "local_path": str(path)},
            ) from e

        logger.info("object_downloaded", bucket=bucket, key=key, size=written)
        return written


@asynccontextmanager
async def open_gateway(config: ArchiveConfig) -> AsyncIterator[ObjectStoreGateway]:
    """
    Create an S3 client for config and wrap it in a gateway.

    Credentials are resolved by botocore from the ambient environment.
    """
    from aiobotocore.session import get_session

    session = get_session()
    async with session.create_client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
    ) as client:
        yield ObjectStoreGateway(
            client,
            region=config.region,
            lenient_bucket_probe=config.lenient_bucket_probe,
        )
