# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for s3archive tests.

Provides an in-memory S3 client with the aiobotocore call surface,
directory tree helpers, and test configuration.
"""

import hashlib
import io
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
from botocore.exceptions import ClientError


def client_error(code: str, status: int, operation: str) -> ClientError:
    """Build a botocore ClientError the way the S3 client raises it."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeStreamingBody:
    """Async streaming body with the subset of StreamingBody we use."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def __aenter__(self) -> "FakeStreamingBody":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    async def read(self, amt: int | None = None) -> bytes:
        if amt is None or amt < 0:
            return self._buffer.read()
        return self._buffer.read(amt)


class FakeS3Client:
    """
    In-memory S3 client.

    Records every call in `calls` so tests can assert that no network
    operation happened, or that creation was attempted exactly once.
    """

    def __init__(self) -> None:
        self.buckets: Dict[str, Dict[str, bytes]] = {}
        self.calls: List[str] = []
        self.create_kwargs: List[Dict[str, Any]] = []
        self.head_bucket_error: Exception | None = None
        self.put_error: Exception | None = None
        self.get_error: Exception | None = None

    async def head_bucket(self, Bucket: str) -> dict:
        self.calls.append("head_bucket")
        if self.head_bucket_error is not None:
            raise self.head_bucket_error
        if Bucket not in self.buckets:
            raise client_error("404", 404, "HeadBucket")
        return {}

    async def create_bucket(self, **kwargs) -> dict:
        self.calls.append("create_bucket")
        self.create_kwargs.append(kwargs)
        bucket = kwargs["Bucket"]
        if bucket in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", 409, "CreateBucket")
        self.buckets[bucket] = {}
        return {"Location": f"/{bucket}"}

    async def put_object(self, Bucket: str, Key: str, Body: Any) -> dict:
        self.calls.append("put_object")
        if self.put_error is not None:
            raise self.put_error
        if Bucket not in self.buckets:
            raise client_error("NoSuchBucket", 404, "PutObject")
        data = Body.read() if hasattr(Body, "read") else bytes(Body)
        self.buckets[Bucket][Key] = data
        return {"ETag": f'"{hashlib.md5(data).hexdigest()}"'}

    async def get_object(self, Bucket: str, Key: str) -> dict:
        self.calls.append("get_object")
        if self.get_error is not None:
            raise self.get_error
        if Bucket not in self.buckets:
            raise client_error("NoSuchBucket", 404, "GetObject")
        if Key not in self.buckets[Bucket]:
            raise client_error("NoSuchKey", 404, "GetObject")
        data = self.buckets[Bucket][Key]
        return {"Body": FakeStreamingBody(data), "ContentLength": len(data)}


def build_tree(root: Path, files: Dict[str, bytes | str]) -> Path:
    """Create files (and their parent directories) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode()
        path.write_bytes(content)
    return root


def read_tree(root: Path) -> Dict[str, bytes]:
    """Map every file under root to its content, keyed by POSIX relative name."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in root.rglob("*")
        if p.is_file()
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def gateway(fake_s3_client: FakeS3Client):
    from s3archive.store.gateway import ObjectStoreGateway

    return ObjectStoreGateway(fake_s3_client)


@pytest.fixture
def staging_dir(temp_dir: Path) -> Path:
    path = temp_dir / "staging"
    path.mkdir()
    return path


@pytest.fixture
def test_config(staging_dir: Path):
    """Create a test configuration with a private staging directory."""
    from s3archive.config import ArchiveConfig

    return ArchiveConfig(
        region="us-east-1",
        staging_dir=staging_dir,
        chunk_size=4096,
    )


@pytest.fixture
def sample_tree(temp_dir: Path) -> Path:
    """The {a.txt: "hi", sub/b.txt: "bye"} tree."""
    return build_tree(temp_dir / "source", {"a.txt": "hi", "sub/b.txt": "bye"})
