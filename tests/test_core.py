# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup/restore orchestration tests for s3archive.

These tests run the full pipeline against the in-memory S3 client:
1. Round trip - backup then restore reproduces the tree
2. Single member - restore of one named file
3. Early failures - bad sources fail before any network call
4. Staging - temporary archives are removed on every exit path
"""

import io
import zipfile
from pathlib import Path

import pytest

from conftest import FakeS3Client, build_tree, client_error, read_tree
from s3archive.core import backup, restore, staging_file
from s3archive.exceptions import (
    ArchiveError,
    ConfigurationError,
    MemberNotFound,
    NotADirectory,
    ObjectNotFound,
    PutFailed,
)


BUCKET = "test-bucket"
KEY = "backups/tree.zip"


# ============================================================================
# Round trip
# ============================================================================

@pytest.mark.asyncio
async def test_backup_then_restore_concrete_scenario(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path, temp_dir: Path
):
    result = await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    assert result.files_written == 2
    assert result.directories_written == 1
    assert result.bucket_created is True
    assert result.etag
    assert result.skipped_paths == []
    assert result.archive_size == len(fake_s3_client.buckets[BUCKET][KEY])

    dest = temp_dir / "restored"
    restored = await restore(test_config, dest, BUCKET, KEY, gateway=gateway)

    assert restored.extracted_count == 3
    assert restored.member is None
    assert read_tree(dest) == {"a.txt": b"hi", "sub/b.txt": b"bye"}


@pytest.mark.asyncio
async def test_uploaded_object_is_a_zip_archive(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path
):
    await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    data = fake_s3_client.buckets[BUCKET][KEY]
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert sorted(zf.namelist()) == ["a.txt", "sub/", "sub/b.txt"]


@pytest.mark.asyncio
async def test_backup_overwrites_previous_archive(
    test_config, gateway, fake_s3_client: FakeS3Client, temp_dir: Path
):
    first = build_tree(temp_dir / "first", {"old.txt": "old"})
    second = build_tree(temp_dir / "second", {"new.txt": "new"})

    await backup(test_config, first, BUCKET, KEY, gateway=gateway)
    result = await backup(test_config, second, BUCKET, KEY, gateway=gateway)

    assert result.bucket_created is False
    assert fake_s3_client.calls.count("create_bucket") == 1

    dest = temp_dir / "dest"
    await restore(test_config, dest, BUCKET, KEY, gateway=gateway)
    assert read_tree(dest) == {"new.txt": b"new"}


@pytest.mark.asyncio
async def test_round_trip_binary_tree(test_config, gateway, temp_dir: Path):
    files = {
        "bin/data.bin": bytes(range(256)) * 64,
        "docs/readme.md": "# hello\n",
        "docs/nested/deep/note.txt": "deep",
    }
    root = build_tree(temp_dir / "src", files)

    await backup(test_config, root, BUCKET, KEY, gateway=gateway)
    dest = temp_dir / "dest"
    await restore(test_config, dest, BUCKET, KEY, gateway=gateway)

    expected = {k: (v.encode() if isinstance(v, str) else v) for k, v in files.items()}
    assert read_tree(dest) == expected


# ============================================================================
# Single member
# ============================================================================

@pytest.mark.asyncio
async def test_restore_single_member(test_config, gateway, sample_tree: Path, temp_dir: Path):
    await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    dest = temp_dir / "single"
    result = await restore(test_config, dest, BUCKET, KEY, member="sub/b.txt", gateway=gateway)

    assert result.member == "sub/b.txt"
    assert result.extracted_count == 1
    assert read_tree(dest) == {"sub/b.txt": b"bye"}


@pytest.mark.asyncio
async def test_restore_missing_member_writes_nothing(
    test_config, gateway, sample_tree: Path, temp_dir: Path, staging_dir: Path
):
    await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    dest = temp_dir / "single"
    with pytest.raises(MemberNotFound):
        await restore(test_config, dest, BUCKET, KEY, member="ghost.txt", gateway=gateway)

    assert not dest.exists()
    assert list(staging_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_restore_rejects_unsafe_member_before_download(
    test_config, gateway, fake_s3_client: FakeS3Client, temp_dir: Path
):
    with pytest.raises(ArchiveError):
        await restore(test_config, temp_dir, BUCKET, KEY, member="../outside.txt", gateway=gateway)

    assert fake_s3_client.calls == []


# ============================================================================
# Early failures
# ============================================================================

@pytest.mark.asyncio
async def test_backup_of_regular_file_fails_before_network(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path
):
    with pytest.raises(NotADirectory):
        await backup(test_config, sample_tree / "a.txt", BUCKET, KEY, gateway=gateway)

    assert fake_s3_client.calls == []


@pytest.mark.asyncio
async def test_backup_of_regular_file_fails_without_gateway(test_config, sample_tree: Path):
    """No client is ever created when the source is invalid."""
    with pytest.raises(NotADirectory):
        await backup(test_config, sample_tree / "a.txt", BUCKET, KEY)


@pytest.mark.asyncio
async def test_backup_rejects_invalid_bucket_name(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path
):
    with pytest.raises(ConfigurationError):
        await backup(test_config, sample_tree, "Not_A_Bucket", KEY, gateway=gateway)

    assert fake_s3_client.calls == []


@pytest.mark.asyncio
async def test_backup_rejects_empty_key(test_config, gateway, sample_tree: Path):
    with pytest.raises(ConfigurationError):
        await backup(test_config, sample_tree, BUCKET, "", gateway=gateway)


@pytest.mark.asyncio
async def test_restore_rejects_invalid_bucket_name(
    test_config, gateway, fake_s3_client: FakeS3Client, temp_dir: Path
):
    with pytest.raises(ConfigurationError):
        await restore(test_config, temp_dir / "dest", "Not_A_Bucket", KEY, gateway=gateway)

    assert fake_s3_client.calls == []


@pytest.mark.asyncio
async def test_restore_missing_key_raises_object_not_found(
    test_config, gateway, fake_s3_client: FakeS3Client, temp_dir: Path
):
    fake_s3_client.buckets[BUCKET] = {}

    with pytest.raises(ObjectNotFound):
        await restore(test_config, temp_dir / "dest", BUCKET, "nope.zip", gateway=gateway)


@pytest.mark.asyncio
async def test_restore_of_non_archive_object_raises_archive_error(
    test_config, gateway, fake_s3_client: FakeS3Client, temp_dir: Path
):
    fake_s3_client.buckets[BUCKET] = {KEY: b"this is not a zip"}

    with pytest.raises(ArchiveError):
        await restore(test_config, temp_dir / "dest", BUCKET, KEY, gateway=gateway)


# ============================================================================
# Staging files
# ============================================================================

@pytest.mark.asyncio
async def test_staging_file_removed_after_success(
    test_config, gateway, sample_tree: Path, temp_dir: Path, staging_dir: Path
):
    await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)
    await restore(test_config, temp_dir / "dest", BUCKET, KEY, gateway=gateway)

    assert list(staging_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_staging_file_removed_after_upload_failure(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path, staging_dir: Path
):
    fake_s3_client.put_error = client_error("AccessDenied", 403, "PutObject")

    with pytest.raises(PutFailed):
        await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    assert list(staging_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_staging_file_context_cleans_up_on_error(test_config, staging_dir: Path):
    seen = []

    with pytest.raises(RuntimeError):
        async with staging_file(test_config) as path:
            seen.append(path)
            assert path.exists()
            assert path.parent == staging_dir
            raise RuntimeError("boom")

    assert not seen[0].exists()


@pytest.mark.asyncio
async def test_unusable_staging_dir_raises_archive_error(
    test_config, gateway, fake_s3_client: FakeS3Client, sample_tree: Path, staging_dir: Path
):
    staging_dir.rmdir()

    with pytest.raises(ArchiveError) as excinfo:
        await backup(test_config, sample_tree, BUCKET, KEY, gateway=gateway)

    assert "staging file" in str(excinfo.value)
    assert "put_object" not in fake_s3_client.calls
