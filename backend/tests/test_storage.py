"""
NoteKeeper — Object Storage Tests
=================================

What:  Tests for both storage backends.
How:   LocalObjectStorage runs against a temporary directory;
       S3ObjectStorage gets a MagicMock in place of the boto3 client.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from notekeeper.exceptions import ObjectStorageError, ValidationError
from notekeeper.services.storage import LocalObjectStorage, S3ObjectStorage


def client_error(code="AccessDenied", operation="DeleteObject"):
    return ClientError({"Error": {"Code": code, "Message": "denied"}}, operation)


class TestLocalObjectStorage:
    """Tests for the local-disk backend."""

    @pytest.mark.asyncio
    async def test_put_writes_under_prefix(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)

        await storage.put("N1", b"image-bytes")

        assert (Path(temp_storage) / "public" / "N1").read_bytes() == b"image-bytes"

    @pytest.mark.asyncio
    async def test_put_overwrites_same_name(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)

        await storage.put("N1", b"first")
        await storage.put("N1", b"second")

        assert (Path(temp_storage) / "public" / "N1").read_bytes() == b"second"

    @pytest.mark.asyncio
    async def test_get_returns_files_url(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)

        assert await storage.get("My Note") == "/files/public/My%20Note"

    @pytest.mark.asyncio
    async def test_remove(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)
        await storage.put("N1", b"x")

        await storage.remove("N1")

        assert not (Path(temp_storage) / "public" / "N1").exists()

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)
        await storage.remove("never-stored")

    @pytest.mark.asyncio
    async def test_key_escaping_root_rejected(self, temp_storage):
        storage = LocalObjectStorage(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            await storage.put("../../escape", b"x")

    @pytest.mark.asyncio
    async def test_health_check(self, temp_storage, tmp_path):
        assert await LocalObjectStorage(storage_root=temp_storage).health_check() is True
        assert await LocalObjectStorage(storage_root=str(tmp_path / "missing")).health_check() is False


class TestS3ObjectStorage:
    """Tests for the S3 backend with a mocked boto3 client."""

    def setup_method(self):
        self.client = MagicMock()
        self.storage = S3ObjectStorage(bucket="notes-bucket", url_expiry=900, client=self.client)

    @pytest.mark.asyncio
    async def test_put(self):
        await self.storage.put("N1", b"bytes", content_type="image/png")

        self.client.put_object.assert_called_once_with(
            Bucket="notes-bucket", Key="public/N1", Body=b"bytes", ContentType="image/png",
        )

    @pytest.mark.asyncio
    async def test_put_without_content_type(self):
        await self.storage.put("N1", b"bytes")

        self.client.put_object.assert_called_once_with(Bucket="notes-bucket", Key="public/N1", Body=b"bytes")

    @pytest.mark.asyncio
    async def test_get_presigns(self):
        self.client.generate_presigned_url.return_value = "https://notes-bucket.s3.amazonaws.com/public/N1?X-Amz-Signature=abc"

        url = await self.storage.get("N1")

        assert url.startswith("https://notes-bucket.s3.amazonaws.com/public/N1")
        self.client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "notes-bucket", "Key": "public/N1"},
            ExpiresIn=900,
        )

    @pytest.mark.asyncio
    async def test_remove(self):
        await self.storage.remove("N1")

        self.client.delete_object.assert_called_once_with(Bucket="notes-bucket", Key="public/N1")

    @pytest.mark.asyncio
    async def test_client_error_maps_to_storage_error(self):
        self.client.delete_object.side_effect = client_error()

        with pytest.raises(ObjectStorageError) as exc_info:
            await self.storage.remove("N1")

        assert exc_info.value.key == "public/N1"

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await self.storage.health_check() is True

        self.client.head_bucket.side_effect = client_error("NoSuchBucket", "HeadBucket")
        assert await self.storage.health_check() is False
