"""
NoteKeeper — Object Storage Gateway
===================================

What:  put / get / remove for note images, keyed by note name.
Why:   Image blobs live in an object store next to the GraphQL API. The view
       only needs three verbs and a URL the browser can fetch.
How:   ObjectStorage is the interface; S3ObjectStorage talks to the bucket
       through boto3, LocalObjectStorage keeps blobs on disk for development.
Who:   Called by NotesView; probed by the health route.

Key Layout:
    <STORAGE_PREFIX><note name>      e.g. public/Groceries

    No content hashing, no deduplication, no size or type validation:
    a second upload under the same name overwrites the first.

Backends:
    s3:     get() returns a presigned GET URL (PRESIGNED_URL_EXPIRY seconds).
            boto3 is blocking, so every call runs in the thread pool.
    local:  files under STORAGE_ROOT; get() returns /files/<key>, which the
            files route serves. Keys resolving outside STORAGE_ROOT are rejected.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles
import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from notekeeper.config import settings
from notekeeper.exceptions import ObjectStorageError, ValidationError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """
    Interface for blob storage keyed by note name.

    Contract:
        - put() stores bytes under key, replacing any existing blob
        - get() returns a URL the browser can load; it does not check existence
        - remove() deletes the blob; removing a missing key is not an error
        - backend failures raise ObjectStorageError
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def object_key(self, key: str) -> str:
        """Full object key for a note name."""
        return f"{self.prefix}{key}"

    @abstractmethod
    async def put(self, key: str, blob: bytes, content_type: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> str:
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...


class S3ObjectStorage(ObjectStorage):
    """
    Object storage backed by an S3 bucket.

    Credentials come from the default boto3 chain (environment, shared
    config, instance role); nothing here handles them.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "public/",
        region: Optional[str] = None,
        url_expiry: int = 900,
        client=None,
    ):
        super().__init__(prefix=prefix)
        self.bucket = bucket
        self.region = region or settings.aws_region
        self.url_expiry = url_expiry
        self._client = client

    def _get_client(self):
        """Create the S3 client on first use (lazy: no AWS lookups at import)."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    async def put(self, key: str, blob: bytes, content_type: Optional[str] = None) -> None:
        object_key = self.object_key(key)
        extra = {"ContentType": content_type} if content_type else {}
        try:
            await run_in_threadpool(
                self._get_client().put_object,
                Bucket=self.bucket,
                Key=object_key,
                Body=blob,
                **extra,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 put failed for %s: %s", object_key, str(e))
            raise ObjectStorageError(
                message="Failed to upload the image. Please try again.",
                key=object_key,
                context={"bucket": self.bucket, "error_type": type(e).__name__},
            )
        logger.info("Stored s3://%s/%s (%d bytes)", self.bucket, object_key, len(blob))

    async def get(self, key: str) -> str:
        object_key = self.object_key(key)
        try:
            return await run_in_threadpool(
                self._get_client().generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": object_key},
                ExpiresIn=self.url_expiry,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 presign failed for %s: %s", object_key, str(e))
            raise ObjectStorageError(
                message="Could not resolve the image URL.",
                key=object_key,
                context={"bucket": self.bucket, "error_type": type(e).__name__},
            )

    async def remove(self, key: str) -> None:
        object_key = self.object_key(key)
        try:
            await run_in_threadpool(
                self._get_client().delete_object,
                Bucket=self.bucket,
                Key=object_key,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 delete failed for %s: %s", object_key, str(e))
            raise ObjectStorageError(
                message="Failed to remove the image.",
                key=object_key,
                context={"bucket": self.bucket, "error_type": type(e).__name__},
            )
        logger.info("Removed s3://%s/%s", self.bucket, object_key)

    async def health_check(self) -> bool:
        try:
            await run_in_threadpool(self._get_client().head_bucket, Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 health check failed for bucket %s: %s", self.bucket, str(e))
            return False


class LocalObjectStorage(ObjectStorage):
    """
    Object storage on the local file system, for development and tests.

    Directory Structure:
        storage/
        └── public/
            ├── Groceries
            └── Trip to Lisbon
    """

    def __init__(self, storage_root: Optional[str] = None, prefix: str = "public/"):
        super().__init__(prefix=prefix)
        self.storage_root = Path(storage_root or settings.storage_root).resolve()

    def path_for(self, object_key: str) -> Path:
        """
        Resolve an object key to a path inside the storage root.

        Raises:
            ValidationError if the key escapes the storage root (e.g. "../x").
        """
        path = (self.storage_root / object_key).resolve()
        if path == self.storage_root or not path.is_relative_to(self.storage_root):
            raise ValidationError(
                message="Invalid storage key",
                field="name",
                context={"key": object_key},
            )
        return path

    async def put(self, key: str, blob: bytes, content_type: Optional[str] = None) -> None:
        path = self.path_for(self.object_key(key))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(blob)
        except OSError as e:
            logger.error("Failed to store %s: %s", path, str(e))
            raise ObjectStorageError(
                message="Failed to save the image. Please try again.",
                key=self.object_key(key),
                context={"os_error": str(e)},
            )
        logger.info("Stored %s (%d bytes)", self.object_key(key), len(blob))

    async def get(self, key: str) -> str:
        object_key = self.object_key(key)
        self.path_for(object_key)
        return f"/files/{quote(object_key)}"

    async def remove(self, key: str) -> None:
        path = self.path_for(self.object_key(key))
        try:
            if path.exists():
                os.remove(path)
                logger.info("Removed %s", self.object_key(key))
            else:
                logger.debug("Remove: blob already gone: %s", self.object_key(key))
        except OSError as e:
            logger.error("Failed to remove %s: %s", path, str(e))
            raise ObjectStorageError(
                message="Failed to remove the image.",
                key=self.object_key(key),
                context={"os_error": str(e)},
            )

    async def health_check(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)


def build_object_storage() -> ObjectStorage:
    """Create the backend selected by STORAGE_BACKEND."""
    if settings.storage_backend == "s3":
        return S3ObjectStorage(
            bucket=settings.storage_bucket,
            prefix=settings.storage_prefix,
            region=settings.aws_region,
            url_expiry=settings.presigned_url_expiry,
        )
    return LocalObjectStorage(
        storage_root=settings.storage_root,
        prefix=settings.storage_prefix,
    )


# ── Singleton Instance ────────────────────────────────────────────────────
object_storage = build_object_storage()
