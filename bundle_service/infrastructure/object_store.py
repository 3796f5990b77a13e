"""MinIO/S3 implementation of the ObjectStore port."""

import asyncio
from io import BytesIO
from typing import Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from ..application.domain import ObjectStore
from ..application.exceptions import ObjectNotFoundError, StorageError

from .base_client import BaseClient
from .decorators import retry_on_transport_error

_MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchObject")


class MinioObjectStore(BaseClient, ObjectStore):
    """An object store backed by an S3-compatible bucket."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        region: Optional[str] = None,
    ):
        """Initializes the object store adapter."""
        super().__init__(access_key, secret_key)
        endpoint = endpoint.replace("http://", "").replace("https://", "")
        self.client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self.bucket = bucket

    @retry_on_transport_error
    def _stat(self, key: str) -> bool:
        try:
            self.client.stat_object(self.bucket, key)
        except S3Error as e:
            if e.code in _MISSING_OBJECT_CODES:
                return False
            raise
        return True

    @retry_on_transport_error
    def _download(self, key: str) -> bytes:
        response = self.client.get_object(self.bucket, key)
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    @retry_on_transport_error
    def _upload(self, key: str, data: bytes, content_type: str):
        self.client.put_object(
            self.bucket,
            key,
            BytesIO(data),
            len(data),
            content_type=content_type,
        )

    @retry_on_transport_error
    def _bucket_exists(self) -> bool:
        return self.client.bucket_exists(self.bucket)

    async def exists(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._stat, key)
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Failed to stat {key}: {e}") from e

    async def get(self, key: str) -> bytes:
        """
        Downloads an object fully into memory.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            StorageError: If the download fails for any other reason.
        """
        try:
            data = await asyncio.to_thread(self._download, key)
        except S3Error as e:
            if e.code in _MISSING_OBJECT_CODES:
                raise ObjectNotFoundError(f"Object {key} not found") from e
            raise StorageError(f"Failed to download {key}: {e}") from e
        except HTTPError as e:
            raise StorageError(f"Failed to download {key}: {e}") from e

        self.logger.info(f"Downloaded {key} ({len(data)} bytes)")
        return data

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None):
        try:
            await asyncio.to_thread(
                self._upload, key, data, content_type or "application/octet-stream"
            )
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Failed to upload file to S3: {e}") from e

    async def ping(self):
        try:
            found = await asyncio.to_thread(self._bucket_exists)
        except (S3Error, HTTPError) as e:
            raise StorageError(str(e)) from e
        if not found:
            raise StorageError(f"Bucket {self.bucket} does not exist")
