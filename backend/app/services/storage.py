"""
S3-compatible object storage (MinIO) built from the ``MINIO_*`` settings.

The boto3 client is created on first use, so startup never depends on the
object store being reachable.  boto3 is blocking; the async helpers push
every call onto the threadpool.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from ..config import Settings
from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    def __init__(self, settings: Settings, client: Any = None) -> None:
        self._settings = settings
        self._client = client

    @property
    def bucket(self) -> str:
        return self._settings.MINIO_PUBLIC_BUCKET_NAME

    @property
    def endpoint_url(self) -> str:
        scheme = "https" if self._settings.MINIO_USE_SSL else "http"
        return f"{scheme}://{self._settings.MINIO_ENDPOINT}:{self._settings.MINIO_PORT}"

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self._settings.MINIO_ACCESS_KEY,
                aws_secret_access_key=self._settings.MINIO_SECRET_KEY,
                config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
            )
        return self._client

    def public_url(self, key: str) -> str:
        base = self._settings.MINIO_URL.rstrip("/")
        return f"{base}/{self.bucket}/{key.lstrip('/')}"

    async def upload(
        self, key: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            await run_in_threadpool(
                self.client.put_object, Bucket=self.bucket, Key=key, Body=data, **extra
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload of {key} failed: {exc}") from exc
        logger.debug("Stored %s (%d bytes) in %s", key, len(data), self.bucket)
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Delete of {key} failed: {exc}") from exc

    async def ensure_bucket(self) -> None:
        try:
            await run_in_threadpool(self.client.head_bucket, Bucket=self.bucket)
            return
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code not in ("404", "NoSuchBucket", "NotFound"):
                raise StorageError(f"Bucket check for {self.bucket} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Bucket check for {self.bucket} failed: {exc}") from exc

        logger.info("Creating bucket %s", self.bucket)
        try:
            await run_in_threadpool(self.client.create_bucket, Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Could not create bucket {self.bucket}: {exc}") from exc


__all__ = ["StorageService"]
