"""Blob storage: S3-compatible bucket for profile and message images."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Protocol
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class BlobStorage(Protocol):
    async def get_url(self, key: str) -> str | None: ...


class StorageService:
    """Resolves object keys to presigned URLs and issues upload URLs."""

    def __init__(self) -> None:
        self._client = None

    def _get_client(self):
        if self._client is None:
            settings = get_settings()
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.s3_endpoint_url,
                aws_access_key_id=settings.s3_access_key,
                aws_secret_access_key=settings.s3_secret_key,
                region_name=settings.s3_region,
            )
        return self._client

    async def _run_sync(self, fn, *args, **kwargs):
        """Run a blocking boto3 call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args, **kwargs))

    async def get_url(self, key: str, expires_in: int | None = None) -> str | None:
        """Presigned GET URL for ``key``, or None when the object is missing."""
        settings = get_settings()
        client = self._get_client()
        try:
            await self._run_sync(client.head_object, Bucket=settings.s3_bucket, Key=key)
            return await self._run_sync(
                client.generate_presigned_url,
                "get_object",
                Params={"Bucket": settings.s3_bucket, "Key": key},
                ExpiresIn=expires_in or settings.image_url_ttl,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            logger.info("blob_url_unavailable", key=key, code=code)
            return None
        except BotoCoreError as e:
            logger.warning("blob_storage_error", key=key, error=str(e))
            return None

    async def generate_upload_url(
        self,
        *,
        content_type: str,
        prefix: str = "images",
        expires_in: int = 900,
    ) -> tuple[str, str]:
        """Return ``(key, presigned PUT URL)`` for a new image upload."""
        settings = get_settings()
        extension = _IMAGE_EXTENSIONS.get(content_type, "bin")
        key = f"{prefix}/{uuid4()}.{extension}"
        url = await self._run_sync(
            self._get_client().generate_presigned_url,
            "put_object",
            Params={
                "Bucket": settings.s3_bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )
        return key, url


# Singleton
storage_service = StorageService()
