"""
Object storage client for audit archives.

Uses the S3 API through boto3. S3-compatible providers (Tencent COS,
MinIO, R2, ...) work by setting ``STORAGE_ENDPOINT_URL``.
"""
import asyncio
from typing import Any, Optional

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ipn_gateway.config import Settings
from ipn_gateway.core.errors import UpstreamStorageError

logger = structlog.get_logger(__name__)


class ObjectStore:
    """Writes archive objects to a single bucket."""

    def __init__(self, bucket: str, client: Any):
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ObjectStore"]:
        """Build a store, or ``None`` when credentials or bucket are missing."""
        if not settings.storage_configured:
            logger.warning(
                "archive_storage_not_configured",
                has_credentials=bool(settings.storage_access_key and settings.storage_secret_key),
                has_bucket=bool(settings.storage_bucket),
            )
            return None

        client = boto3.client(
            "s3",
            aws_access_key_id=settings.storage_access_key,
            aws_secret_access_key=settings.storage_secret_key,
            region_name=settings.storage_region,
            endpoint_url=settings.storage_endpoint_url,
            config=BotoConfig(retries={"max_attempts": 1, "mode": "standard"}),
        )
        return cls(settings.storage_bucket, client)

    def put_object_sync(self, key: str, body: bytes, content_type: str) -> None:
        """
        Write one object.

        Raises:
            UpstreamStorageError: If the storage API call fails
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("archive_write_failed", bucket=self.bucket, key=key, error=str(e))
            raise UpstreamStorageError(f"Archive write failed: {str(e)}") from e

        logger.info("archive_written", bucket=self.bucket, key=key, size_bytes=len(body))

    async def put_object(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        """Async wrapper; boto3 is blocking so the call runs in a worker thread."""
        await asyncio.to_thread(self.put_object_sync, key, body, content_type)
