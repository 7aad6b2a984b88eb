"""Blob store client for uploaded documents."""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.core.exceptions import BlobStoreError

logger = structlog.get_logger(__name__)


class BlobStore(ABC):
    """Contract for content upload and public URL retrieval."""

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        """Upload content under the given path."""

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        """Return the public URL for a stored path."""


class S3BlobStore(BlobStore):
    """Blob store backed by an S3 compatible bucket."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        region: str,
        public_base_url: str | None = None,
    ):
        """Initialize store with a boto3 S3 client and bucket details."""
        self.client = client
        self.bucket = bucket
        self.region = region
        self.public_base_url = public_base_url

    async def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        """
        Upload content to the bucket.

        Args:
            path: Object key
            content: Raw file bytes
            content_type: MIME type stored with the object

        Raises:
            BlobStoreError: If the upload fails
        """
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": path, "Body": content}
        if content_type:
            params["ContentType"] = content_type

        try:
            # boto3 is blocking
            await run_in_threadpool(self.client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            logger.error("blob_upload_failed", bucket=self.bucket, path=path, error=str(e))
            raise BlobStoreError(f"Failed to upload {path}") from e

        logger.info("blob_uploaded", bucket=self.bucket, path=path, size=len(content))

    def get_public_url(self, path: str) -> str:
        """Build the public URL of an object."""
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Get cached S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.storage_region,
        endpoint_url=settings.storage_endpoint_url,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


def get_blob_store() -> BlobStore:
    """Dependency for the configured blob store."""
    return S3BlobStore(
        client=get_s3_client(),
        bucket=settings.storage_bucket,
        region=settings.storage_region,
        public_base_url=settings.storage_public_base_url,
    )


async def check_blob_store_connection() -> bool:
    """Check that the configured bucket is reachable."""
    try:
        await run_in_threadpool(get_s3_client().head_bucket, Bucket=settings.storage_bucket)
        return True
    except Exception:
        return False
