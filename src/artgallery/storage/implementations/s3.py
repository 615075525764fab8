"""AWS S3 (or S3-compatible) remote blob store with CloudFront URL support."""

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar
from urllib.parse import quote

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...exceptions import StorageError, ValidationError
from ...logging import get_logger
from ..base import BlobStore, StorageLocator, generate_blob_name, validate_key

logger = get_logger(__name__)

T = TypeVar("T")

MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3BlobStore(BlobStore):
    """Remote object storage under a logical folder, one object per artwork."""

    name = "s3"

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        folder: str = "artworks",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        cloudfront_domain: str | None = None,
        timeout: float = 30.0,
    ):
        self.bucket = bucket
        self.region = region
        self.folder = folder.strip("/")
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.endpoint_url = endpoint_url
        self.cloudfront_domain = cloudfront_domain
        self.timeout = timeout

        self.config = Config(
            region_name=self.region,
            connect_timeout=min(timeout, 10.0),
            read_timeout=timeout,
            retries={"max_attempts": 3, "mode": "adaptive"},
        )
        self._session: Any | None = None

    def _get_session(self) -> Any:
        """Get or create the aioboto3 session."""
        if self._session is None:
            self._session = aioboto3.Session(
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
                region_name=self.region,
            )
        return self._session

    def _client(self) -> Any:
        return self._get_session().client(
            "s3", config=self.config, endpoint_url=self.endpoint_url
        )

    async def _bounded(self, operation: str, key: str, call: Awaitable[T]) -> T:
        """Run one remote call under the store timeout, mapping failures to StorageError."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except TimeoutError as e:
            logger.error("Remote storage timed out", operation=operation, key=key)
            raise StorageError(f"Remote storage {operation} timed out") from e
        except ClientError as e:
            error = e.response.get("Error", {})
            message = f"{error.get('Code', 'Unknown')}: {error.get('Message', str(e))}"
            logger.error(
                "Remote storage rejected request", operation=operation, key=key, error=message
            )
            raise StorageError(f"Remote storage {operation} failed ({message})") from e
        except BotoCoreError as e:
            logger.error("Remote storage unreachable", operation=operation, key=key, error=str(e))
            raise StorageError(f"Remote storage {operation} failed ({e})") from e

    def _object_url(self, key: str) -> str:
        if self.cloudfront_domain:
            return f"https://{self.cloudfront_domain}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def store(
        self, content: bytes, original_name: str | None, content_type: str
    ) -> StorageLocator:
        if not content:
            raise ValidationError("Image required")

        name = generate_blob_name(original_name, content_type)
        key = validate_key(f"{self.folder}/{name}" if self.folder else name)

        async def _put() -> None:
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                    Metadata={
                        "resource_type": "image",
                        # S3 user metadata must be ASCII
                        "original_name": quote((original_name or "")[:255], safe=""),
                    },
                )

        await self._bounded("upload", key, _put())

        url = self._object_url(key)
        logger.info("Stored blob in remote storage", key=key, bucket=self.bucket, size=len(content))
        return StorageLocator(backend=self.name, key=key, url=url)

    def resolve_url(self, locator: StorageLocator) -> str:
        return locator.url or self._object_url(locator.key)

    async def delete(self, locator: StorageLocator) -> bool:
        async def _delete() -> None:
            async with self._client() as s3:
                await s3.delete_object(Bucket=self.bucket, Key=locator.key)

        await self._bounded("delete", locator.key, _delete())
        logger.debug("Deleted blob from remote storage", key=locator.key)
        return True

    async def read(self, locator: StorageLocator) -> bytes:
        async def _get() -> bytes:
            async with self._client() as s3:
                response = await s3.get_object(Bucket=self.bucket, Key=locator.key)
                return await response["Body"].read()

        return await self._bounded("download", locator.key, _get())

    async def exists(self, locator: StorageLocator) -> bool:
        async def _head() -> None:
            async with self._client() as s3:
                await s3.head_object(Bucket=self.bucket, Key=locator.key)

        try:
            await self._bounded("head", locator.key, _head())
        except StorageError as e:
            cause = e.__cause__
            if isinstance(cause, ClientError) and _error_code(cause) in MISSING_OBJECT_CODES:
                return False
            raise
        return True


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
