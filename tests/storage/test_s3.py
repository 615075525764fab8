"""Tests for the S3 blob store."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import unquote

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.handlers import validate_ascii_metadata

from artgallery.exceptions import StorageError, ValidationError
from artgallery.storage.base import StorageLocator
from artgallery.storage.implementations.s3 import S3BlobStore


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


class TestS3BlobStore:
    """Test S3 blob store functionality."""

    @pytest.fixture
    def s3_store(self):
        return S3BlobStore(
            bucket="test-bucket",
            region="us-east-1",
            aws_access_key_id="test-key",
            aws_secret_access_key="test-secret",
        )

    @pytest.fixture
    def s3_store_with_cloudfront(self):
        return S3BlobStore(
            bucket="test-bucket",
            region="us-east-1",
            cloudfront_domain="d123456.cloudfront.net",
        )

    @pytest.mark.asyncio
    async def test_store_success(self, s3_store):
        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            locator = await s3_store.store(b"image bytes", "sunset.jpg", "image/jpeg")

            mock_client.put_object.assert_called_once()
            call_args = mock_client.put_object.call_args[1]
            assert call_args["Bucket"] == "test-bucket"
            assert call_args["Key"] == locator.key
            assert call_args["Body"] == b"image bytes"
            assert call_args["ContentType"] == "image/jpeg"
            assert call_args["Metadata"]["resource_type"] == "image"
            assert call_args["Metadata"]["original_name"] == "sunset.jpg"

        assert locator.backend == "s3"
        assert locator.key.startswith("artworks/")
        assert locator.key.endswith(".jpg")
        assert locator.url == f"https://test-bucket.s3.us-east-1.amazonaws.com/{locator.key}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["Café.png", "日没.jpg"])
    async def test_store_non_ascii_filename(self, s3_store, filename):
        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            locator = await s3_store.store(b"image bytes", filename, "image/png")

            metadata = mock_client.put_object.call_args[1]["Metadata"]

        # Same check botocore runs before sending a PutObject
        validate_ascii_metadata({"Metadata": metadata})
        assert unquote(metadata["original_name"]) == filename
        assert locator.key.isascii()

    @pytest.mark.asyncio
    async def test_store_with_cloudfront_url(self, s3_store_with_cloudfront):
        with patch.object(s3_store_with_cloudfront, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            locator = await s3_store_with_cloudfront.store(b"x", "a.png", "image/png")

        assert locator.url == f"https://d123456.cloudfront.net/{locator.key}"

    @pytest.mark.asyncio
    async def test_store_empty_content(self, s3_store):
        with patch.object(s3_store, "_get_session") as mock_session:
            with pytest.raises(ValidationError):
                await s3_store.store(b"", "a.png", "image/png")

            mock_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_client_error(self, s3_store):
        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_client.put_object.side_effect = _client_error("AccessDenied", "PutObject")
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            with pytest.raises(StorageError) as exc_info:
                await s3_store.store(b"x", "a.png", "image/png")

        assert "AccessDenied" in exc_info.value.message
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_store_connection_error(self, s3_store):
        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_client.put_object.side_effect = EndpointConnectionError(
                endpoint_url="https://s3.example.com"
            )
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            with pytest.raises(StorageError):
                await s3_store.store(b"x", "a.png", "image/png")

    @pytest.mark.asyncio
    async def test_store_timeout(self):
        store = S3BlobStore(bucket="test-bucket", timeout=0.05)

        async def slow_put(**kwargs):
            await asyncio.sleep(1)

        with patch.object(store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_client.put_object.side_effect = slow_put
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            with pytest.raises(StorageError) as exc_info:
                await store.store(b"x", "a.png", "image/png")

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_delete(self, s3_store):
        locator = StorageLocator(backend="s3", key="artworks/a.png")

        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            assert await s3_store.delete(locator) is True

            mock_client.delete_object.assert_called_once_with(
                Bucket="test-bucket", Key="artworks/a.png"
            )

    @pytest.mark.asyncio
    async def test_read(self, s3_store):
        locator = StorageLocator(backend="s3", key="artworks/a.png")

        with patch.object(s3_store, "_get_session") as mock_session:
            mock_body = MagicMock()
            mock_body.read = AsyncMock(return_value=b"stored")
            mock_client = AsyncMock()
            mock_client.get_object.return_value = {"Body": mock_body}
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            assert await s3_store.read(locator) == b"stored"

    @pytest.mark.asyncio
    async def test_exists(self, s3_store):
        locator = StorageLocator(backend="s3", key="artworks/a.png")

        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            assert await s3_store.exists(locator) is True

            mock_client.head_object.side_effect = _client_error("404", "HeadObject")
            assert await s3_store.exists(locator) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["403", "500", "SlowDown"])
    async def test_exists_propagates_other_errors(self, s3_store, code):
        locator = StorageLocator(backend="s3", key="artworks/a.png")

        with patch.object(s3_store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_client.head_object.side_effect = _client_error(code, "HeadObject")
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            with pytest.raises(StorageError):
                await s3_store.exists(locator)

    @pytest.mark.asyncio
    async def test_exists_propagates_timeout(self):
        store = S3BlobStore(bucket="test-bucket", timeout=0.05)

        async def slow_head(**kwargs):
            await asyncio.sleep(1)

        with patch.object(store, "_get_session") as mock_session:
            mock_client = AsyncMock()
            mock_client.head_object.side_effect = slow_head
            mock_session.return_value.client.return_value.__aenter__.return_value = mock_client

            with pytest.raises(StorageError, match="timed out"):
                await store.exists(StorageLocator(backend="s3", key="artworks/a.png"))

    def test_resolve_url_falls_back_to_key(self, s3_store):
        locator = StorageLocator(backend="s3", key="artworks/a.png")

        assert (
            s3_store.resolve_url(locator)
            == "https://test-bucket.s3.us-east-1.amazonaws.com/artworks/a.png"
        )

    def test_resolve_url_with_custom_endpoint(self):
        store = S3BlobStore(bucket="b", endpoint_url="http://localhost:9000/")

        assert (
            store.resolve_url(StorageLocator(backend="s3", key="artworks/a.png"))
            == "http://localhost:9000/b/artworks/a.png"
        )
