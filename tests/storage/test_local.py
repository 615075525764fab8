"""Tests for the local filesystem blob store."""

import pytest

from artgallery.exceptions import SecurityError, StorageError, ValidationError
from artgallery.storage.base import StorageLocator, file_extension, validate_key
from artgallery.storage.implementations.local import LocalBlobStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x01" * 32


@pytest.fixture
def store(tmp_path):
    return LocalBlobStore(tmp_path / "uploads", public_url_base="/images")


class TestLocalBlobStore:
    @pytest.mark.asyncio
    async def test_store_and_read(self, store):
        locator = await store.store(PNG, "sunset.png", "image/png")

        assert locator.backend == "local"
        assert locator.key.endswith(".png")
        assert locator.url is None
        assert await store.read(locator) == PNG
        assert await store.exists(locator)

    @pytest.mark.asyncio
    async def test_creates_upload_dir_lazily(self, tmp_path):
        base = tmp_path / "nested" / "uploads"
        store = LocalBlobStore(base)
        assert not base.exists()

        locator = await store.store(PNG, "a.png", "image/png")

        assert (base / locator.key).is_file()

    @pytest.mark.asyncio
    async def test_same_name_gets_unique_keys(self, store):
        first = await store.store(PNG, "same.png", "image/png")
        second = await store.store(b"other", "same.png", "image/png")

        assert first.key != second.key
        assert await store.read(first) == PNG
        assert await store.read(second) == b"other"

    @pytest.mark.asyncio
    async def test_extension_from_content_type(self, store):
        locator = await store.store(PNG, None, "image/png")

        assert locator.key.endswith(".png")

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, store, tmp_path):
        with pytest.raises(ValidationError):
            await store.store(b"", "empty.png", "image/png")

        assert not (tmp_path / "uploads").exists() or not any((tmp_path / "uploads").iterdir())

    @pytest.mark.asyncio
    async def test_delete(self, store):
        locator = await store.store(PNG, "a.png", "image/png")

        assert await store.delete(locator) is True
        assert not await store.exists(locator)
        assert await store.delete(locator) is False

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        with pytest.raises(StorageError):
            await store.read(StorageLocator(backend="local", key="missing.png"))

    @pytest.mark.asyncio
    async def test_write_failure_is_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = LocalBlobStore(blocker / "uploads")

        with pytest.raises(StorageError):
            await store.store(PNG, "a.png", "image/png")

    def test_resolve_url(self, store):
        locator = StorageLocator(backend="local", key="20260101_abc.png")

        assert store.resolve_url(locator) == "/images/20260101_abc.png"

    def test_resolve_url_prefers_stored_url(self, store):
        locator = StorageLocator(backend="local", key="k.png", url="https://cdn.example.com/k.png")

        assert store.resolve_url(locator) == "https://cdn.example.com/k.png"

    @pytest.mark.parametrize("key", ["../secret.txt", "/etc/passwd", "a/../../b", "a\\b", ""])
    def test_path_traversal_rejected(self, store, key):
        with pytest.raises(SecurityError):
            store.path_for(key)

    @pytest.mark.asyncio
    async def test_exists_false_for_unsafe_key(self, store):
        assert not await store.exists(StorageLocator(backend="local", key="../x"))


class TestKeyHelpers:
    def test_file_extension_prefers_filename(self):
        assert file_extension("Photo.JPG", "image/png") == ".jpg"

    def test_file_extension_ignores_unsafe_suffix(self):
        assert file_extension("evil.p$p", "image/png") == ".png"

    def test_file_extension_unknown(self):
        assert file_extension(None, None) == ""

    def test_validate_key_accepts_folders(self):
        assert validate_key("artworks/20260101_abc.png") == "artworks/20260101_abc.png"

    def test_validate_key_rejects_odd_characters(self):
        with pytest.raises(SecurityError):
            validate_key("art works/a.png")
