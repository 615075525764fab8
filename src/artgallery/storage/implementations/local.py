"""Local filesystem blob store for development and self-hosted deployments."""

from pathlib import Path
from urllib.parse import quote

import aiofiles
import aiofiles.os

from ...exceptions import SecurityError, StorageError, ValidationError
from ...logging import get_logger
from ..base import BlobStore, StorageLocator, generate_blob_name, validate_key

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    """Stores each binary as one file under a fixed upload directory."""

    name = "local"

    def __init__(self, base_path: Path | str, public_url_base: str = "/images"):
        self.base_path = Path(base_path).resolve()
        self.public_url_base = public_url_base

    def _ensure_base_path(self) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_safe_file_path(self, key: str) -> Path:
        """Get file path with security validation."""
        validate_key(key)
        file_path = (self.base_path / key).resolve()
        try:
            file_path.relative_to(self.base_path)
        except ValueError as e:
            raise SecurityError(f"Path traversal detected: {key}") from e
        return file_path

    async def store(
        self, content: bytes, original_name: str | None, content_type: str
    ) -> StorageLocator:
        if not content:
            raise ValidationError("Image required")

        key = generate_blob_name(original_name, content_type)
        try:
            self._ensure_base_path()
            file_path = self._get_safe_file_path(key)
            # Exclusive create: never overwrite an existing blob
            async with aiofiles.open(file_path, "xb") as f:
                await f.write(content)
        except SecurityError:
            raise
        except OSError as e:
            logger.error("File system error storing blob", key=key, error=str(e))
            raise StorageError(f"Failed to write file: {e.strerror or e}") from e

        logger.debug("Stored blob in local storage", key=key, size=len(content))
        return StorageLocator(backend=self.name, key=key)

    def resolve_url(self, locator: StorageLocator) -> str:
        if locator.url:
            return locator.url
        return f"{self.public_url_base.rstrip('/')}/{quote(locator.key, safe='/')}"

    async def delete(self, locator: StorageLocator) -> bool:
        file_path = self._get_safe_file_path(locator.key)
        if not file_path.exists():
            return False
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("File system error deleting blob", key=locator.key, error=str(e))
            raise StorageError(f"Failed to delete file: {e.strerror or e}") from e

        logger.debug("Deleted blob from local storage", key=locator.key)
        return True

    async def read(self, locator: StorageLocator) -> bytes:
        file_path = self._get_safe_file_path(locator.key)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise StorageError(f"File not found: {locator.key}") from e
        except OSError as e:
            logger.error("File system error reading blob", key=locator.key, error=str(e))
            raise StorageError(f"Failed to read file: {e.strerror or e}") from e

    async def exists(self, locator: StorageLocator) -> bool:
        try:
            return self._get_safe_file_path(locator.key).is_file()
        except SecurityError:
            return False

    def path_for(self, key: str) -> Path:
        """Resolve a key to its file for serving; raises SecurityError on traversal."""
        return self._get_safe_file_path(key)
