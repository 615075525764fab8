"""Core blob storage interface and locator type."""

import mimetypes
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePosixPath

from ..exceptions import SecurityError

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,8}$")


@dataclass(frozen=True)
class StorageLocator:
    """Opaque reference to one stored binary.

    ``backend`` names the store that produced it, ``key`` is the filename
    (local) or object key / public id (remote), and ``url`` is the durable
    retrieval URL when the backend assigns one at store time.
    """

    backend: str
    key: str
    url: str | None = None


class BlobStore(ABC):
    """Abstract base class for binary persistence backends."""

    name: str

    @abstractmethod
    async def store(
        self, content: bytes, original_name: str | None, content_type: str
    ) -> StorageLocator:
        """Persist ``content`` and return its locator.

        Raises:
            ValidationError: If content is empty
            StorageError: On backend failure or timeout
        """

    @abstractmethod
    def resolve_url(self, locator: StorageLocator) -> str:
        """Return the URL a client can fetch the binary from."""

    @abstractmethod
    async def delete(self, locator: StorageLocator) -> bool:
        """Remove the binary; returns False if it was already gone.

        Raises:
            StorageError: On backend failure
        """

    @abstractmethod
    async def read(self, locator: StorageLocator) -> bytes:
        """Fetch the stored bytes."""

    @abstractmethod
    async def exists(self, locator: StorageLocator) -> bool:
        """Check whether the binary is present."""


def file_extension(original_name: str | None, content_type: str | None = None) -> str:
    """Pick a safe extension, preferring the uploaded filename's."""
    if original_name:
        suffix = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
        if _EXTENSION_RE.match(suffix):
            return suffix
    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed and _EXTENSION_RE.match(guessed):
            return ".jpg" if guessed == ".jpe" else guessed
    return ""


def generate_blob_name(original_name: str | None, content_type: str | None = None) -> str:
    """Generate a collision-resistant name: UTC timestamp plus a random suffix."""
    timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
    unique_suffix = uuid.uuid4().hex[:12]
    return f"{timestamp}_{unique_suffix}{file_extension(original_name, content_type)}"


def validate_key(key: str) -> str:
    """Reject keys that could escape the storage namespace."""
    if not key or ".." in key or key.startswith("/") or "\\" in key:
        raise SecurityError(f"Invalid storage key: {key}")
    for part in key.split("/"):
        if not part or re.sub(r"[^a-zA-Z0-9._-]", "", part) != part:
            raise SecurityError(f"Invalid key component: {part}")
    return key
