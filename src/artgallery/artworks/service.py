"""Upload orchestration: sequences blob storage and artwork metadata writes.

Blobs are always stored before the metadata that references them. A failed
store leaves nothing behind; a failed metadata write after a successful store
leaves an orphaned blob, which is logged for reconciliation and then deleted
best-effort. Blob deletions never decide the outcome of a metadata operation.
"""

from __future__ import annotations

import math
import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from ..dbmodels import Artworks
from ..exceptions import NotFoundError, PersistenceError, StorageError, ValidationError
from ..logging import get_logger
from ..storage.base import BlobStore, StorageLocator
from .repository import ArtworkRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image binary with the metadata the client sent along."""

    content: bytes
    filename: str | None = None
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ArtworkPage:
    items: list[Artworks]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class ArtworkService:
    """Coordinates the admin write path and the listing queries."""

    def __init__(
        self,
        repository: ArtworkRepository,
        blob_store: BlobStore,
        *,
        allowed_types: set[str] | frozenset[str] | None = None,
        max_upload_size: int = 10 * 1024 * 1024,
        gallery_limit: int = 20,
        max_page_size: int = 100,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.allowed_types = frozenset(allowed_types or ())
        self.max_upload_size = max_upload_size
        self.gallery_limit = gallery_limit
        self.max_page_size = max_page_size

    async def create_artwork(
        self, fields: Mapping[str, Any], image: ImageUpload | None
    ) -> Artworks:
        """Store the image, then create the record that references it.

        Raises:
            ValidationError: Missing title or image, or unacceptable image
            StorageError: The blob could not be stored; no record was created
            PersistenceError: The record could not be written after the blob was stored
        """
        title = _clean_title(fields.get("title"))
        if not title:
            raise ValidationError("Title required")
        if image is None or not image.content:
            raise ValidationError("Image required")
        content_type = self._validate_image(image)

        description = _clean_description(fields.get("description"))
        is_public = _coerce_bool(fields.get("is_public"), default=True)

        locator = await self.blob_store.store(image.content, image.filename, content_type)
        logger.info(
            "Artwork image stored",
            backend=locator.backend,
            key=locator.key,
            size=image.size,
        )

        try:
            artwork = await self.repository.create(
                title=title,
                description=description,
                locator=locator,
                mime_type=content_type,
                is_public=is_public,
            )
        except Exception as e:
            await self._reconcile_orphan("create", locator, error=e)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError("Failed to save artwork") from e

        logger.info("Artwork created", artwork_id=str(artwork.id), key=locator.key)
        return artwork

    async def update_artwork(
        self,
        artwork_id: str | UUID,
        fields: Mapping[str, Any],
        image: ImageUpload | None = None,
    ) -> Artworks:
        """Merge metadata changes, optionally replacing the image (store-then-swap).

        Raises:
            NotFoundError: No artwork with this id
            ValidationError: Invalid field values or replacement image
            StorageError: The replacement could not be stored; the record is unchanged
            PersistenceError: The record could not be written
        """
        uid = _parse_id(artwork_id)
        changes = _validate_changes(fields)

        if image is None:
            if not changes:
                existing = await self.repository.get(uid)
                if existing is None:
                    raise NotFoundError()
                return existing
            artwork = await self.repository.update(uid, changes)
            if artwork is None:
                raise NotFoundError()
            logger.info("Artwork updated", artwork_id=str(uid), fields=sorted(changes))
            return artwork

        if not image.content:
            raise ValidationError("Image required")
        content_type = self._validate_image(image)

        if await self.repository.get(uid) is None:
            raise NotFoundError()

        locator = await self.blob_store.store(image.content, image.filename, content_type)
        changes.update(
            storage_backend=locator.backend,
            storage_key=locator.key,
            storage_url=locator.url,
            mime_type=content_type,
        )

        try:
            swapped = await self.repository.replace_image(uid, changes)
        except Exception as e:
            await self._reconcile_orphan("update", locator, artwork_id=uid, error=e)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError("Failed to update artwork") from e

        if swapped is None:
            # Deleted between the existence check and the write
            await self._reconcile_orphan("update", locator, artwork_id=uid)
            raise NotFoundError()
        # Locator overwritten by this write
        artwork, previous = swapped

        logger.info(
            "Artwork image replaced",
            artwork_id=str(uid),
            key=locator.key,
            previous_key=previous.key,
        )
        await self._release_blob(previous, operation="replace", artwork_id=uid)
        return artwork

    async def delete_artwork(self, artwork_id: str | UUID) -> Artworks:
        """Delete the record, then release its blob best-effort.

        Raises:
            NotFoundError: No artwork with this id
            PersistenceError: The record could not be deleted
        """
        uid = _parse_id(artwork_id)
        artwork = await self.repository.delete(uid)
        if artwork is None:
            raise NotFoundError()

        logger.info("Artwork deleted", artwork_id=str(uid))
        await self._release_blob(artwork.locator, operation="delete", artwork_id=uid)
        return artwork

    async def list_public(self, limit: int | None = None) -> list[Artworks]:
        """Public artworks, newest first."""
        if limit is None:
            limit = self.gallery_limit
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return await self.repository.list_public(min(limit, self.max_page_size))

    async def list_all(self, page: int = 1, page_size: int = 10) -> ArtworkPage:
        """Every artwork including unpublished ones, newest first, offset paginated."""
        if page < 1:
            raise ValidationError("page must be at least 1")
        if page_size < 1 or page_size > self.max_page_size:
            raise ValidationError(f"limit must be between 1 and {self.max_page_size}")

        items, total = await self.repository.list_all((page - 1) * page_size, page_size)
        return ArtworkPage(items=items, total=total, page=page, page_size=page_size)

    def image_url(self, artwork: Artworks) -> str:
        return self.blob_store.resolve_url(artwork.locator)

    def _validate_image(self, image: ImageUpload) -> str:
        if image.size > self.max_upload_size:
            raise ValidationError(
                f"Image size {image.size} bytes exceeds limit of {self.max_upload_size} bytes"
            )

        content_type = (image.content_type or "").split(";")[0].strip().lower()
        if not content_type or content_type == "application/octet-stream":
            guessed, _ = mimetypes.guess_type(image.filename or "")
            content_type = guessed or content_type
        if not content_type.startswith("image/"):
            raise ValidationError("Uploaded file must be an image")
        if self.allowed_types and content_type not in self.allowed_types:
            raise ValidationError(f"Image type not allowed: {content_type}")
        return content_type

    async def _reconcile_orphan(
        self,
        operation: str,
        locator: StorageLocator,
        *,
        artwork_id: UUID | None = None,
        error: BaseException | None = None,
    ) -> None:
        logger.warning(
            "Orphaned blob: metadata write failed after the image was stored",
            operation=operation,
            backend=locator.backend,
            key=locator.key,
            artwork_id=str(artwork_id) if artwork_id else None,
            error=str(error) if error else None,
        )
        try:
            removed = await self.blob_store.delete(locator)
        except StorageError as e:
            logger.error(
                "Compensating blob delete failed; manual cleanup required",
                backend=locator.backend,
                key=locator.key,
                error=str(e),
            )
            return
        logger.info("Orphaned blob removed", key=locator.key, removed=removed)

    async def _release_blob(
        self, locator: StorageLocator, *, operation: str, artwork_id: UUID
    ) -> None:
        if locator.backend != self.blob_store.name:
            logger.warning(
                "Blob belongs to a different storage backend; left in place",
                operation=operation,
                artwork_id=str(artwork_id),
                backend=locator.backend,
                key=locator.key,
            )
            return
        try:
            removed = await self.blob_store.delete(locator)
        except StorageError as e:
            logger.warning(
                "Blob deletion failed; manual cleanup required",
                operation=operation,
                artwork_id=str(artwork_id),
                backend=locator.backend,
                key=locator.key,
                error=str(e),
            )
            return
        if not removed:
            logger.warning(
                "Blob was already missing",
                operation=operation,
                artwork_id=str(artwork_id),
                key=locator.key,
            )


def _parse_id(artwork_id: str | UUID) -> UUID:
    if isinstance(artwork_id, UUID):
        return artwork_id
    try:
        return UUID(str(artwork_id))
    except ValueError as e:
        raise NotFoundError() from e


def _clean_title(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_description(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("description must be a string")
    return value


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    raise ValidationError("isPublic must be a boolean")


def _validate_changes(fields: Mapping[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if "title" in fields and fields["title"] is not None:
        title = _clean_title(fields["title"])
        if not title:
            raise ValidationError("Title cannot be empty")
        changes["title"] = title
    if "description" in fields:
        changes["description"] = _clean_description(fields["description"])
    if "is_public" in fields and fields["is_public"] is not None:
        changes["is_public"] = _coerce_bool(fields["is_public"], default=True)
    return changes
