"""Repository for artwork metadata records."""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..database.connection import Database
from ..dbmodels import Artworks
from ..exceptions import PersistenceError
from ..logging import get_logger
from ..storage.base import StorageLocator

logger = get_logger(__name__)

# Columns an update may touch; everything else is owned by the repository
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "is_public",
        "storage_backend",
        "storage_key",
        "storage_url",
        "mime_type",
    }
)

# Compare-and-swap retries for one image replacement
MAX_SWAP_ATTEMPTS = 5


class ArtworkRepository(Protocol):
    """Persistence collaborator for artwork records, reachable by id."""

    async def create(
        self,
        *,
        title: str,
        description: str,
        locator: StorageLocator,
        mime_type: str,
        is_public: bool = True,
    ) -> Artworks: ...

    async def get(self, artwork_id: UUID) -> Artworks | None: ...

    async def list_public(self, limit: int) -> list[Artworks]: ...

    async def list_all(self, offset: int, limit: int) -> tuple[list[Artworks], int]: ...

    async def update(self, artwork_id: UUID, changes: dict[str, Any]) -> Artworks | None: ...

    async def replace_image(
        self, artwork_id: UUID, changes: dict[str, Any]
    ) -> tuple[Artworks, StorageLocator] | None: ...

    async def delete(self, artwork_id: UUID) -> Artworks | None: ...


def _newest_first(stmt):
    return stmt.order_by(Artworks.created_at.desc(), Artworks.id.desc())


class SQLAlchemyArtworkRepository:
    """ArtworkRepository backed by SQLAlchemy; one transaction per call."""

    def __init__(self, database: Database):
        self.database = database

    async def create(
        self,
        *,
        title: str,
        description: str,
        locator: StorageLocator,
        mime_type: str,
        is_public: bool = True,
    ) -> Artworks:
        artwork = Artworks(
            title=title,
            description=description,
            storage_backend=locator.backend,
            storage_key=locator.key,
            storage_url=locator.url,
            mime_type=mime_type,
            is_public=is_public,
            views=0,
        )
        try:
            async with self.database.session() as session:
                session.add(artwork)
                await session.flush()
                await session.refresh(artwork)
        except SQLAlchemyError as e:
            logger.error("Failed to insert artwork", title=title, error=str(e))
            raise PersistenceError("Failed to save artwork") from e
        return artwork

    async def get(self, artwork_id: UUID) -> Artworks | None:
        try:
            async with self.database.session() as session:
                return await session.get(Artworks, artwork_id)
        except SQLAlchemyError as e:
            logger.error("Failed to load artwork", artwork_id=str(artwork_id), error=str(e))
            raise PersistenceError("Failed to load artwork") from e

    async def list_public(self, limit: int) -> list[Artworks]:
        stmt = _newest_first(select(Artworks).where(Artworks.is_public.is_(True))).limit(limit)
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to list public artworks", error=str(e))
            raise PersistenceError("Failed to list artworks") from e

    async def list_all(self, offset: int, limit: int) -> tuple[list[Artworks], int]:
        stmt = _newest_first(select(Artworks)).offset(offset).limit(limit)
        try:
            async with self.database.session() as session:
                total = await session.scalar(select(func.count()).select_from(Artworks))
                result = await session.execute(stmt)
                return list(result.scalars().all()), int(total or 0)
        except SQLAlchemyError as e:
            logger.error("Failed to list artworks", offset=offset, limit=limit, error=str(e))
            raise PersistenceError("Failed to list artworks") from e

    async def update(self, artwork_id: UUID, changes: dict[str, Any]) -> Artworks | None:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        try:
            async with self.database.session() as session:
                # Row lock keeps concurrent updates of one record serial where supported
                stmt = select(Artworks).where(Artworks.id == artwork_id).with_for_update()
                artwork = (await session.execute(stmt)).scalar_one_or_none()
                if artwork is None:
                    return None
                for field, value in changes.items():
                    setattr(artwork, field, value)
                await session.flush()
                await session.refresh(artwork)
                return artwork
        except SQLAlchemyError as e:
            logger.error("Failed to update artwork", artwork_id=str(artwork_id), error=str(e))
            raise PersistenceError("Failed to update artwork") from e

    async def replace_image(
        self, artwork_id: UUID, changes: dict[str, Any]
    ) -> tuple[Artworks, StorageLocator] | None:
        """Apply ``changes`` (including new storage columns) and return the locator they replaced.

        The write only lands if the storage columns still hold the locator read in the
        same transaction, so concurrent replacements each get back a distinct previous
        blob. Returns None when the record does not exist.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        try:
            async with self.database.session() as session:
                for _ in range(MAX_SWAP_ATTEMPTS):
                    current = (
                        await session.execute(
                            select(
                                Artworks.storage_backend,
                                Artworks.storage_key,
                                Artworks.storage_url,
                            )
                            .where(Artworks.id == artwork_id)
                            .with_for_update()
                        )
                    ).one_or_none()
                    if current is None:
                        return None
                    previous = StorageLocator(
                        backend=current.storage_backend,
                        key=current.storage_key,
                        url=current.storage_url,
                    )

                    stmt = (
                        update(Artworks)
                        .where(
                            Artworks.id == artwork_id,
                            Artworks.storage_backend == previous.backend,
                            Artworks.storage_key == previous.key,
                        )
                        .values(**changes)
                        .execution_options(synchronize_session=False)
                    )
                    result = await session.execute(stmt)
                    if result.rowcount != 1:
                        # Another replacement committed in between; read its locator and retry
                        continue

                    artwork = await session.get(Artworks, artwork_id, populate_existing=True)
                    if artwork is None:
                        return None
                    return artwork, previous
        except SQLAlchemyError as e:
            logger.error(
                "Failed to replace artwork image", artwork_id=str(artwork_id), error=str(e)
            )
            raise PersistenceError("Failed to update artwork") from e

        logger.error("Image replacement kept losing the race", artwork_id=str(artwork_id))
        raise PersistenceError("Failed to update artwork")

    async def delete(self, artwork_id: UUID) -> Artworks | None:
        try:
            async with self.database.session() as session:
                artwork = await session.get(Artworks, artwork_id)
                if artwork is None:
                    return None
                await session.delete(artwork)
                return artwork
        except SQLAlchemyError as e:
            logger.error("Failed to delete artwork", artwork_id=str(artwork_id), error=str(e))
            raise PersistenceError("Failed to delete artwork") from e
