"""Service composition and FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, Request

from ..artworks.repository import ArtworkRepository, SQLAlchemyArtworkRepository
from ..artworks.service import ArtworkService
from ..auth.credentials import AdminAuthConfig, CredentialIssuer, CredentialVerifier, Identity
from ..config import Settings
from ..database.connection import Database
from ..logging import get_logger
from ..storage.base import BlobStore
from ..storage.factory import create_blob_store

logger = get_logger(__name__)


@dataclass
class GalleryServices:
    """Everything a request handler needs, built once per application."""

    settings: Settings
    issuer: CredentialIssuer
    verifier: CredentialVerifier
    blob_store: BlobStore
    repository: ArtworkRepository
    artworks: ArtworkService
    database: Database | None = None


def build_services(
    settings: Settings,
    *,
    repository: ArtworkRepository | None = None,
    blob_store: BlobStore | None = None,
) -> GalleryServices:
    """Wire the issuer, verifier, blob store, repository and orchestrator together."""
    auth_config = AdminAuthConfig.from_settings(settings)
    if not auth_config.is_complete:
        logger.warning(
            "Admin auth is not fully configured; login will fail until it is",
            has_email=bool(auth_config.email),
            has_password=bool(auth_config.password_hash),
            has_secret=bool(auth_config.secret),
        )

    database = None
    if repository is None:
        database = Database.from_settings(settings)
        repository = SQLAlchemyArtworkRepository(database)
    if blob_store is None:
        blob_store = create_blob_store(settings)

    artworks = ArtworkService(
        repository,
        blob_store,
        allowed_types=set(settings.allowed_image_types),
        max_upload_size=settings.max_upload_size,
        gallery_limit=settings.gallery_limit,
        max_page_size=settings.max_page_size,
    )
    return GalleryServices(
        settings=settings,
        issuer=CredentialIssuer(auth_config),
        verifier=CredentialVerifier(auth_config),
        blob_store=blob_store,
        repository=repository,
        artworks=artworks,
        database=database,
    )


def get_services(request: Request) -> GalleryServices:
    return request.app.state.services


def get_artwork_service(services: GalleryServices = Depends(get_services)) -> ArtworkService:
    return services.artworks


async def require_admin(
    request: Request,
    authorization: str | None = Header(None),
    services: GalleryServices = Depends(get_services),
) -> Identity:
    """Gate for mutating admin routes; raises an AuthError subclass on failure."""
    identity = services.verifier.verify(authorization)
    request.state.identity = identity
    return identity
