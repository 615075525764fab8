"""Artwork records and the upload pipeline that creates them."""

from .repository import ArtworkRepository, SQLAlchemyArtworkRepository
from .service import ArtworkPage, ArtworkService, ImageUpload

__all__ = [
    "ArtworkPage",
    "ArtworkRepository",
    "ArtworkService",
    "ImageUpload",
    "SQLAlchemyArtworkRepository",
]
