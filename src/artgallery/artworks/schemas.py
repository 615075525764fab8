"""Request and response models for the artwork API."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..dbmodels import Artworks


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class LoginResponse(BaseModel):
    success: bool
    token: str | None = None
    message: str | None = None


class ArtworkUpdate(CamelModel):
    """Fields an admin may merge into an existing artwork."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str | None = None
    description: str | None = None
    is_public: bool | None = None


class ArtworkOut(CamelModel):
    id: UUID
    title: str
    description: str
    image_url: str
    storage_backend: str
    storage_key: str
    mime_type: str
    is_public: bool
    views: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, artwork: Artworks, image_url: str) -> ArtworkOut:
        return cls(
            id=artwork.id,
            title=artwork.title,
            description=artwork.description or "",
            image_url=image_url,
            storage_backend=artwork.storage_backend,
            storage_key=artwork.storage_key,
            mime_type=artwork.mime_type,
            is_public=artwork.is_public,
            views=artwork.views,
            created_at=artwork.created_at,
            updated_at=artwork.updated_at,
        )


class GalleryResponse(BaseModel):
    artworks: list[ArtworkOut]


class ArtworkPageResponse(BaseModel):
    artworks: list[ArtworkOut]
    total: int
    page: int
    pages: int


class MessageResponse(BaseModel):
    message: str
    id: UUID | None = Field(default=None)
