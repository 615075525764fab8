"""Public gallery endpoint."""

from fastapi import APIRouter, Depends

from ...artworks.schemas import ArtworkOut, GalleryResponse
from ...artworks.service import ArtworkService
from ..dependencies import get_artwork_service

router = APIRouter()


@router.get("/gallery", response_model=GalleryResponse)
async def list_gallery(
    limit: int | None = None,
    service: ArtworkService = Depends(get_artwork_service),
) -> GalleryResponse:
    """Published artworks, newest first."""
    artworks = await service.list_public(limit)
    return GalleryResponse(
        artworks=[ArtworkOut.from_record(a, service.image_url(a)) for a in artworks]
    )
