"""Admin artwork management endpoints.

Handlers that accept uploads read the request body themselves, after the
``require_admin`` dependency has run, so unauthenticated requests never get
their multipart bodies parsed.
"""

import json
from typing import Any

import pydantic
from fastapi import APIRouter, Depends, Request
from starlette.datastructures import FormData, UploadFile

from ...artworks.schemas import (
    ArtworkOut,
    ArtworkPageResponse,
    ArtworkUpdate,
    MessageResponse,
)
from ...artworks.service import ArtworkService, ImageUpload
from ...auth.credentials import Identity
from ...exceptions import ValidationError
from ...logging import get_logger
from ..dependencies import GalleryServices, get_artwork_service, get_services, require_admin

router = APIRouter()
logger = get_logger(__name__)


def _is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("multipart/form-data")


async def _read_image(form: FormData, max_size: int) -> ImageUpload | None:
    item = form.get("image")
    if not isinstance(item, UploadFile):
        return None
    # One byte past the limit is enough to reject oversize uploads
    content = await item.read(max_size + 1)
    if not content:
        return None
    return ImageUpload(content=content, filename=item.filename, content_type=item.content_type)


def _form_fields(form: FormData) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for name in ("title", "description"):
        value = form.get(name)
        if isinstance(value, str):
            fields[name] = value
    is_public = form.get("isPublic", form.get("is_public"))
    if isinstance(is_public, str):
        fields["is_public"] = is_public
    return fields


async def _parse_form(request: Request) -> FormData:
    try:
        return await request.form()
    except Exception as e:
        logger.warning("Malformed form body", error=str(e))
        raise ValidationError("Malformed multipart body") from e


@router.get("/artworks", response_model=ArtworkPageResponse)
async def list_artworks(
    page: int = 1,
    limit: int | None = None,
    identity: Identity = Depends(require_admin),
    services: GalleryServices = Depends(get_services),
) -> ArtworkPageResponse:
    """All artworks including unpublished ones, newest first."""
    service = services.artworks
    result = await service.list_all(page, limit or services.settings.admin_page_size)
    return ArtworkPageResponse(
        artworks=[ArtworkOut.from_record(a, service.image_url(a)) for a in result.items],
        total=result.total,
        page=result.page,
        pages=result.page_count,
    )


@router.post("/artworks", status_code=201, response_model=ArtworkOut)
async def create_artwork(
    request: Request,
    identity: Identity = Depends(require_admin),
    service: ArtworkService = Depends(get_artwork_service),
) -> ArtworkOut:
    """Create an artwork from a multipart form with ``title``, ``description`` and ``image``."""
    form = await _parse_form(request)
    try:
        fields = _form_fields(form)
        image = await _read_image(form, service.max_upload_size)
        logger.info(
            "Upload received",
            admin=identity["email"],
            title=fields.get("title"),
            has_file=image is not None,
        )
        artwork = await service.create_artwork(fields, image)
    finally:
        await form.close()

    return ArtworkOut.from_record(artwork, service.image_url(artwork))


@router.put("/artworks/{artwork_id}", response_model=ArtworkOut)
async def update_artwork(
    artwork_id: str,
    request: Request,
    identity: Identity = Depends(require_admin),
    service: ArtworkService = Depends(get_artwork_service),
) -> ArtworkOut:
    """Merge fields from a JSON body, or from a multipart form with an optional new image."""
    if _is_multipart(request):
        form = await _parse_form(request)
        try:
            fields = _form_fields(form)
            image = await _read_image(form, service.max_upload_size)
            artwork = await service.update_artwork(artwork_id, fields, image)
        finally:
            await form.close()
    else:
        fields = await _json_fields(request)
        artwork = await service.update_artwork(artwork_id, fields)

    logger.info("Artwork update handled", admin=identity["email"], artwork_id=artwork_id)
    return ArtworkOut.from_record(artwork, service.image_url(artwork))


@router.delete("/artworks/{artwork_id}", response_model=MessageResponse)
async def delete_artwork(
    artwork_id: str,
    identity: Identity = Depends(require_admin),
    service: ArtworkService = Depends(get_artwork_service),
) -> MessageResponse:
    artwork = await service.delete_artwork(artwork_id)
    logger.info("Artwork delete handled", admin=identity["email"], artwork_id=artwork_id)
    return MessageResponse(message="Deleted successfully", id=artwork.id)


async def _json_fields(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise ValidationError("JSON body must be an object")
    try:
        update = ArtworkUpdate.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first['msg']}" if location else first["msg"]
        raise ValidationError(message) from e
    return update.model_dump(exclude_unset=True)
