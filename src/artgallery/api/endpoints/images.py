"""
Serving endpoint for images kept by the local blob store
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ...exceptions import SecurityError
from ...logging import get_logger
from ...storage.implementations.local import LocalBlobStore
from ..dependencies import GalleryServices, get_services

logger = get_logger(__name__)
router = APIRouter()


@router.get("/{key:path}")
async def serve_image(key: str, services: GalleryServices = Depends(get_services)):
    """Serve a file from local storage.

    Remote backends hand out their own URLs, so this only answers for the
    local store.
    """
    store = services.blob_store
    if not isinstance(store, LocalBlobStore):
        raise HTTPException(status_code=404, detail="Not found")

    try:
        file_path = store.path_for(key)
    except SecurityError as e:
        logger.warning("Path traversal attempt detected", requested_path=key)
        raise HTTPException(status_code=404, detail="Not found") from e

    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    return FileResponse(file_path)
