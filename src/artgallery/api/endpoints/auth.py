"""Admin login endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...artworks.schemas import LoginRequest, LoginResponse
from ...exceptions import ConfigurationError, InvalidCredentials
from ...logging import get_logger
from ..dependencies import GalleryServices, get_services

router = APIRouter()
logger = get_logger(__name__)


# Plain ``def`` so the password hash check runs in the threadpool
@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
def login(
    body: LoginRequest | None = None,
    services: GalleryServices = Depends(get_services),
):
    """Exchange the admin email and password for a bearer token."""
    body = body or LoginRequest()
    try:
        credential = services.issuer.issue(body.email, body.password)
    except ConfigurationError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": e.message})
    except InvalidCredentials as e:
        return JSONResponse(
            status_code=401,
            content={"success": False, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("Admin logged in", email=credential.email)
    return LoginResponse(success=True, token=credential.token)
