"""FastAPI routes for graduation photo generation and retrieval."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, HTTPException, Request, UploadFile

from controllers.photo_controller import check_photo, debug_image, resolve_photo, upload_photo
from services.errors import InternalError, PhotoServiceError

router = APIRouter(prefix="/api", tags=["photos"])


@router.post("/upload", summary="Generate a graduation photo for a new user")
async def upload_route(
    request: Request,
    background_tasks: BackgroundTasks,
    image: UploadFile = File(...),
    name: str = Form(...),
    gender: str = Form(...),
    career: str = Form(...),
    cedula: Optional[str] = Form(None),
):
    """Always generate a new image and create the user record."""
    try:
        return await upload_photo(request, background_tasks, image, name, gender, career, cedula)
    except (HTTPException, PhotoServiceError):
        raise
    except Exception as exc:
        raise InternalError(str(exc)) from exc


@router.post("/photo/{user_id}", summary="Fetch or generate a user's graduation photo")
async def photo_route(
    request: Request,
    background_tasks: BackgroundTasks,
    user_id: str,
    image: Optional[UploadFile] = File(None),
):
    """Return the stored photo, or generate it from the uploaded image when missing."""
    try:
        return await resolve_photo(request, background_tasks, user_id, image)
    except (HTTPException, PhotoServiceError):
        raise
    except Exception as exc:
        raise InternalError(str(exc)) from exc


@router.get("/check-photo/{user_id}", summary="Check whether a user has a photo")
async def check_photo_route(request: Request, user_id: str):
    try:
        return await check_photo(request, user_id)
    except (HTTPException, PhotoServiceError):
        raise
    except Exception as exc:
        raise InternalError(str(exc)) from exc


@router.get("/debug-image/{user_id}", summary="Diagnose how a user's image is stored")
async def debug_image_route(request: Request, user_id: str):
    try:
        return await debug_image(request, user_id)
    except (HTTPException, PhotoServiceError):
        raise
    except Exception as exc:
        raise InternalError(str(exc)) from exc
