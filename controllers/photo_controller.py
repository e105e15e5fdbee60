from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, HTTPException, Request, UploadFile

from services.image_store import discard_upload
from services.photo_orchestrator import PhotoOrchestrator
from utils.media_validation import store_upload


def _get_orchestrator(request: Request) -> PhotoOrchestrator:
    """Retrieve the shared orchestrator from the app state."""
    orchestrator = getattr(request.app.state, "photo_orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=500, detail="Photo service not initialized.")
    return orchestrator


def _required(value: Optional[str], field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"Field '{field}' is required.")
    return cleaned


async def upload_photo(
    request: Request,
    background_tasks: BackgroundTasks,
    image: UploadFile,
    name: str,
    gender: str,
    career: str,
    cedula: Optional[str] = None,
) -> Dict[str, Any]:
    """Generate a graduation photo from request data and create the user.

    Args:
        request: FastAPI Request (used to access app.state for shared services).
        background_tasks: Used to delete the temporary upload after the response.
        image: Uploaded subject photo.
        name: Subject name, printed on the diploma.
        gender: "female" selects the dress template, anything else the suit template.
        career: Career printed on the diploma.
        cedula: Optional national id used as the record key.

    Returns:
        A dict containing: success, imagePath, user
    """
    name = _required(name, "name")
    career = _required(career, "career")
    cedula = (cedula or "").strip() or None

    orchestrator = _get_orchestrator(request)
    upload_path = await store_upload(image, request.app.state.settings.upload_dir)
    try:
        result = await orchestrator.onboard(name, gender, career, upload_path, cedula=cedula)
    except Exception:
        await discard_upload(upload_path)
        raise
    background_tasks.add_task(discard_upload, upload_path)

    return {"success": True, "imagePath": result.image_path, "user": result.user.public_view()}


async def resolve_photo(
    request: Request,
    background_tasks: BackgroundTasks,
    user_id: str,
    image: Optional[UploadFile] = None,
) -> Dict[str, Any]:
    """Return the stored photo for a user, generating it from `image` when missing.

    Returns:
        The existing-photo shape `{success, hasExistingPhoto, user, hasPhoto, image}`
        or the generated shape `{success, hasExistingPhoto, generated, imagePath, user, image}`.
    """
    orchestrator = _get_orchestrator(request)

    upload_path = None
    has_upload = image is not None and bool(image.filename)
    # The upload only matters for a known user that still has no photo.
    if has_upload and await orchestrator.needs_generation(user_id):
        upload_path = await store_upload(image, request.app.state.settings.upload_dir)

    try:
        result = await orchestrator.resolve_photo(user_id, upload_path)
    except Exception:
        if upload_path is not None:
            await discard_upload(upload_path)
        raise
    if upload_path is not None:
        background_tasks.add_task(discard_upload, upload_path)

    if not result.generated:
        return {
            "success": True,
            "hasExistingPhoto": True,
            "user": result.user.public_view(),
            "hasPhoto": True,
            "image": result.data_uri,
        }
    return {
        "success": True,
        "hasExistingPhoto": False,
        "generated": True,
        "imagePath": result.image_path,
        "user": result.user.public_view(),
        "image": result.data_uri,
    }


async def check_photo(request: Request, user_id: str) -> Dict[str, Any]:
    """Read-only check of whether a user has a photo."""
    result = await _get_orchestrator(request).check_photo(user_id)

    response: Dict[str, Any] = {
        "success": True,
        "user": result.user.public_view(),
        "hasPhoto": result.has_photo,
    }
    if result.image is not None:
        response["image"] = result.image
    if result.image_error is not None:
        response["imageError"] = result.image_error
    return response


async def debug_image(request: Request, user_id: str) -> Dict[str, Any]:
    """Report how the image for a user is stored."""
    info = await _get_orchestrator(request).inspect_image(user_id)
    return {"success": True, **info}
