"""Validation and temporary storage for uploaded photos."""

import asyncio
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile

from services.errors import InvalidUploadError
from services.photo_converter import PhotoConverter

ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    "image/bmp",
}


def validate_image_file(image_file: UploadFile) -> None:
    """Reject uploads whose declared content type is not a supported image.

    A missing content type is accepted; the bytes are checked by Pillow later.
    """
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        # Some clients send a generic binary type for camera captures
        if content_type not in ALLOWED_IMAGE_TYPES and content_type != "application/octet-stream":
            raise InvalidUploadError(f"Unsupported image content type: {image_file.content_type}")


async def store_upload(
    image_file: UploadFile,
    upload_dir: Path | str,
    converter: Optional[PhotoConverter] = None,
) -> Path:
    """Validate an uploaded photo, convert it to PNG and write it to `upload_dir`.

    Returns:
        Path of the temporary PNG file. The caller owns its deletion.

    Raises:
        InvalidUploadError: If the upload is empty or not a readable image.
    """
    validate_image_file(image_file)
    raw = await image_file.read()
    if not raw:
        raise InvalidUploadError("Uploaded image is empty.")

    converter = converter or PhotoConverter()
    try:
        # Pillow decoding is blocking -> run in thread
        png_bytes = await asyncio.to_thread(converter.to_png, raw)
    except ValueError as exc:
        raise InvalidUploadError(str(exc)) from exc

    base = Path(upload_dir)
    base.mkdir(parents=True, exist_ok=True)
    path = base / f"{uuid.uuid4().hex}.png"
    async with aiofiles.open(path, "wb") as f:
        await f.write(png_bytes)
    return path
