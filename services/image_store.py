"""Helpers for writing generated images to the content directory and
cleaning up temporary uploads.

Generated files are named after the subject when one is known
(`Ana_Gomez_graduado_<millis>.png`) and `generated_<millis>.png` otherwise.
The content directory is created on first write.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Optional

import aiofiles

LOGGER = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def current_millis() -> int:
    return int(time.time() * 1000)


def build_output_filename(name: Optional[str] = None, millis: Optional[int] = None) -> str:
    """Return the filename for a generated image.

    Args:
        name: Subject name; whitespace runs become underscores. Omitted for onboarding.
        millis: Timestamp suffix; defaults to the current time in milliseconds.
    """
    stamp = millis if millis is not None else current_millis()
    if name:
        return f"{_WHITESPACE.sub('_', name)}_graduado_{stamp}.png"
    return f"generated_{stamp}.png"


async def save_generated_image(content_dir: Path | str, filename: str, image_bytes: bytes) -> str:
    """Write `image_bytes` under `content_dir` and return the written path.

    Raises:
        ValueError: If image bytes are missing or the filename escapes the directory.
    """
    if not image_bytes:
        raise ValueError("Image bytes are required for saving.")
    if Path(filename).name != filename:
        raise ValueError(f"Unsafe output filename: {filename!r}")

    base = Path(content_dir)
    base.mkdir(parents=True, exist_ok=True)
    output_path = base / filename
    async with aiofiles.open(output_path, "wb") as f:
        await f.write(image_bytes)
    return str(output_path)


async def discard_upload(path: Path | str) -> None:
    """Delete a temporary upload, logging (not raising) on failure."""
    try:
        await asyncio.to_thread(Path(path).unlink, missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Failed to delete temporary upload %s: %s", path, exc)
