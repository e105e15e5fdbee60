"""Photo converter service.

Provides a small OOP wrapper around Pillow that re-encodes an uploaded photo
(JPEG, WEBP or anything else Pillow can open) as PNG, which is the
format submitted to the image edit endpoint. Optionally the photo is shrunk
to fit within `max_size` while preserving aspect ratio.

Example:
    converter = PhotoConverter(max_size=(2048, 2048))
    png_bytes = converter.to_png(raw_upload_bytes)
"""
from __future__ import annotations

import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


class PhotoConverter:
    """Re-encode photos as PNG.

    Args:
        max_size: Optional maximum width and height. When None the photo keeps its size.
    """

    def __init__(self, max_size: Optional[Tuple[int, int]] = None):
        self.max_size = max_size

    def to_png(self, data: bytes) -> bytes:
        """Return `data` re-encoded as PNG.

        Raises:
            ValueError: If the bytes are empty or cannot be opened as an image.
        """
        if not data:
            raise ValueError("Uploaded image is empty.")

        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Uploaded file is not a supported image format.") from exc

        # PNG supports RGB/RGBA; palette and CMYK sources are converted first
        if src.mode not in ("RGB", "RGBA"):
            src = src.convert("RGBA")

        if self.max_size:
            src.thumbnail(self.max_size, Image.LANCZOS)

        out_io = io.BytesIO()
        src.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
