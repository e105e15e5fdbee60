"""Graduation photo generation via OpenAI's image edit endpoint."""

import base64
import binascii
import logging
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple

import aiofiles
from openai import APIError, APITimeoutError, AsyncOpenAI

from services.errors import ProviderError, ProviderTimeoutError

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = "gpt-image-1"
DEFAULT_TIMEOUT_SECONDS = 120.0

ImageFile = Tuple[str, bytes, str]


class GraduationImageGenerator:
    """Submit a subject photo plus the reference logo and return the edited image."""

    def __init__(
        self,
        client: AsyncOpenAI,
        logo_path: Path | str,
        *,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the generator.

        Args:
            client: Shared async OpenAI client.
            logo_path: PNG logo sent as the second reference image on every request.
            model: Image model name.
            timeout: Seconds allowed for a single edit request.
        """
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.logo_path = Path(logo_path)
        self.model = model
        self.timeout = timeout

    async def generate(self, photo_path: Path | str, prompt: str) -> bytes:
        """Edit the photo at `photo_path` according to `prompt`.

        Returns:
            The raw bytes of the generated PNG.

        Raises:
            ProviderTimeoutError: If the provider did not answer within `timeout`.
            ProviderError: If the request failed or the response held no image.
        """
        start_time = time.time()
        images = [
            await self._read_image(Path(photo_path), "photo.png"),
            await self._read_image(self.logo_path, "logo.png"),
        ]
        response = await self._create_edit(images, prompt)
        image_bytes = self._decode_response(response)
        LOGGER.info("Image edit latency: %.3fs", time.time() - start_time)
        return image_bytes

    async def _read_image(self, path: Path, filename: str) -> ImageFile:
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as exc:
            raise ProviderError(f"Reference image {path} could not be read") from exc
        return (filename, data, "image/png")

    async def _create_edit(self, images: List[ImageFile], prompt: str) -> Any:
        """Send the edit request to the OpenAI images API."""
        try:
            return await self.client.images.edit(
                model=self.model,
                image=images,
                prompt=prompt,
                timeout=self.timeout,
            )
        except APITimeoutError as exc:
            LOGGER.error("OpenAI image edit timed out after %.1fs", self.timeout)
            raise ProviderTimeoutError(
                "The image generation provider timed out; try again later"
            ) from exc
        except APIError as exc:
            LOGGER.error("Error during OpenAI image edit call: %s", exc)
            raise ProviderError(f"Image generation failed: {exc}") from exc

    @staticmethod
    def _decode_response(response: Any) -> bytes:
        """Pull the first base64 image out of an images API response."""
        data = getattr(response, "data", None) or []
        b64_json: Optional[str] = getattr(data[0], "b64_json", None) if data else None
        if not b64_json:
            LOGGER.error("Image edit response did not include image data: %r", response)
            raise ProviderError("Image generation returned no image data")
        try:
            return base64.b64decode(b64_json)
        except (binascii.Error, ValueError) as exc:
            raise ProviderError("Image generation returned invalid base64 data") from exc
