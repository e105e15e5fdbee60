"""Generate-or-fetch workflow for graduation photos.

Two entry points, deliberately kept apart:

- `onboard` always generates. It trusts the name/gender/career sent with the
  request and creates a new USERS row.
- `resolve_photo` serves the stored image when there is one. Otherwise it
  generates from the identity stored on the row (never from request values)
  and attaches the image to that row.

Generation for a given id runs under an `InFlightRegistry`, so concurrent
requests for the same id reach the provider once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dal.user_dal import UserDAL
from models.user_record import UserRecord
from services import image_codec
from services.errors import DuplicateKeyError, ImageDecodeError, MissingUploadError, RecordNotFound
from services.generation_gate import InFlightRegistry
from services.image_store import build_output_filename, current_millis, save_generated_image
from services.openai.graduation_prompts import build_prompt
from services.openai.image_generator import GraduationImageGenerator

LOGGER = logging.getLogger(__name__)

IMAGE_ERROR_MESSAGE = "Error processing the stored image"


@dataclass
class PhotoResult:
    """Outcome of `resolve_photo`."""

    user: UserRecord
    image_bytes: bytes
    generated: bool
    image_path: Optional[str] = None

    @property
    def data_uri(self) -> str:
        return image_codec.bytes_to_data_uri(self.image_bytes)


@dataclass
class OnboardResult:
    """Outcome of `onboard`: the created user and where the image was written."""

    user: UserRecord
    image_path: str
    image_bytes: bytes


@dataclass
class CheckResult:
    """Read-only view of a user's photo state."""

    user: UserRecord
    has_photo: bool
    image: Optional[str] = None
    image_error: Optional[str] = None


class PhotoOrchestrator:
    """Coordinate the record store, the generation provider and the content directory."""

    def __init__(
        self,
        user_dal: UserDAL,
        generator: GraduationImageGenerator,
        content_dir: Path | str,
        inflight: Optional[InFlightRegistry] = None,
    ) -> None:
        self.user_dal = user_dal
        self.generator = generator
        self.content_dir = Path(content_dir)
        self.inflight = inflight or InFlightRegistry()

    async def onboard(
        self,
        name: str,
        gender: str,
        career: str,
        upload_path: Path | str,
        cedula: Optional[str] = None,
    ) -> OnboardResult:
        """Generate an image from request data and create the user record.

        Raises:
            DuplicateKeyError: If a user with `cedula` already exists.
            ProviderError: If generation fails.
        """
        user_id = cedula or f"temp_{current_millis()}"
        # Fail before spending a provider call; create() still guards the race.
        if await self.user_dal.find_by_id(user_id) is not None:
            raise DuplicateKeyError(user_id)

        image_bytes = await self.generator.generate(upload_path, build_prompt(name, gender, career))
        image_path = await save_generated_image(
            self.content_dir, build_output_filename(), image_bytes
        )

        record = UserRecord(id=user_id, name=name, gender=gender, career=career)
        saved = await self.user_dal.create(record, image=image_bytes)
        LOGGER.info("Created user %s with generated photo %s", saved.id, image_path)
        return OnboardResult(user=saved, image_path=image_path, image_bytes=image_bytes)

    async def resolve_photo(
        self, user_id: str, upload_path: Optional[Path | str] = None
    ) -> PhotoResult:
        """Return the stored photo for `user_id`, generating it when missing.

        Raises:
            RecordNotFound: If no user has `user_id`.
            MissingUploadError: If the user has no photo and no upload was given.
            ImageDecodeError: If the stored image cannot be decoded.
        """
        user = await self.user_dal.find_by_id(user_id)
        if user is None:
            raise RecordNotFound(user_id)

        if user.has_image:
            LOGGER.info("User %s already has a photo, returning stored image", user.id)
            return self._stored_result(user)

        if upload_path is None:
            raise MissingUploadError(user_id)

        result, owner = await self.inflight.run(
            user_id, lambda: self._generate_for(user_id, upload_path)
        )
        if not owner:
            LOGGER.info("Joined in-flight generation for user %s", user_id)
            return PhotoResult(user=result.user, image_bytes=result.image_bytes, generated=False)
        return result

    async def needs_generation(self, user_id: str) -> bool:
        """Return True when `user_id` exists and has no stored photo yet.

        Raises:
            RecordNotFound: If no user has `user_id`.
        """
        user = await self.user_dal.find_by_id(user_id)
        if user is None:
            raise RecordNotFound(user_id)
        return not user.has_image

    async def check_photo(self, user_id: str) -> CheckResult:
        """Report whether `user_id` has a photo, including it when decodable."""
        user = await self.user_dal.find_by_id(user_id)
        if user is None:
            raise RecordNotFound(user_id)

        if not user.has_image:
            return CheckResult(user=user, has_photo=False)

        try:
            data_uri = image_codec.to_data_uri(user.image)
        except ImageDecodeError as exc:
            LOGGER.error("Error converting image for user %s: %s (shape=%s)", user.id, exc, exc.shape)
            return CheckResult(user=user, has_photo=True, image_error=IMAGE_ERROR_MESSAGE)
        return CheckResult(user=user, has_photo=True, image=data_uri)

    async def inspect_image(self, user_id: str) -> Dict[str, Any]:
        """Return diagnostics about how the image for `user_id` is stored."""
        user = await self.user_dal.find_by_id(user_id)
        if user is None:
            raise RecordNotFound(user_id)

        summary = {"id": user.id, "name": user.name}
        if not user.has_image:
            return {"hasImage": False, "user": summary}
        return {"hasImage": True, "user": summary, **image_codec.describe(user.image)}

    def _stored_result(self, user: UserRecord) -> PhotoResult:
        try:
            image_bytes = image_codec.to_canonical_bytes(user.image)
        except ImageDecodeError as exc:
            LOGGER.error("Error converting stored image for user %s: shape=%s", user.id, exc.shape)
            raise
        return PhotoResult(user=user, image_bytes=image_bytes, generated=False)

    async def _generate_for(self, user_id: str, upload_path: Path | str) -> PhotoResult:
        # Re-read inside the gate: a generation that finished after our first
        # read has already stored the image.
        user = await self.user_dal.find_by_id(user_id)
        if user is None:
            raise RecordNotFound(user_id)
        if user.has_image:
            return self._stored_result(user)

        LOGGER.info("User %s has no photo, generating a new image", user.id)
        prompt = build_prompt(user.name, user.gender, user.career)
        image_bytes = await self.generator.generate(upload_path, prompt)
        image_path = await save_generated_image(
            self.content_dir, build_output_filename(user.name), image_bytes
        )
        updated = await self.user_dal.update_image(user_id, image_bytes)
        LOGGER.info("Photo generated and stored for %s at %s", updated.name, image_path)
        return PhotoResult(
            user=updated, image_bytes=image_bytes, generated=True, image_path=image_path
        )
