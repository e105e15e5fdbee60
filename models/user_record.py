from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from models.image_payload import ImagePayload


@dataclass
class UserRecord:
    """In-memory representation of a row in the USERS table.

    Attributes:
        id: Primary key; the national id (cedula) or a `temp_<millis>` placeholder.
        name: Full name, used verbatim in prompts and output filenames.
        gender: Selector for the prompt template ("female" or anything else).
        career: Career name printed on the generated diploma.
        image: Stored image payload, None until a generation succeeds.
        created_at: Unix timestamp (seconds) when the row was inserted.
        updated_at: Unix timestamp (seconds) of the last image update.
    """

    id: str
    name: str
    gender: str
    career: str
    image: Optional[ImagePayload] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None

    def public_view(self) -> Dict[str, Any]:
        """Return the fields exposed in API responses (never the image bytes)."""
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "career": self.career,
        }
