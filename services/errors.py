"""Error taxonomy for the photo service.

Each error carries the HTTP status it is rendered with. The application
registers a single exception handler for `PhotoServiceError` that turns any of
them into `{"success": false, "error": <message>}`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PhotoServiceError(Exception):
    """Base class for failures surfaced to API clients."""

    status_code = 500
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.message}
        if self.retryable:
            payload["retryable"] = True
        return payload


class RecordNotFound(PhotoServiceError):
    status_code = 404

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found for id {user_id!r}")
        self.user_id = user_id


class MissingUploadError(PhotoServiceError):
    status_code = 400

    def __init__(self, user_id: str) -> None:
        super().__init__(
            f"User {user_id!r} has no photo and no image was provided to generate one"
        )
        self.user_id = user_id


class InvalidUploadError(PhotoServiceError):
    """Raised when the uploaded file is empty or is not a readable image."""

    status_code = 400


class DuplicateKeyError(PhotoServiceError):
    status_code = 409

    def __init__(self, user_id: str) -> None:
        super().__init__(f"A user with id {user_id!r} already exists")
        self.user_id = user_id


class ImageDecodeError(PhotoServiceError):
    """Raised when a stored image value cannot be turned into bytes.

    Attributes:
        shape: Runtime description of the offending value, for diagnostics.
    """

    def __init__(self, message: str, shape: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.shape = shape or {}


class ProviderError(PhotoServiceError):
    """The image-generation provider failed or returned an unusable result."""


class ProviderTimeoutError(ProviderError):
    status_code = 504
    retryable = True


class InternalError(PhotoServiceError):
    """Anything unexpected, wrapped at the request boundary."""
