"""Typed representation of the value found in the USERS.image column.

Rows written by different drivers (or by older versions of the service) do not
agree on how the image is stored: most hold a BLOB, but some hold base64 TEXT
or JSON TEXT with a byte array or a `{"type": "Buffer", "data": [...]}`
wrapper. `ImagePayload.from_storage` classifies the value once, when the row is
read, so the rest of the code dispatches on `kind` instead of probing types.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional, Sequence

PayloadKind = Literal["buffer", "byte_sequence", "wrapped", "base64", "values"]

WRAPPER_FIELD = "data"


@dataclass(frozen=True)
class ImagePayload:
    """A stored image value tagged with the encoding it arrived in.

    Attributes:
        kind: Which decoding rule applies to `raw`.
        raw: The value exactly as it was read (after JSON parsing of TEXT columns).
    """

    kind: PayloadKind
    raw: Any

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> "ImagePayload":
        return cls("buffer", bytes(data))

    @classmethod
    def from_byte_sequence(cls, values: Sequence[int]) -> "ImagePayload":
        return cls("byte_sequence", list(values))

    @classmethod
    def from_wrapper(cls, wrapper: Mapping[str, Any]) -> "ImagePayload":
        return cls("wrapped", dict(wrapper))

    @classmethod
    def from_base64(cls, text: str) -> "ImagePayload":
        return cls("base64", text)

    @classmethod
    def from_values(cls, obj: Any) -> "ImagePayload":
        return cls("values", obj)

    @classmethod
    def from_storage(cls, value: Any) -> Optional["ImagePayload"]:
        """Classify a raw column value; returns None when no image is stored."""
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.from_bytes(value)
        if isinstance(value, str):
            if not value.strip():
                return None
            parsed = _parse_json_text(value)
            if parsed is None:
                return cls.from_base64(value)
            value = parsed
        if isinstance(value, (list, tuple)):
            return cls.from_byte_sequence(value)
        if isinstance(value, Mapping) and value.get(WRAPPER_FIELD):
            return cls.from_wrapper(value)
        return cls.from_values(value)


def _parse_json_text(text: str) -> Any:
    """Return the decoded JSON array/object held in a TEXT column, else None."""
    stripped = text.lstrip()
    if not stripped.startswith(("[", "{")):
        return None
    try:
        return json.loads(stripped)
    except ValueError:
        return None
