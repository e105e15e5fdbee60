"""Turn stored image payloads into canonical bytes and base64 data URIs.

Decoding rules, by payload kind:

- buffer:         the bytes are used as they are.
- byte_sequence:  a list of ints (0-255) is reinterpreted as bytes.
- wrapped:        the byte list/buffer under the `data` field is extracted.
- base64:         the text is base64-decoded (a `data:` URI prefix is tolerated).
- values:         the object's own values are enumerated and reinterpreted.

Any failure raises `ImageDecodeError` carrying the value's runtime shape.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any, Dict, Iterable

from models.image_payload import WRAPPER_FIELD, ImagePayload
from services.errors import ImageDecodeError

DEFAULT_MIME_TYPE = "image/png"
ARRAY_PREVIEW_LENGTH = 20
BUFFER_PREVIEW_LENGTH = 50
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def to_canonical_bytes(payload: ImagePayload) -> bytes:
    """Return the canonical byte sequence for `payload`.

    Raises:
        ImageDecodeError: If the payload cannot be decoded or decodes to nothing.
    """
    try:
        if payload.kind == "buffer":
            data = bytes(payload.raw)
        elif payload.kind == "byte_sequence":
            data = _bytes_from_values(payload.raw)
        elif payload.kind == "wrapped":
            data = _bytes_from_wrapped(payload.raw)
        elif payload.kind == "base64":
            data = _bytes_from_base64(payload.raw)
        else:
            data = _bytes_from_values(_own_values(payload.raw))
    except ImageDecodeError:
        raise
    except (KeyError, TypeError, ValueError, binascii.Error) as exc:
        raise ImageDecodeError(
            f"Stored image could not be decoded: {exc}", shape=shape_of(payload)
        ) from exc

    if not data:
        raise ImageDecodeError("Stored image is empty", shape=shape_of(payload))
    return data


def to_base64(payload: ImagePayload) -> str:
    """Return the canonical base64 text for `payload`."""
    return base64.b64encode(to_canonical_bytes(payload)).decode("ascii")


def to_data_uri(payload: ImagePayload, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    return bytes_to_data_uri(to_canonical_bytes(payload), mime_type)


def bytes_to_data_uri(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def shape_of(payload: ImagePayload) -> Dict[str, Any]:
    """Describe the runtime shape of a payload (type, kind and length)."""
    raw = payload.raw
    try:
        length = len(raw)
    except TypeError:
        length = None
    return {"type": type(raw).__name__, "kind": payload.kind, "length": length}


def describe(payload: ImagePayload) -> Dict[str, Any]:
    """Return diagnostic information about how an image is stored."""
    shape = shape_of(payload)
    info: Dict[str, Any] = {
        "imageType": shape["type"],
        "kind": payload.kind,
        "isBuffer": payload.kind == "buffer",
        "isArray": payload.kind == "byte_sequence",
        "length": shape["length"] or 0,
    }
    if payload.kind == "byte_sequence":
        info["arrayPreview"] = list(payload.raw[:ARRAY_PREVIEW_LENGTH])
    if payload.kind == "buffer":
        preview = base64.b64encode(payload.raw).decode("ascii")
        info["bufferPreview"] = preview[:BUFFER_PREVIEW_LENGTH]
    return info


def _bytes_from_values(values: Iterable[Any]) -> bytes:
    # bytes() rejects ints outside 0-255 and non-int items
    return bytes(list(values))


def _bytes_from_wrapped(wrapper: Mapping[str, Any]) -> bytes:
    inner = wrapper[WRAPPER_FIELD]
    if isinstance(inner, (bytes, bytearray, memoryview)):
        return bytes(inner)
    if isinstance(inner, str):
        return _bytes_from_base64(inner)
    return _bytes_from_values(inner)


def _bytes_from_base64(text: str) -> bytes:
    cleaned = text.strip()
    if cleaned.startswith("data:") and "," in cleaned:
        cleaned = cleaned.split(",", 1)[1]
    # MIME line wrapping and the URL-safe alphabet are both accepted
    cleaned = "".join(cleaned.split()).translate(_URLSAFE_TO_STANDARD)
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned, validate=True)


def _own_values(obj: Any) -> Iterable[Any]:
    """Enumerate an object's own values, numeric keys in numeric order."""
    if isinstance(obj, Mapping):
        keys = list(obj.keys())
        if keys and all(isinstance(k, str) and k.isdigit() for k in keys):
            keys.sort(key=int)
        return [obj[k] for k in keys]
    if hasattr(obj, "__dict__"):
        return list(vars(obj).values())
    raise TypeError(f"object of type {type(obj).__name__} has no enumerable values")
