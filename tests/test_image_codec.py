import base64
import json

import pytest

from models.image_payload import ImagePayload
from services import image_codec
from services.errors import ImageDecodeError

RAW = b"\x89PNG\r\n\x1a\nimage-body"


def test_canonical_buffer_is_returned_unchanged():
    payload = ImagePayload.from_storage(RAW)

    assert payload.kind == "buffer"
    assert image_codec.to_canonical_bytes(payload) == RAW


def test_memoryview_and_bytearray_are_buffers():
    assert ImagePayload.from_storage(bytearray(RAW)).kind == "buffer"
    assert image_codec.to_canonical_bytes(ImagePayload.from_storage(memoryview(RAW))) == RAW


def test_base64_text_round_trips_to_the_same_string():
    encoded = base64.b64encode(RAW).decode("ascii")
    payload = ImagePayload.from_storage(encoded)

    assert payload.kind == "base64"
    assert image_codec.to_canonical_bytes(payload) == RAW
    assert image_codec.to_base64(payload) == encoded


def test_base64_data_uri_prefix_is_tolerated():
    payload = ImagePayload.from_base64("data:image/png;base64," + base64.b64encode(RAW).decode())

    assert image_codec.to_canonical_bytes(payload) == RAW


def test_base64_with_mime_line_breaks_is_decoded():
    raw = bytes(range(256)) * 2
    wrapped = base64.encodebytes(raw).decode("ascii")
    assert "\n" in wrapped.strip()

    assert image_codec.to_canonical_bytes(ImagePayload.from_storage(wrapped)) == raw


def test_urlsafe_base64_without_padding_is_decoded():
    raw = bytes(range(256))
    urlsafe = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    assert "-" in urlsafe and "_" in urlsafe

    assert image_codec.to_canonical_bytes(ImagePayload.from_storage(urlsafe)) == raw


def test_byte_sequence_is_reinterpreted():
    payload = ImagePayload.from_storage(list(RAW))

    assert payload.kind == "byte_sequence"
    assert image_codec.to_canonical_bytes(payload) == RAW


def test_json_text_columns_are_classified_at_the_boundary():
    as_array = ImagePayload.from_storage(json.dumps(list(RAW)))
    as_wrapper = ImagePayload.from_storage(json.dumps({"type": "Buffer", "data": list(RAW)}))

    assert as_array.kind == "byte_sequence"
    assert as_wrapper.kind == "wrapped"
    assert image_codec.to_canonical_bytes(as_array) == RAW
    assert image_codec.to_canonical_bytes(as_wrapper) == RAW


def test_wrapper_holding_a_buffer():
    payload = ImagePayload.from_wrapper({"data": RAW})

    assert image_codec.to_canonical_bytes(payload) == RAW


def test_object_values_are_enumerated_in_numeric_key_order():
    values = {str(i): b for i, b in enumerate(RAW)}
    shuffled = dict(reversed(list(values.items())))
    payload = ImagePayload.from_storage(shuffled)

    assert payload.kind == "values"
    assert image_codec.to_canonical_bytes(payload) == RAW


def test_absent_values_mean_no_image():
    assert ImagePayload.from_storage(None) is None
    assert ImagePayload.from_storage("") is None


def test_data_uri_uses_png_media_type():
    uri = image_codec.to_data_uri(ImagePayload.from_bytes(RAW))

    assert uri == "data:image/png;base64," + base64.b64encode(RAW).decode("ascii")


@pytest.mark.parametrize(
    "payload",
    [
        ImagePayload.from_base64("not base64 !!"),
        ImagePayload.from_byte_sequence([1, 2, 300]),
        ImagePayload.from_byte_sequence(["a", "b"]),
        ImagePayload.from_values(42),
        ImagePayload.from_bytes(b""),
    ],
)
def test_undecodable_values_raise_with_shape(payload):
    with pytest.raises(ImageDecodeError) as excinfo:
        image_codec.to_canonical_bytes(payload)

    assert excinfo.value.status_code == 500
    assert excinfo.value.shape["kind"] == payload.kind
    assert excinfo.value.shape["type"] == type(payload.raw).__name__


def test_describe_reports_buffer_preview():
    info = image_codec.describe(ImagePayload.from_bytes(RAW))

    assert info["isBuffer"] is True
    assert info["isArray"] is False
    assert info["length"] == len(RAW)
    assert info["bufferPreview"] == base64.b64encode(RAW).decode("ascii")[:50]


def test_describe_reports_array_preview():
    values = list(range(30))
    info = image_codec.describe(ImagePayload.from_byte_sequence(values))

    assert info["imageType"] == "list"
    assert info["isArray"] is True
    assert info["arrayPreview"] == values[:20]
    assert "bufferPreview" not in info
