import pytest

from services.image_store import build_output_filename, discard_upload, save_generated_image


def test_named_filename_collapses_whitespace():
    assert build_output_filename("Ana  Maria\tGomez", millis=42) == "Ana_Maria_Gomez_graduado_42.png"


def test_anonymous_filename():
    assert build_output_filename(millis=7) == "generated_7.png"


async def test_save_creates_the_content_directory(tmp_path):
    target = tmp_path / "nested" / "generated"

    path = await save_generated_image(target, "generated_1.png", b"bytes")

    assert (target / "generated_1.png").read_bytes() == b"bytes"
    assert path == str(target / "generated_1.png")


async def test_save_rejects_path_traversal(tmp_path):
    with pytest.raises(ValueError):
        await save_generated_image(tmp_path, "../escape.png", b"bytes")


async def test_save_rejects_empty_bytes(tmp_path):
    with pytest.raises(ValueError):
        await save_generated_image(tmp_path, "generated_1.png", b"")


async def test_discard_upload_is_best_effort(tmp_path):
    upload = tmp_path / "upload.png"
    upload.write_bytes(b"x")

    await discard_upload(upload)
    await discard_upload(upload)

    assert not upload.exists()
