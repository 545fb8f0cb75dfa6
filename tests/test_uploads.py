"""Tests for shared photo decoding and storage."""

import base64

import pytest

from src.errors import ValidationError
from src.images.uploads import decode_image, save_upload, sniff_media_type

JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 8
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (JPEG, "image/jpeg"),
        (PNG, "image/png"),
        (b"GIF89a" + b"\x00" * 4, "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"plain bytes", "image/jpeg"),
    ],
)
def test_sniff_media_type(data: bytes, expected: str) -> None:
    assert sniff_media_type(data) == expected


def test_decode_image() -> None:
    b64 = base64.b64encode(PNG).decode()

    clean, data, media_type = decode_image(b64)

    assert clean == b64
    assert data == PNG
    assert media_type == "image/png"


def test_decode_strips_data_url_and_whitespace() -> None:
    b64 = base64.b64encode(JPEG).decode()
    wrapped = f"data:image/jpeg;base64,{b64[:8]}\n{b64[8:]}"

    clean, data, _ = decode_image(wrapped)

    assert clean == b64
    assert data == JPEG


@pytest.mark.parametrize("value", ["", "  ", "%%%", "data:image/png;base64,", None, 123])
def test_decode_rejects(value) -> None:
    with pytest.raises(ValidationError):
        decode_image(value)


async def test_save_upload(tmp_path) -> None:
    path = await save_upload(PNG, "image/png", tmp_path / "uploads")

    saved = tmp_path / "uploads"
    [written] = list(saved.iterdir())
    assert str(written) == path
    assert written.name.startswith("img_")
    assert written.suffix == ".png"
    assert written.read_bytes() == PNG


async def test_save_upload_names_are_unique(tmp_path) -> None:
    a = await save_upload(JPEG, "image/jpeg", tmp_path)
    b = await save_upload(JPEG, "image/jpeg", tmp_path)
    assert a != b
    assert a.endswith(".jpg")


async def test_save_upload_uses_configured_dir(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("src.config.settings.uploads_dir", tmp_path / "configured")

    path = await save_upload(JPEG, "image/jpeg")

    assert path.startswith(str(tmp_path / "configured"))
