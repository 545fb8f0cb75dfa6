"""Photos shared by the user: decoding, type sniffing and local storage."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import uuid
from typing import TYPE_CHECKING

from src.config import settings
from src.errors import ValidationError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# media type → (magic prefix, file extension)
_SIGNATURES: dict[str, tuple[bytes, str]] = {
    "image/jpeg": (b"\xff\xd8\xff", ".jpg"),
    "image/png": (b"\x89PNG\r\n\x1a\n", ".png"),
    "image/gif": (b"GIF8", ".gif"),
}
DEFAULT_MEDIA_TYPE = "image/jpeg"


def _strip_data_url(image_b64: str) -> str:
    """Accept ``data:image/...;base64,`` prefixed payloads too."""
    head, sep, tail = image_b64.partition(",")
    if sep and head.startswith("data:"):
        return tail
    return image_b64


def sniff_media_type(data: bytes) -> str:
    """Best-effort media type from magic bytes; JPEG when unknown."""
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    for media_type, (magic, _) in _SIGNATURES.items():
        if data.startswith(magic):
            return media_type
    return DEFAULT_MEDIA_TYPE


def decode_image(image_b64: str) -> tuple[str, bytes, str]:
    """Validate a base64 photo.

    Returns ``(clean_b64, raw_bytes, media_type)``.

    Raises:
        ValidationError: Empty input or not valid base64.
    """
    if not isinstance(image_b64, str) or not image_b64.strip():
        msg = "Image is required (base64)"
        raise ValidationError(msg)
    clean = "".join(_strip_data_url(image_b64.strip()).split())
    try:
        data = base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "Image is not valid base64"
        raise ValidationError(msg) from exc
    if not data:
        msg = "Image is empty"
        raise ValidationError(msg)
    return clean, data, sniff_media_type(data)


def _extension(media_type: str) -> str:
    if media_type == "image/webp":
        return ".webp"
    return _SIGNATURES.get(media_type, _SIGNATURES[DEFAULT_MEDIA_TYPE])[1]


async def save_upload(data: bytes, media_type: str, directory: Path | None = None) -> str:
    """Write *data* under the uploads directory and return its path as a string."""
    target_dir = directory or settings.uploads_dir
    path = target_dir / f"img_{uuid.uuid4().hex[:12]}{_extension(media_type)}"

    def _write() -> None:
        target_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    await asyncio.to_thread(_write)
    logger.info("Saved shared photo: %s (%d bytes)", path.name, len(data))
    return str(path)
