"""Byte measurement, base64url repair and MIME helpers."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable

from apibench.errors import InvalidMediaTypeError, InvalidTextSizeError, MediaDecodeError
from apibench.models import MEDIA_TYPES, TEXT_SIZES

_MEDIA_MIME_TYPES = {
    "image": "image/jpeg",
    "audio": "audio/wav",
    "video": "video/mp4",
}


def require_text_size(size: str | None) -> str:
    if size not in TEXT_SIZES:
        raise InvalidTextSizeError(size)
    return size


def require_media_type(media_type: str | None) -> str:
    if media_type not in MEDIA_TYPES:
        raise InvalidMediaTypeError(media_type)
    return media_type


def measure_utf8_bytes(text: str) -> int:
    """Return the exact UTF-8 encoded length of text."""

    return len(text.encode("utf-8"))


def mime_type_for(media_type: str) -> str:
    """Fixed MIME mapping used when the backend does not name one."""

    return _MEDIA_MIME_TYPES[require_media_type(media_type)]


def mime_type_from_header(content_type: str | None, media_type: str) -> str:
    """Use the content-type header without parameters, else the fixed mapping."""

    if content_type:
        essence = content_type.split(";", 1)[0].strip()
        if essence:
            return essence
    return mime_type_for(media_type)


def repair_base64url(value: str) -> str:
    """Convert URL-safe, unpadded base64 to the standard padded alphabet."""

    repaired = value.replace("-", "+").replace("_", "/")
    remainder = len(repaired) % 4
    if remainder == 2:
        repaired += "=="
    elif remainder == 3:
        repaired += "="
    return repaired


def decode_base64url(value: str) -> bytes:
    try:
        return base64.b64decode(repair_base64url(value), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MediaDecodeError(f"Media payload is not valid base64: {exc}") from exc


def decode_byte_array(values: Iterable[object]) -> bytes:
    """Turn a JSON array of numbers into bytes."""

    try:
        return bytes(values)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise MediaDecodeError(f"Media payload is not a byte array: {exc}") from exc
