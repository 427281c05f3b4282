"""Wrapping decoded media bytes into playable, releasable handles."""

from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from pathlib import Path

from apibench.models import MediaHandle

logger = logging.getLogger(__name__)

_EXTENSION_OVERRIDES = {
    "image/jpeg": ".jpg",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "video/mp4": ".mp4",
}


def _extension_for(mime_type: str) -> str:
    if mime_type in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[mime_type]
    return mimetypes.guess_extension(mime_type) or ".bin"


def wrap_media(data: bytes, mime_type: str, directory: Path | None = None) -> MediaHandle:
    """Write data to a fresh private file and return a handle owning it."""

    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    fd, raw_path = tempfile.mkstemp(
        prefix="apibench-",
        suffix=_extension_for(mime_type),
        dir=str(directory) if directory is not None else None,
    )
    with os.fdopen(fd, "wb") as handle_file:
        handle_file.write(data)

    handle = MediaHandle(mime_type=mime_type, byte_length=len(data), path=Path(raw_path))
    logger.debug("Wrapped %d bytes of %s at %s", len(data), mime_type, handle.url)
    return handle


def save_media(handle: MediaHandle, output: Path) -> Path:
    """Copy the handle's bytes to output, keeping the handle alive."""

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(handle.read_bytes())
    return output
