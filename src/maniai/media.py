"""Media encoding and analysis."""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import os
from typing import Any

from google.genai import types

from .config import Config
from .errors import MediaReadError, wrap_provider_error
from .models import MediaPart

logger = logging.getLogger("maniai")

DEFAULT_MAX_MEDIA_BYTES = 20 * 1024 * 1024


def guess_mime_type(path: str) -> str:
    mime_type, _encoding = mimetypes.guess_type(path)
    if not mime_type:
        raise MediaReadError(f"Could not determine the media type of {path}.")
    return mime_type


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as handle:
        return handle.read()


async def encode_media_file(path: str, max_bytes: int = DEFAULT_MAX_MEDIA_BYTES) -> MediaPart:
    """Read a local file and return it as a base64 media part.

    Raises MediaReadError before any network call if the file is missing,
    unreadable, too large, or of an unknown type.
    """
    if not os.path.isfile(path):
        raise MediaReadError(f"Media file not found: {path}")
    mime_type = guess_mime_type(path)
    size = os.path.getsize(path)
    if max_bytes and size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise MediaReadError(f"File is too large. Please select a file under {limit_mb}MB.")
    try:
        raw = await asyncio.to_thread(_read_bytes, path)
    except OSError as exc:
        raise MediaReadError(f"Failed to read {path}: {exc}") from exc
    if not raw:
        raise MediaReadError(f"Media file is empty: {path}")
    data = base64.b64encode(raw).decode("ascii")
    return MediaPart(data=data, mime_type=mime_type)


def select_analysis_model(part: MediaPart, config: Config) -> str:
    if part.is_video:
        return config.models.analysis_video
    return config.models.analysis_image


async def analyze_media(client: Any, prompt: str, path: str, config: Config) -> str:
    part = await encode_media_file(path, max_bytes=config.max_media_bytes)
    model = select_analysis_model(part, config)
    logger.info("Analyze %s (%s) with %s", os.path.basename(path), part.mime_type, model)

    contents = [
        types.Part.from_text(text=prompt),
        types.Part.from_bytes(data=base64.b64decode(part.data), mime_type=part.mime_type),
    ]
    try:
        response = await client.aio.models.generate_content(model=model, contents=contents)
    except Exception as exc:
        logger.error("Media analysis failed: %s", exc)
        raise wrap_provider_error(exc, "Media analysis failed") from exc
    return (getattr(response, "text", None) or "").strip()
