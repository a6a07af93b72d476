"""Image generation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Union

from google.genai import types

from .config import Config
from .errors import GenerationFailedError, InvalidRequestError, wrap_provider_error
from .models import AspectRatio

logger = logging.getLogger("maniai")

IMAGE_MIME_TYPE = "image/jpeg"


def coerce_aspect_ratio(value: Union[str, AspectRatio]) -> AspectRatio:
    try:
        return AspectRatio(value)
    except ValueError as exc:
        allowed = ", ".join(r.value for r in AspectRatio)
        raise InvalidRequestError(
            f"Unsupported aspect ratio {value!r}. Choose one of: {allowed}."
        ) from exc


def to_data_uri(image_bytes: Union[bytes, str], mime_type: str = IMAGE_MIME_TYPE) -> str:
    if isinstance(image_bytes, bytes):
        payload = base64.b64encode(image_bytes).decode("ascii")
    else:
        payload = image_bytes
    return f"data:{mime_type};base64,{payload}"


async def generate_image(
    client: Any,
    prompt: str,
    aspect_ratio: Union[str, AspectRatio],
    config: Config,
) -> str:
    if not prompt or not prompt.strip():
        raise InvalidRequestError("A prompt is required to generate an image.")
    ratio = coerce_aspect_ratio(aspect_ratio)
    logger.info("Generate image (%s) with %s", ratio.value, config.models.image)

    try:
        response = await client.aio.models.generate_images(
            model=config.models.image,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type=IMAGE_MIME_TYPE,
                aspect_ratio=ratio.value,
            ),
        )
    except Exception as exc:
        logger.error("Image generation failed: %s", exc)
        raise wrap_provider_error(exc, "Image generation failed") from exc

    generated = getattr(response, "generated_images", None) or []
    if not generated or generated[0].image is None or not generated[0].image.image_bytes:
        raise GenerationFailedError("Image generation returned no images.")
    return to_data_uri(generated[0].image.image_bytes)
