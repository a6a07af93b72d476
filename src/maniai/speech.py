"""Text to speech."""

from __future__ import annotations

import base64
import logging
from typing import Any, Union

from google.genai import types

from .config import Config
from .errors import GenerationFailedError, InvalidRequestError, wrap_provider_error

logger = logging.getLogger("maniai")

VOICES = ["Human", "Kore", "Puck", "Charon", "Prabhas"]

# Display names that map onto provider voices.
VOICE_ALIASES = {
    "Prabhas": "Fenrir",
    "Human": "Zephyr",
}


def resolve_voice(voice_name: str) -> str:
    return VOICE_ALIASES.get(voice_name, voice_name)


def _as_base64(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        return base64.b64encode(data).decode("ascii")
    return data


async def generate_speech(client: Any, text: str, voice_name: str, config: Config) -> str:
    """Synthesize speech and return base64 16-bit PCM at the output sample rate."""
    if not text or not text.strip():
        raise InvalidRequestError("Text is required to generate audio.")
    voice = resolve_voice(voice_name)
    logger.info("Generate speech with voice %s (%s)", voice, voice_name)

    try:
        response = await client.aio.models.generate_content(
            model=config.models.tts,
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=[types.Modality.AUDIO],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice)
                    )
                ),
            ),
        )
    except Exception as exc:
        logger.error("Speech generation failed: %s", exc)
        raise wrap_provider_error(exc, "Speech generation failed") from exc

    try:
        data = response.candidates[0].content.parts[0].inline_data.data
    except (AttributeError, IndexError, TypeError):
        data = None
    if not data:
        raise GenerationFailedError("Failed to generate audio data.")
    return _as_base64(data)
