"""Audio helpers."""

from __future__ import annotations

import asyncio
import base64
import wave
from typing import Optional, Sequence, Union

import numpy as np

from .models import PcmChunk

INPUT_SAMPLE_RATE_HZ = 16000
OUTPUT_SAMPLE_RATE_HZ = 24000

PCM_DTYPE = np.dtype("<i2")


def pcm_mime_type(sample_rate_hz: int = INPUT_SAMPLE_RATE_HZ) -> str:
    return f"audio/pcm;rate={sample_rate_hz}"


def encode_pcm(
    samples: Union[Sequence[float], np.ndarray],
    sample_rate_hz: int = INPUT_SAMPLE_RATE_HZ,
) -> PcmChunk:
    """Convert float samples in [-1, 1] to little-endian 16-bit PCM."""
    data = np.asarray(samples, dtype=np.float32)
    if data.ndim > 1:
        data = data.reshape(-1)
    clipped = np.clip(data, -1.0, 1.0)
    scaled = np.clip(np.round(clipped * 32768.0), -32768, 32767).astype(PCM_DTYPE)
    return PcmChunk(data=scaled.tobytes(), mime_type=pcm_mime_type(sample_rate_hz))


def decode_pcm(data: bytes) -> np.ndarray:
    if len(data) % 2:
        raise ValueError("PCM payload must contain whole 16-bit samples.")
    ints = np.frombuffer(data, dtype=PCM_DTYPE)
    return ints.astype(np.float32) / 32768.0


def decode_base64_pcm(base64_audio: str) -> np.ndarray:
    return decode_pcm(base64.b64decode(base64_audio))


def _play_blocking(samples: np.ndarray, sample_rate_hz: int, device: Optional[str]) -> None:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for playback.") from exc

    sd.play(samples, samplerate=sample_rate_hz, device=device)
    sd.wait()


async def decode_and_play(
    base64_audio: str,
    device: Optional[str] = None,
    sample_rate_hz: int = OUTPUT_SAMPLE_RATE_HZ,
) -> int:
    """Decode base64 PCM and play it; returns the frame count once playback ends."""
    samples = decode_base64_pcm(base64_audio)
    if samples.size == 0:
        return 0
    await asyncio.to_thread(_play_blocking, samples, sample_rate_hz, device)
    return int(samples.shape[0])


def write_wav(path: str, data: bytes, sample_rate_hz: int = OUTPUT_SAMPLE_RATE_HZ) -> None:
    with wave.open(path, "wb") as handle:
        handle.setnchannels(1)
        handle.setsampwidth(2)
        handle.setframerate(sample_rate_hz)
        handle.writeframes(data)
