"""Microphone capture utilities."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("maniai")


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [d for d in devices if d.get("max_input_channels", 0) > 0]


def list_output_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [d for d in devices if d.get("max_output_channels", 0) > 0]


def select_preferred_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise RuntimeError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
        logger.warning("Device %r not found, using %s", prefer_name, candidates[0].get("name"))
    return candidates[0]


def find_input_device(prefer_name: Optional[str] = None) -> dict:
    candidates = list_input_devices()
    return select_preferred_device(candidates, prefer_name=prefer_name)


def stream_microphone(
    on_window: Callable[[Any], None],
    stop_event,
    sample_rate_hz: int = 16000,
    window_size: int = 4096,
    device_name: Optional[str] = None,
) -> int:
    """Deliver fixed-size mono float32 windows to ``on_window`` until ``stop_event`` is set.

    Runs on the calling thread; ``on_window`` is invoked from the audio
    thread. Returns the number of frames captured.
    """
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for recording.") from exc

    device = find_input_device(device_name)
    device_index = device.get("index")
    logger.info("Capturing from %s at %s Hz", device.get("name"), sample_rate_hz)

    frames_captured = 0

    def _callback(indata, _frames, _time, status):
        nonlocal frames_captured
        if status:
            logger.debug("Capture status: %s", status)
        frames_captured += _frames
        on_window(indata[:, 0].copy())

    with sd.InputStream(
        samplerate=sample_rate_hz,
        channels=1,
        dtype="float32",
        blocksize=window_size,
        device=device_index,
        callback=_callback,
    ):
        while not stop_event.is_set():
            sd.sleep(100)

    return frames_captured
