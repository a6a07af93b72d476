import argparse
import asyncio
import os
import sys
import time
import wave

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from maniai.audio_utils import encode_pcm
from maniai.client import Studio
from maniai.config import load_config_or_default
from maniai.errors import describe_error
from maniai.transcription import TranscriptionCallbacks


def _read_wav(path: str) -> tuple[np.ndarray, int]:
    with wave.open(path, "rb") as handle:
        if handle.getsampwidth() != 2:
            raise SystemExit("Only 16-bit PCM WAV files are supported.")
        rate = handle.getframerate()
        channels = handle.getnchannels()
        raw = handle.readframes(handle.getnframes())
    samples = np.frombuffer(raw, dtype="<i2").astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    return samples, rate


async def _run(args: argparse.Namespace) -> int:
    samples, rate = _read_wav(args.audio_path)
    studio = Studio(load_config_or_default(args.config))
    done = asyncio.Event()
    state = {"finals": 0, "error": None}

    def _on_update(text: str, is_final: bool) -> None:
        if is_final:
            state["finals"] += 1
            print(f"Final: {text}")

    def _on_error(exc: Exception) -> None:
        state["error"] = exc
        done.set()

    started = time.time()
    ok = await studio.start_transcription(
        TranscriptionCallbacks(on_update=_on_update, on_error=_on_error, on_close=done.set),
        max_duration=args.seconds,
    )
    if not ok:
        print(f"Error: {describe_error(state['error'])}")
        return 1
    await studio.transcription.wait_until_open(timeout=15)

    window = studio.config.audio.window_size
    for offset in range(0, len(samples), window):
        studio.send_audio(encode_pcm(samples[offset : offset + window], sample_rate_hz=rate))
        # Pace roughly in real time.
        await asyncio.sleep(window / rate)

    try:
        await asyncio.wait_for(done.wait(), timeout=args.tail)
    except asyncio.TimeoutError:
        pass
    await studio.aclose()

    print(f"Final utterances: {state['finals']}")
    print(f"Elapsed: {time.time() - started:.2f}s")
    if state["error"] is not None:
        print(f"Error: {describe_error(state['error'])}")
        return 1
    return 0


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("audio_path", help="16-bit PCM WAV file to stream.")
    parser.add_argument("--config", default="maniai_config.yml", help="Config path.")
    parser.add_argument("--seconds", type=float, default=120.0, help="Session limit.")
    parser.add_argument("--tail", type=float, default=5.0, help="Seconds to wait after the last chunk.")
    args = parser.parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
