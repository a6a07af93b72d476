import argparse
import os
import sys
import threading
import time

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from maniai.audio_utils import encode_pcm
from maniai.capture import find_input_device, stream_microphone


def _describe_device(info: dict) -> None:
    print(f"Input device: {info.get('name', '')}")
    print(f"Index: {info.get('index', '')}")
    print(f"Max input channels: {info.get('max_input_channels', 0)}")
    print(f"Default sample rate: {info.get('default_samplerate', '')}")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--device", help="Device name substring.")
    parser.add_argument("--seconds", type=float, default=6.0, help="Test duration.")
    parser.add_argument("--rate", type=int, default=16000, help="Sample rate.")
    parser.add_argument("--window", type=int, default=4096, help="Samples per window.")
    args = parser.parse_args()

    _describe_device(find_input_device(args.device))

    levels = {"rms": None, "peak": None, "bytes": 0}
    lock = threading.Lock()
    stop = threading.Event()

    def _on_window(samples) -> None:
        chunk = encode_pcm(samples, sample_rate_hz=args.rate)
        with lock:
            levels["rms"] = float(np.sqrt(np.mean(samples**2)))
            levels["peak"] = float(np.max(np.abs(samples)))
            levels["bytes"] += len(chunk.data)

    worker = threading.Thread(
        target=stream_microphone,
        args=(_on_window, stop, args.rate, args.window, args.device),
        daemon=True,
    )
    worker.start()
    print("Streaming... press Ctrl+C to stop early.")

    end = time.time() + args.seconds
    try:
        while time.time() < end:
            with lock:
                rms, peak, sent = levels["rms"], levels["peak"], levels["bytes"]
            if rms is None:
                print("No samples yet...")
            else:
                print(f"RMS {rms:.3f} | Peak {peak:.3f} | PCM bytes {sent}")
            time.sleep(0.5)
    finally:
        stop.set()
        worker.join(timeout=2)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
