"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import os
import sys
import threading

from .audio_utils import decode_and_play, encode_pcm, write_wav
from .capture import list_input_devices, list_output_devices, stream_microphone
from .client import Studio
from .config import Config, load_config_or_default, save_config
from .errors import ManiAiError, describe_error
from .logging_utils import setup_logging
from .models import AspectRatio, ChatPersonality, VideoAspectRatio, VideoStage
from .speech import VOICES
from .storage import save_asset
from .transcription import TranscriptionCallbacks


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maniai")
    parser.add_argument("--config", default="maniai_config.yml", help="Config.")
    sub = parser.add_subparsers(dest="command")

    chat_cmd = sub.add_parser("chat")
    chat_cmd.add_argument(
        "--personality",
        choices=[p.value for p in ChatPersonality],
        default=ChatPersonality.STANDARD.value,
        help="Chat personality.",
    )

    analyze_cmd = sub.add_parser("analyze")
    analyze_cmd.add_argument("prompt", help="Question about the media.")
    analyze_cmd.add_argument("path", help="Image or video file.")

    image_cmd = sub.add_parser("image")
    image_cmd.add_argument("prompt", help="Image description.")
    image_cmd.add_argument(
        "--aspect",
        choices=[r.value for r in AspectRatio],
        default=AspectRatio.SQUARE.value,
        help="Aspect ratio.",
    )

    video_cmd = sub.add_parser("video")
    video_cmd.add_argument("prompt", nargs="?", help="Video description.")
    video_cmd.add_argument("--image", help="Starting image file.")
    video_cmd.add_argument(
        "--aspect",
        choices=[r.value for r in VideoAspectRatio],
        default=VideoAspectRatio.WIDE.value,
        help="Aspect ratio.",
    )

    speak_cmd = sub.add_parser("speak")
    speak_cmd.add_argument("text", help="Text to speak.")
    speak_cmd.add_argument("--voice", choices=VOICES, default="Human", help="Voice.")
    speak_cmd.add_argument("--out", help="Write a WAV file instead of playing.")

    transcribe_cmd = sub.add_parser("transcribe")
    transcribe_cmd.add_argument("--device", help="Preferred input device substring.")
    transcribe_cmd.add_argument(
        "--seconds", type=float, help="Stop after this many seconds. Omit for manual stop."
    )

    devices_cmd = sub.add_parser("devices")
    devices_cmd.add_argument(
        "--output", action="store_true", help="List output devices instead of inputs."
    )

    sub.add_parser("config")
    return parser


async def _chat(studio: Studio, personality: str) -> int:
    print("Type a message. /clear resets the conversation, /quit exits.")
    while True:
        try:
            text = await asyncio.to_thread(input, "you> ")
        except EOFError:
            return 0
        text = text.strip()
        if not text:
            continue
        if text == "/quit":
            return 0
        if text == "/clear":
            studio.clear_chat(personality)
            print("Conversation cleared.")
            continue
        try:
            reply = await studio.chat(text, personality)
        except ManiAiError as exc:
            print(f"Failed to get response from Mani Ai: {describe_error(exc)}")
            continue
        print(f"mani> {reply}")


async def _video(studio: Studio, args: argparse.Namespace) -> int:
    print("Generating video. This can take a few minutes...")
    async for event in studio.generate_video(
        prompt=args.prompt, aspect_ratio=args.aspect, image=args.image
    ):
        if event.stage is VideoStage.FETCHING:
            print("Fetching video...")
        elif event.stage is VideoStage.COMPLETED:
            print(f"Video ready: {event.url}")
    return 0


async def _speak(studio: Studio, args: argparse.Namespace) -> int:
    audio = await studio.synthesize_speech(args.text, args.voice)
    rate = studio.config.audio.output_sample_rate_hz
    if args.out:
        write_wav(args.out, base64.b64decode(audio), sample_rate_hz=rate)
        print(f"Wrote {args.out}")
        return 0
    await decode_and_play(audio, device=studio.config.audio.output_device, sample_rate_hz=rate)
    return 0


async def _transcribe(studio: Studio, args: argparse.Namespace) -> int:
    loop = asyncio.get_running_loop()
    finished = asyncio.Event()
    failed = {"error": None}
    stop_capture = threading.Event()
    audio_cfg = studio.config.audio

    def _on_update(text: str, is_final: bool) -> None:
        if is_final:
            print(f"\r{text}")
        else:
            print(f"\r... {text}", end="", flush=True)

    def _on_error(exc: Exception) -> None:
        failed["error"] = exc
        finished.set()

    def _on_close() -> None:
        finished.set()

    started = await studio.start_transcription(
        TranscriptionCallbacks(on_update=_on_update, on_error=_on_error, on_close=_on_close),
        max_duration=args.seconds,
    )
    if not started:
        if failed["error"] is not None:
            print(f"Error: {describe_error(failed['error'])}")
        return 1

    def _on_window(samples) -> None:
        chunk = encode_pcm(samples, sample_rate_hz=audio_cfg.input_sample_rate_hz)
        loop.call_soon_threadsafe(studio.send_audio, chunk)

    capture = asyncio.ensure_future(
        asyncio.to_thread(
            stream_microphone,
            _on_window,
            stop_capture,
            audio_cfg.input_sample_rate_hz,
            audio_cfg.window_size,
            args.device or audio_cfg.input_device,
        )
    )
    waiter = asyncio.ensure_future(finished.wait())
    print("Listening... press Ctrl+C to stop.")
    try:
        await asyncio.wait([capture, waiter], return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        stop_capture.set()
        await studio.stop_transcription()
        await asyncio.wait([capture])

    if capture.exception() is not None:
        print(f"Could not start microphone: {capture.exception()}")
        return 1
    if failed["error"] is not None:
        print(f"Error: {describe_error(failed['error'])}")
        return 1
    return 0


async def _dispatch(studio: Studio, args: argparse.Namespace) -> int:
    try:
        if args.command == "chat":
            return await _chat(studio, args.personality)
        if args.command == "analyze":
            print(await studio.analyze(args.prompt, args.path))
            return 0
        if args.command == "image":
            data_uri = await studio.generate_image(args.prompt, args.aspect)
            payload = data_uri.split(",", 1)[1]
            path = save_asset(studio.config.output_dir, "image", "jpg", base64.b64decode(payload))
            print(f"Wrote {path}")
            return 0
        if args.command == "video":
            return await _video(studio, args)
        if args.command == "speak":
            return await _speak(studio, args)
        if args.command == "transcribe":
            return await _transcribe(studio, args)
    except ManiAiError as exc:
        print(f"Error: {describe_error(exc)}", file=sys.stderr)
        return 1
    finally:
        await studio.aclose()
    return 0


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "config":
        if os.path.exists(args.config):
            print(f"{args.config} already exists.")
            return 1
        save_config(args.config, Config())
        print(f"Wrote {args.config}")
        return 0

    if args.command == "devices":
        devices = list_output_devices() if args.output else list_input_devices()
        for device in devices:
            name = device.get("name", "Unknown")
            index = device.get("index", "?")
            if args.output:
                line = f"[{index}] {name} (outputs: {device.get('max_output_channels', 0)})"
            else:
                line = f"[{index}] {name} (inputs: {device.get('max_input_channels', 0)})"
            print(line)
        return 0

    if not args.command:
        parser.print_help()
        return 0

    config = load_config_or_default(args.config)
    setup_logging(
        log_dir=config.log_dir,
        level=logging.DEBUG if config.debug_logging else logging.INFO,
    )
    studio = Studio(config)
    try:
        return asyncio.run(_dispatch(studio, args))
    except KeyboardInterrupt:
        print("\nStopped.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
