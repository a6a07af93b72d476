"""Configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError


load_dotenv()

API_KEY_FALLBACKS = ("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY")

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are Mani Ai, a helpful and friendly AI assistant. "
    "Your responses should be informative and easy to understand."
)


@dataclass
class ModelsConfig:
    chat_standard: str = "gemini-2.5-flash"
    chat_fast: str = "gemini-flash-lite-latest"
    chat_creative: str = "gemini-2.5-pro"
    creative_thinking_budget: int = 32768
    analysis_image: str = "gemini-2.5-flash"
    analysis_video: str = "gemini-2.5-pro"
    image: str = "imagen-4.0-generate-001"
    video: str = "veo-3.1-fast-generate-preview"
    tts: str = "gemini-2.5-flash-preview-tts"
    live: str = "gemini-2.5-flash-native-audio-preview-09-2025"


@dataclass
class VideoConfig:
    poll_interval_seconds: float = 10.0
    max_poll_attempts: int = 90
    max_poll_seconds: float = 900.0
    resolution: str = "720p"


@dataclass
class AudioConfig:
    input_sample_rate_hz: int = 16000
    output_sample_rate_hz: int = 24000
    window_size: int = 4096
    input_device: Optional[str] = None
    output_device: Optional[str] = None


@dataclass
class ChatConfig:
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION


@dataclass
class Config:
    output_dir: str = "output"
    log_dir: str = "logs"
    debug_logging: bool = False
    api_key_env: str = "GEMINI_API_KEY"
    max_media_bytes: int = 20 * 1024 * 1024
    models: ModelsConfig = field(default_factory=ModelsConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)


def resolve_api_key(config: Config) -> str:
    """Return the provider credential from the environment.

    The configured variable is checked first, then the usual fallbacks.
    """
    names = [config.api_key_env] + [
        name for name in API_KEY_FALLBACKS if name != config.api_key_env
    ]
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    raise ConfigurationError(
        f"{config.api_key_env} is not set. Please add it to your environment or .env file."
    )


def load_config(path: str) -> Config:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    models = ModelsConfig(**data.get("models", {}))
    video = VideoConfig(**data.get("video", {}))
    audio = AudioConfig(**data.get("audio", {}))
    chat = ChatConfig(**data.get("chat", {}))

    return Config(
        output_dir=data.get("output_dir", "output"),
        log_dir=data.get("log_dir", "logs"),
        debug_logging=bool(data.get("debug_logging", False)),
        api_key_env=data.get("api_key_env", "GEMINI_API_KEY"),
        max_media_bytes=int(data.get("max_media_bytes", 20 * 1024 * 1024)),
        models=models,
        video=video,
        audio=audio,
        chat=chat,
    )


def load_config_or_default(path: str) -> Config:
    if os.path.exists(path):
        return load_config(path)
    return Config()


def save_config(path: str, config: Config) -> None:
    data = {
        "output_dir": config.output_dir,
        "log_dir": config.log_dir,
        "debug_logging": config.debug_logging,
        "api_key_env": config.api_key_env,
        "max_media_bytes": config.max_media_bytes,
        "models": {
            "chat_standard": config.models.chat_standard,
            "chat_fast": config.models.chat_fast,
            "chat_creative": config.models.chat_creative,
            "creative_thinking_budget": config.models.creative_thinking_budget,
            "analysis_image": config.models.analysis_image,
            "analysis_video": config.models.analysis_video,
            "image": config.models.image,
            "video": config.models.video,
            "tts": config.models.tts,
            "live": config.models.live,
        },
        "video": {
            "poll_interval_seconds": config.video.poll_interval_seconds,
            "max_poll_attempts": config.video.max_poll_attempts,
            "max_poll_seconds": config.video.max_poll_seconds,
            "resolution": config.video.resolution,
        },
        "audio": {
            "input_sample_rate_hz": config.audio.input_sample_rate_hz,
            "output_sample_rate_hz": config.audio.output_sample_rate_hz,
            "window_size": config.audio.window_size,
            "input_device": config.audio.input_device,
            "output_device": config.audio.output_device,
        },
        "chat": {
            "system_instruction": config.chat.system_instruction,
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
