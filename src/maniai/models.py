"""Data models for Mani Ai."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ChatPersonality(str, Enum):
    STANDARD = "standard"
    FAST = "fast"
    CREATIVE = "creative"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    TALL = "9:16"
    WIDE = "16:9"


class VideoAspectRatio(str, Enum):
    WIDE = "16:9"
    TALL = "9:16"


class VideoStage(str, Enum):
    FETCHING = "fetching"
    COMPLETED = "completed"


class SessionState(str, Enum):
    IDLE = "idle"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class SendStatus(str, Enum):
    SENT = "sent"
    QUEUED = "queued"
    DROPPED = "dropped"


@dataclass
class MediaPart:
    data: str
    mime_type: str

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")


@dataclass
class PcmChunk:
    data: bytes
    mime_type: str


@dataclass
class TranscriptEvent:
    text: str
    is_final: bool


@dataclass
class VideoEvent:
    stage: VideoStage
    url: Optional[str] = None


@dataclass
class GenerationJob:
    operation: Any
    done: bool = False
    error: Optional[str] = None
    uri: Optional[str] = None
    polls: int = 0
