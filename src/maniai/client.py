"""Provider client and the orchestration context used by front-ends."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Optional, Union

from google import genai

from .config import Config, resolve_api_key
from .chat import ChatSessionCache
from .images import generate_image
from .media import analyze_media
from .models import AspectRatio, ChatPersonality, PcmChunk, SendStatus, VideoAspectRatio, VideoEvent
from .speech import generate_speech
from .transcription import TranscriptionCallbacks, TranscriptionSessionManager
from .video import VideoGenerator

logger = logging.getLogger("maniai")


def create_client(config: Config) -> genai.Client:
    return genai.Client(api_key=resolve_api_key(config))


class Studio:
    """Owns every piece of cross-call state: the provider client, the chat
    cache, and the live transcription session.

    Front-ends hold one instance and call one method per user action.
    """

    def __init__(
        self,
        config: Config,
        client_factory: Optional[Callable[[Config], Any]] = None,
        video_generator: Optional[VideoGenerator] = None,
    ) -> None:
        self.config = config
        self._client_factory = client_factory or create_client
        self._client: Any = None
        self.chats = ChatSessionCache(self.client, config)
        self.transcription = TranscriptionSessionManager(self.client, config)
        self.videos = video_generator or VideoGenerator(
            self.client, lambda: resolve_api_key(config), config
        )

    def client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(self.config)
            logger.info("Provider client created")
        return self._client

    async def chat(self, text: str, personality: Union[str, ChatPersonality] = ChatPersonality.STANDARD) -> str:
        return await self.chats.send_turn(personality, text)

    def clear_chat(self, personality: Union[str, ChatPersonality]) -> None:
        self.chats.invalidate(personality)

    async def analyze(self, prompt: str, path: str) -> str:
        return await analyze_media(self.client(), prompt, path, self.config)

    async def generate_image(self, prompt: str, aspect_ratio: Union[str, AspectRatio] = AspectRatio.SQUARE) -> str:
        return await generate_image(self.client(), prompt, aspect_ratio, self.config)

    def generate_video(
        self,
        prompt: Optional[str] = None,
        aspect_ratio: Union[str, VideoAspectRatio] = VideoAspectRatio.WIDE,
        image: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[VideoEvent]:
        return self.videos.generate(
            prompt=prompt, aspect_ratio=aspect_ratio, image=image, cancel_event=cancel_event
        )

    async def synthesize_speech(self, text: str, voice: str = "Human") -> str:
        return await generate_speech(self.client(), text, voice, self.config)

    async def start_transcription(
        self,
        callbacks: TranscriptionCallbacks,
        max_duration: Optional[float] = None,
    ) -> bool:
        return await self.transcription.start(callbacks, max_duration=max_duration)

    def send_audio(self, chunk: PcmChunk) -> SendStatus:
        return self.transcription.send_audio(chunk)

    async def stop_transcription(self) -> None:
        await self.transcription.stop()

    async def aclose(self) -> None:
        await self.transcription.stop()
        self.chats.clear()
