"""Chat session cache keyed by personality."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from google.genai import types

from .config import Config
from .errors import wrap_provider_error
from .models import ChatPersonality

logger = logging.getLogger("maniai")


@dataclass
class PersonalityProfile:
    model: str
    thinking_budget: Optional[int] = None


def build_profile(personality: ChatPersonality, config: Config) -> PersonalityProfile:
    if personality is ChatPersonality.FAST:
        return PersonalityProfile(model=config.models.chat_fast)
    if personality is ChatPersonality.CREATIVE:
        return PersonalityProfile(
            model=config.models.chat_creative,
            thinking_budget=config.models.creative_thinking_budget,
        )
    return PersonalityProfile(model=config.models.chat_standard)


class ChatSessionCache:
    """One provider chat per personality, created lazily and reused across turns.

    Turns on the same personality are serialized; a failed turn evicts the
    session so the next turn starts from a clean context.
    """

    def __init__(self, client_factory: Callable[[], Any], config: Config) -> None:
        self._client_factory = client_factory
        self._config = config
        self._sessions: Dict[ChatPersonality, Any] = {}
        self._locks: Dict[ChatPersonality, asyncio.Lock] = {}

    def __contains__(self, personality: Union[str, ChatPersonality]) -> bool:
        return ChatPersonality(personality) in self._sessions

    def get_or_create(self, personality: Union[str, ChatPersonality]) -> Any:
        key = ChatPersonality(personality)
        session = self._sessions.get(key)
        if session is not None:
            return session

        profile = build_profile(key, self._config)
        kwargs: Dict[str, Any] = {"system_instruction": self._config.chat.system_instruction}
        if profile.thinking_budget is not None:
            kwargs["thinking_config"] = types.ThinkingConfig(
                thinking_budget=profile.thinking_budget
            )
        chat_config = types.GenerateContentConfig(**kwargs)
        client = self._client_factory()
        session = client.aio.chats.create(model=profile.model, config=chat_config)
        self._sessions[key] = session
        logger.info("Chat session created (%s, %s)", key.value, profile.model)
        return session

    def invalidate(self, personality: Union[str, ChatPersonality]) -> None:
        key = ChatPersonality(personality)
        if self._sessions.pop(key, None) is not None:
            logger.info("Chat session cleared (%s)", key.value)

    def clear(self) -> None:
        for key in list(self._sessions):
            self.invalidate(key)

    def _lock_for(self, key: ChatPersonality) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def send_turn(self, personality: Union[str, ChatPersonality], text: str) -> str:
        key = ChatPersonality(personality)
        async with self._lock_for(key):
            session = self.get_or_create(key)
            try:
                response = await session.send_message(text)
            except Exception as exc:
                self.invalidate(key)
                logger.error("Chat turn failed (%s): %s", key.value, exc)
                raise wrap_provider_error(
                    exc, "Failed to communicate with the Mani Ai service"
                ) from exc
            return (getattr(response, "text", None) or "").strip()
