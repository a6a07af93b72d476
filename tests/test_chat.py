import asyncio
from types import SimpleNamespace

import pytest

from maniai.chat import ChatSessionCache
from maniai.config import Config
from maniai.errors import ConfigurationError, QuotaExceededError
from maniai.models import ChatPersonality


class FakeChat:
    def __init__(self, log, fail=False):
        self.log = log
        self.fail = fail
        self.turns = []

    async def send_message(self, text):
        self.log.append(f"start:{text}")
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("RESOURCE_EXHAUSTED: quota")
        self.turns.append(text)
        self.log.append(f"end:{text}")
        return SimpleNamespace(text=f" echo {text} ")


class FakeChats:
    def __init__(self, fail=False):
        self.created = []
        self.log = []
        self.fail = fail

    def create(self, model, config):
        chat = FakeChat(self.log, fail=self.fail)
        self.created.append((model, config, chat))
        return chat


def _cache(fail=False):
    chats = FakeChats(fail=fail)
    client = SimpleNamespace(aio=SimpleNamespace(chats=chats))
    return ChatSessionCache(lambda: client, Config()), chats


def test_get_or_create_reuses_session_until_invalidated():
    cache, chats = _cache()
    for personality in ChatPersonality:
        first = cache.get_or_create(personality)
        assert cache.get_or_create(personality) is first
        cache.invalidate(personality)
        assert cache.get_or_create(personality) is not first


def test_invalidate_without_session_is_safe():
    cache, _chats = _cache()
    cache.invalidate("creative")
    assert "creative" not in cache


def test_personality_profiles():
    cache, chats = _cache()
    cache.get_or_create("standard")
    cache.get_or_create("fast")
    cache.get_or_create("creative")

    models = [model for model, _config, _chat in chats.created]
    assert models == ["gemini-2.5-flash", "gemini-flash-lite-latest", "gemini-2.5-pro"]

    standard_config = chats.created[0][1]
    creative_config = chats.created[2][1]
    assert standard_config.thinking_config is None
    assert creative_config.thinking_config.thinking_budget == 32768
    assert "Mani Ai" in creative_config.system_instruction


@pytest.mark.asyncio
async def test_send_turn_returns_reply_text():
    cache, chats = _cache()
    reply = await cache.send_turn(ChatPersonality.FAST, "hi")
    assert reply == "echo hi"
    assert chats.created[0][2].turns == ["hi"]


@pytest.mark.asyncio
async def test_failed_turn_evicts_session():
    cache, chats = _cache(fail=True)
    session = cache.get_or_create("standard")

    with pytest.raises(QuotaExceededError):
        await cache.send_turn("standard", "hello")

    assert "standard" not in cache
    assert cache.get_or_create("standard") is not session


@pytest.mark.asyncio
async def test_turns_on_same_personality_are_serialized():
    cache, chats = _cache()
    await asyncio.gather(
        cache.send_turn("standard", "a"),
        cache.send_turn("standard", "b"),
    )
    assert chats.log == ["start:a", "end:a", "start:b", "end:b"]
    assert len(chats.created) == 1


@pytest.mark.asyncio
async def test_missing_credential_surfaces_immediately():
    def _factory():
        raise ConfigurationError("GEMINI_API_KEY is not set.")

    cache = ChatSessionCache(_factory, Config())
    with pytest.raises(ConfigurationError):
        await cache.send_turn("standard", "hello")
