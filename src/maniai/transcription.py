"""Live transcription over a duplex streaming session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from google.genai import types
from websockets.exceptions import ConnectionClosedOK

from .config import Config
from .errors import ConfigurationError, wrap_provider_error
from .models import PcmChunk, SendStatus, SessionState, TranscriptEvent

logger = logging.getLogger("maniai")


@dataclass
class TranscriptionCallbacks:
    on_update: Callable[[str, bool], None]
    on_error: Callable[[Exception], None]
    on_close: Callable[[], None]


class TranscriptionSessionManager:
    """Owns at most one live transcription session.

    ``start`` opens the connection in a background runner task. Audio passed
    to ``send_audio`` is queued in call order and drained once the connection
    is open. The session ends on ``stop``, on a remote close, on an error, or
    when ``max_duration`` elapses; exactly one of ``on_close``/``on_error``
    fires per session.
    """

    def __init__(self, client_factory: Callable[[], Any], config: Config) -> None:
        self._client_factory = client_factory
        self._config = config
        self._state = SessionState.IDLE
        self._buffer = ""
        self._session: Any = None
        self._session_future: Optional[asyncio.Future] = None
        self._queue: Optional[asyncio.Queue] = None
        self._runner: Optional[asyncio.Task] = None
        self._sender: Optional[asyncio.Task] = None
        self._callbacks: Optional[TranscriptionCallbacks] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not SessionState.IDLE

    @property
    def current_utterance(self) -> str:
        return self._buffer

    async def start(
        self,
        callbacks: TranscriptionCallbacks,
        max_duration: Optional[float] = None,
    ) -> bool:
        if self._state is not SessionState.IDLE:
            logger.warning("Transcription session already in progress.")
            return False
        try:
            client = self._client_factory()
        except ConfigurationError as exc:
            logger.error("Transcription unavailable: %s", exc)
            callbacks.on_error(exc)
            return False

        loop = asyncio.get_running_loop()
        self._state = SessionState.OPENING
        self._buffer = ""
        self._callbacks = callbacks
        self._session_future = loop.create_future()
        self._queue = asyncio.Queue()
        self._sender = loop.create_task(self._pump_audio(self._session_future, self._queue))
        self._runner = loop.create_task(self._run(client, callbacks, max_duration))
        return True

    async def wait_until_open(self, timeout: Optional[float] = None) -> bool:
        future = self._session_future
        if future is None:
            return False
        await asyncio.wait([future], timeout=timeout)
        return future.done() and not future.cancelled()

    def send_audio(self, chunk: PcmChunk) -> SendStatus:
        if self._queue is None or self._state in (SessionState.IDLE, SessionState.CLOSING):
            logger.error("Cannot send audio, transcription session not started.")
            return SendStatus.DROPPED
        self._queue.put_nowait(chunk)
        if self._state is SessionState.OPENING:
            return SendStatus.QUEUED
        return SendStatus.SENT

    async def stop(self) -> None:
        if self._state is SessionState.IDLE:
            return
        self._state = SessionState.CLOSING
        runner = self._runner
        try:
            if self._session is not None:
                await self._session.close()
        except Exception as exc:
            logger.error("Error while closing transcription session: %s", exc)
        finally:
            if runner is not None and runner is not asyncio.current_task():
                if not runner.done():
                    runner.cancel()
                await asyncio.wait([runner])
            if self._runner is runner:
                # The runner never got to run its own cleanup.
                callbacks = self._callbacks
                self._reset()
                if callbacks is not None:
                    self._notify(callbacks, None)

    def handle_message(self, message: Any) -> List[TranscriptEvent]:
        """Turn one server message into transcript events.

        Interim text replaces the current utterance; a turn-complete marker
        flushes it as final. Messages carrying neither are ignored.
        """
        server_content = getattr(message, "server_content", None)
        if server_content is None:
            return []
        events: List[TranscriptEvent] = []
        transcription = getattr(server_content, "input_transcription", None)
        text = getattr(transcription, "text", None) if transcription is not None else None
        if text:
            self._buffer = text
            events.append(TranscriptEvent(text=text, is_final=False))
        if getattr(server_content, "turn_complete", False) and self._buffer:
            events.append(TranscriptEvent(text=self._buffer, is_final=True))
            self._buffer = ""
        return events

    async def _run(
        self,
        client: Any,
        callbacks: TranscriptionCallbacks,
        max_duration: Optional[float],
    ) -> None:
        error: Optional[Exception] = None
        try:
            await asyncio.wait_for(self._stream(client, callbacks), timeout=max_duration)
        except asyncio.TimeoutError:
            logger.info("Transcription session reached its %ss limit", max_duration)
        except asyncio.CancelledError:
            logger.info("Transcription session cancelled")
            raise
        except ConnectionClosedOK:
            logger.info("Transcription session closed by remote")
        except Exception as exc:
            if self._state is SessionState.CLOSING:
                logger.debug("Transcription session ended while closing: %s", exc)
            else:
                logger.error("Transcription session error: %s", exc)
                error = wrap_provider_error(exc, "Transcription session error")
        finally:
            if self._runner is asyncio.current_task():
                self._reset()
                self._notify(callbacks, error)

    async def _stream(self, client: Any, callbacks: TranscriptionCallbacks) -> None:
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            input_audio_transcription=types.AudioTranscriptionConfig(),
        )
        async with client.aio.live.connect(model=self._config.models.live, config=config) as session:
            self._session = session
            if self._state is SessionState.OPENING:
                self._state = SessionState.OPEN
            if self._session_future is not None and not self._session_future.done():
                self._session_future.set_result(session)
            logger.info("Transcription session opened.")

            while True:
                received = False
                async for message in session.receive():
                    received = True
                    for event in self.handle_message(message):
                        callbacks.on_update(event.text, event.is_final)
                if not received:
                    logger.info("Transcription session closed.")
                    return

    async def _pump_audio(self, session_future: asyncio.Future, queue: asyncio.Queue) -> None:
        session = await session_future
        while True:
            chunk = await queue.get()
            try:
                await session.send_realtime_input(
                    audio=types.Blob(data=chunk.data, mime_type=chunk.mime_type)
                )
            except Exception as exc:
                logger.error("Failed to send audio data: %s", exc)

    def _notify(self, callbacks: TranscriptionCallbacks, error: Optional[Exception]) -> None:
        try:
            if error is not None:
                callbacks.on_error(error)
            else:
                callbacks.on_close()
        except Exception:
            logger.exception("Transcription callback failed")

    def _reset(self) -> None:
        if self._sender is not None and not self._sender.done():
            self._sender.cancel()
        if self._session_future is not None and not self._session_future.done():
            self._session_future.cancel()
        self._state = SessionState.IDLE
        self._buffer = ""
        self._session = None
        self._session_future = None
        self._queue = None
        self._runner = None
        self._sender = None
        self._callbacks = None
