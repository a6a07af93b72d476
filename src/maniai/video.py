"""Video generation: submit, poll, fetch."""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, Union

import httpx
from google.genai import types

from .config import Config
from .errors import (
    AssetFetchError,
    GenerationFailedError,
    InvalidRequestError,
    VideoTimeoutError,
    classify_operation_error,
    wrap_provider_error,
)
from .media import encode_media_file
from .models import GenerationJob, VideoAspectRatio, VideoEvent, VideoStage
from .storage import save_asset

logger = logging.getLogger("maniai")


def _error_message(error: Any) -> Optional[str]:
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(getattr(error, "message", None) or error)


def _result_uri(operation: Any) -> Optional[str]:
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) or []
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None)


class VideoGenerator:
    """Runs one video job per ``generate`` call.

    ``generate`` is an async generator: it yields a FETCHING event once the
    job completes and a COMPLETED event carrying a ``file://`` URL for the
    downloaded asset. Setting ``cancel_event`` stops polling and ends the
    generator quietly.
    """

    def __init__(
        self,
        client_factory: Callable[[], Any],
        api_key_factory: Callable[[], str],
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_factory = client_factory
        self._api_key_factory = api_key_factory
        self._config = config
        self._transport = transport
        self._clock = clock

    async def generate(
        self,
        prompt: Optional[str] = None,
        aspect_ratio: Union[str, VideoAspectRatio] = VideoAspectRatio.WIDE,
        image: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[VideoEvent]:
        prompt = (prompt or "").strip() or None
        if not prompt and not image:
            raise InvalidRequestError("A prompt or an image is required to generate a video.")
        try:
            ratio = VideoAspectRatio(aspect_ratio)
        except ValueError as exc:
            raise InvalidRequestError(
                f"Unsupported video aspect ratio {aspect_ratio!r}. Choose 16:9 or 9:16."
            ) from exc

        settings = self._config.video
        payload: dict = {
            "model": self._config.models.video,
            "config": types.GenerateVideosConfig(
                number_of_videos=1,
                resolution=settings.resolution,
                aspect_ratio=ratio.value,
            ),
        }
        if prompt:
            payload["prompt"] = prompt
        if image:
            part = await encode_media_file(image, max_bytes=self._config.max_media_bytes)
            payload["image"] = types.Image(
                image_bytes=base64.b64decode(part.data), mime_type=part.mime_type
            )

        client = self._client_factory()
        api_key = self._api_key_factory()

        try:
            operation = await client.aio.models.generate_videos(**payload)
        except Exception as exc:
            logger.error("Video submission failed: %s", exc)
            raise wrap_provider_error(exc, "Video generation failed") from exc

        job = GenerationJob(operation=operation, done=bool(getattr(operation, "done", False)))
        logger.info("Video job submitted (%s)", getattr(operation, "name", "unnamed"))

        started = self._clock()
        while not job.done:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Video job cancelled after %s polls", job.polls)
                return
            if job.polls >= settings.max_poll_attempts:
                raise VideoTimeoutError(
                    f"Video generation did not finish after {job.polls} status checks."
                )
            if self._clock() - started >= settings.max_poll_seconds:
                raise VideoTimeoutError(
                    f"Video generation did not finish within {settings.max_poll_seconds:g} seconds."
                )
            if await self._wait(settings.poll_interval_seconds, cancel_event):
                logger.info("Video job cancelled after %s polls", job.polls)
                return
            try:
                job.operation = await client.aio.operations.get(job.operation)
            except Exception as exc:
                logger.error("Error polling video operation: %s", exc)
                raise wrap_provider_error(exc, "Video status check failed") from exc
            job.polls += 1
            job.done = bool(getattr(job.operation, "done", False))
            logger.debug("Video job poll %s done=%s", job.polls, job.done)

        raw_error = getattr(job.operation, "error", None)
        job.error = _error_message(raw_error)
        if job.error:
            raise GenerationFailedError(
                f"Video generation failed: {job.error}", kind=classify_operation_error(raw_error)
            )
        job.uri = _result_uri(job.operation)
        if not job.uri:
            raise GenerationFailedError("Video generation failed to produce a download link.")
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Video job cancelled before download")
            return

        yield VideoEvent(stage=VideoStage.FETCHING)
        data = await self._fetch(job.uri, api_key)
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Video job cancelled during download")
            return
        path = save_asset(self._config.output_dir, "video", "mp4", data)
        logger.info("Video saved: %s", path)
        yield VideoEvent(stage=VideoStage.COMPLETED, url=Path(path).as_uri())

    async def _wait(self, seconds: float, cancel_event: Optional[asyncio.Event]) -> bool:
        if cancel_event is None:
            await asyncio.sleep(seconds)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _fetch(self, uri: str, api_key: str) -> bytes:
        timeout = httpx.Timeout(connect=10.0, read=300.0, write=30.0, pool=10.0)
        try:
            async with httpx.AsyncClient(
                timeout=timeout, follow_redirects=True, transport=self._transport
            ) as http:
                resp = await http.get(httpx.URL(uri).copy_add_param("key", api_key))
        except httpx.HTTPError as exc:
            raise AssetFetchError(f"Failed to fetch video: {exc}") from exc

        if resp.status_code >= 400:
            raise AssetFetchError(
                f"Failed to fetch video: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        return resp.content
