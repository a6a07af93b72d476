import base64
from types import SimpleNamespace

import pytest

from maniai.config import Config
from maniai.errors import MediaReadError, PermissionDeniedError
from maniai.media import analyze_media, encode_media_file


class FakeModels:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.error:
            raise self.error
        return SimpleNamespace(text="  a cat on a sofa  ")


def _client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.mark.asyncio
async def test_encode_media_file_returns_base64_and_mime(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG fake")

    part = await encode_media_file(str(path))

    assert part.mime_type == "image/png"
    assert base64.b64decode(part.data) == b"\x89PNG fake"
    assert not part.is_video


@pytest.mark.asyncio
async def test_encode_media_file_missing(tmp_path):
    with pytest.raises(MediaReadError):
        await encode_media_file(str(tmp_path / "nope.jpg"))


@pytest.mark.asyncio
async def test_encode_media_file_too_large(tmp_path):
    path = tmp_path / "big.jpg"
    path.write_bytes(b"x" * 2048)
    with pytest.raises(MediaReadError, match="too large"):
        await encode_media_file(str(path), max_bytes=1024)


@pytest.mark.asyncio
async def test_encode_media_file_unknown_type(tmp_path):
    path = tmp_path / "blob.unknownext"
    path.write_bytes(b"data")
    with pytest.raises(MediaReadError):
        await encode_media_file(str(path))


@pytest.mark.asyncio
async def test_analyze_uses_video_model_for_video(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    models = FakeModels()

    text = await analyze_media(_client(models), "What happens?", str(path), Config())

    assert text == "a cat on a sofa"
    model, contents = models.calls[0]
    assert model == "gemini-2.5-pro"
    assert contents[0].text == "What happens?"
    assert contents[1].inline_data.mime_type == "video/mp4"


@pytest.mark.asyncio
async def test_analyze_uses_flash_for_images(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff")
    models = FakeModels()

    await analyze_media(_client(models), "Describe", str(path), Config())

    assert models.calls[0][0] == "gemini-2.5-flash"


@pytest.mark.asyncio
async def test_read_error_happens_before_any_network_call(tmp_path):
    models = FakeModels()
    with pytest.raises(MediaReadError):
        await analyze_media(_client(models), "Describe", str(tmp_path / "x.jpg"), Config())
    assert models.calls == []


@pytest.mark.asyncio
async def test_provider_error_is_classified(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff")
    models = FakeModels(error=RuntimeError("Requested entity was not found."))

    with pytest.raises(PermissionDeniedError, match="Media analysis failed"):
        await analyze_media(_client(models), "Describe", str(path), Config())
