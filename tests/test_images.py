import base64
from types import SimpleNamespace

import pytest

from maniai.config import Config
from maniai.errors import GenerationFailedError, InvalidRequestError
from maniai.images import generate_image


class FakeModels:
    def __init__(self, images):
        self.images = images
        self.calls = []

    async def generate_images(self, model, prompt, config):
        self.calls.append((model, prompt, config))
        return SimpleNamespace(generated_images=self.images)


def _client(models):
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.mark.asyncio
async def test_generate_image_returns_jpeg_data_uri():
    image = SimpleNamespace(image=SimpleNamespace(image_bytes=b"\xff\xd8jpeg"))
    models = FakeModels([image])

    uri = await generate_image(_client(models), "a lighthouse", "16:9", Config())

    assert uri == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()
    model, prompt, config = models.calls[0]
    assert model == "imagen-4.0-generate-001"
    assert prompt == "a lighthouse"
    assert config.number_of_images == 1
    assert config.aspect_ratio == "16:9"
    assert config.output_mime_type == "image/jpeg"


@pytest.mark.asyncio
async def test_invalid_aspect_ratio_rejected_before_dispatch():
    models = FakeModels([])
    with pytest.raises(InvalidRequestError):
        await generate_image(_client(models), "a lighthouse", "2:1", Config())
    assert models.calls == []


@pytest.mark.asyncio
async def test_zero_images_is_an_explicit_failure():
    with pytest.raises(GenerationFailedError):
        await generate_image(_client(FakeModels([])), "a lighthouse", "1:1", Config())
