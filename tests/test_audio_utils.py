import base64
import wave

import numpy as np
import pytest

import maniai.audio_utils as audio_utils
from maniai.audio_utils import decode_and_play, decode_pcm, encode_pcm, write_wav


def test_encode_pcm_clamps_and_packs_little_endian():
    chunk = encode_pcm([0.0, 2.0, -2.0, 0.5])
    assert chunk.mime_type == "audio/pcm;rate=16000"
    values = np.frombuffer(chunk.data, dtype="<i2").tolist()
    assert values == [0, 32767, -32768, 16384]
    assert chunk.data[2:4] == b"\xff\x7f"


def test_pcm_roundtrip_within_one_quantization_step():
    samples = np.linspace(-1.0, 1.0, 101, dtype=np.float32)
    decoded = decode_pcm(encode_pcm(samples).data)
    assert decoded.dtype == np.float32
    assert np.max(np.abs(decoded - samples)) <= 1.0 / 32768.0 + 1e-7


def test_decode_pcm_rejects_partial_sample():
    with pytest.raises(ValueError):
        decode_pcm(b"\x00\x01\x02")


@pytest.mark.asyncio
async def test_decode_and_play_uses_output_rate(monkeypatch):
    played = {}

    def _fake_play(samples, sample_rate_hz, device):
        played["frames"] = samples.shape[0]
        played["rate"] = sample_rate_hz
        played["device"] = device

    monkeypatch.setattr(audio_utils, "_play_blocking", _fake_play)
    payload = base64.b64encode(np.array([0, 1000, -1000], dtype="<i2").tobytes()).decode()

    frames = await decode_and_play(payload, device="Speakers")

    assert frames == 3
    assert played == {"frames": 3, "rate": 24000, "device": "Speakers"}


@pytest.mark.asyncio
async def test_decode_and_play_skips_empty_audio(monkeypatch):
    monkeypatch.setattr(
        audio_utils, "_play_blocking", lambda *a: pytest.fail("nothing to play")
    )
    assert await decode_and_play("") == 0


def test_write_wav_is_mono_16_bit(tmp_path):
    path = tmp_path / "speech.wav"
    write_wav(str(path), np.zeros(240, dtype="<i2").tobytes())
    with wave.open(str(path), "rb") as handle:
        assert handle.getnchannels() == 1
        assert handle.getsampwidth() == 2
        assert handle.getframerate() == 24000
        assert handle.getnframes() == 240
