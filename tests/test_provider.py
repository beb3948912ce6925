import base64
import wave
from pathlib import Path
from types import SimpleNamespace

import pytest

from podcaster import provider
from podcaster.config import PodcastConfig
from podcaster.errors import ChunkSynthesisError


def _response(data) -> SimpleNamespace:
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data))
    content = SimpleNamespace(parts=[part])
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


class FakeModels:
    def __init__(self, response) -> None:
        self.response = response
        self.requests = []

    def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _provider(response) -> provider.GeminiSpeechProvider:
    client = SimpleNamespace(models=FakeModels(response))
    config = PodcastConfig(api_key="test-key", speaker_voices=("puck", None))
    return provider.GeminiSpeechProvider(config, client=client)


def test_extract_audio_payload_bytes() -> None:
    assert provider.extract_audio_payload(_response(b"\x01\x02")) == b"\x01\x02"


def test_extract_audio_payload_base64_text() -> None:
    encoded = base64.b64encode(b"\x03\x04").decode("ascii")
    assert provider.extract_audio_payload(_response(encoded)) == b"\x03\x04"


@pytest.mark.parametrize(
    "response",
    [
        _response(None),
        _response(b""),
        SimpleNamespace(candidates=[]),
        SimpleNamespace(candidates=None),
        SimpleNamespace(candidates=[SimpleNamespace(content=None)]),
    ],
)
def test_extract_audio_payload_missing(response) -> None:
    assert provider.extract_audio_payload(response) is None


def test_synthesize_sends_text_and_voices() -> None:
    tts = _provider(_response(b"\x00\x01"))

    assert tts.synthesize("Speaker 1: hello") == b"\x00\x01"

    request = tts._client.models.requests[0]
    assert request["model"] == "gemini-2.5-flash-preview-tts"
    prompt = request["contents"][0].parts[0].text
    assert "Speaker 1: hello" in prompt
    speakers = request["config"].speech_config.multi_speaker_voice_config.speaker_voice_configs
    assert [(s.speaker, s.voice_config.prebuilt_voice_config.voice_name) for s in speakers] == [
        ("Speaker 1", "Puck"),
        ("Speaker 2", "Leda"),
    ]
    assert request["config"].response_modalities == ["AUDIO"]


def test_synthesize_without_payload_is_an_error() -> None:
    tts = _provider(_response(None))
    with pytest.raises(ChunkSynthesisError, match="Chunk 3: No audio payload"):
        provider.synthesize_chunk(tts, 2, "hello")


def test_synthesize_chunk_wraps_provider_errors() -> None:
    tts = _provider(RuntimeError("429 RESOURCE_EXHAUSTED"))
    with pytest.raises(ChunkSynthesisError) as excinfo:
        provider.synthesize_chunk(tts, 0, "hello")
    assert excinfo.value.index == 0
    assert "RESOURCE_EXHAUSTED" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_write_wav_is_atomic(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "chunk_1.wav"
    provider.write_wav(path, b"\x00\x00" * 24_000)
    with wave.open(str(path), "rb") as wf:
        assert (wf.getnchannels(), wf.getsampwidth(), wf.getframerate()) == (1, 2, 24_000)
        assert wf.getnframes() == 24_000
    assert not path.with_suffix(".wav.tmp").exists()


def test_write_silence(tmp_path: Path) -> None:
    path = tmp_path / "silence.wav"
    provider.write_silence(path, 250)
    with wave.open(str(path), "rb") as wf:
        assert wf.getnframes() == 6_000
        assert set(wf.readframes(6_000)) == {0}
