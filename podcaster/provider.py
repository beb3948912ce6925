from __future__ import annotations

import base64
import wave
from pathlib import Path
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types

from .config import PodcastConfig
from .errors import ChunkSynthesisError
from .voice import speaker_voice_map

SAMPLE_RATE = 24_000
CHANNELS = 1
SAMPLE_WIDTH = 2

SPEECH_PROMPT = """Read the following text aloud in a natural, easy-to-follow podcast style.

--- text start ---
{text}
--- text end ---"""


class SpeechProvider(Protocol):
    sample_rate: int

    def synthesize(self, text: str) -> bytes:
        """Return raw mono 16-bit PCM for ``text``."""


def build_speech_config(voices) -> types.SpeechConfig:
    return types.SpeechConfig(
        multi_speaker_voice_config=types.MultiSpeakerVoiceConfig(
            speaker_voice_configs=[
                types.SpeakerVoiceConfig(
                    speaker=speaker,
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(
                            voice_name=voice
                        )
                    ),
                )
                for speaker, voice in speaker_voice_map(voices).items()
            ]
        )
    )


def extract_audio_payload(response: Any) -> Optional[bytes]:
    """
    Pull the inline audio out of a generate_content response.

    The SDK hands back decoded bytes; older payloads may still carry the
    base64 text, so both are accepted.
    """
    try:
        data = response.candidates[0].content.parts[0].inline_data.data
    except (AttributeError, IndexError, TypeError):
        return None
    if not data:
        return None
    if isinstance(data, str):
        return base64.b64decode(data)
    return bytes(data)


class GeminiSpeechProvider:
    sample_rate = SAMPLE_RATE

    def __init__(self, config: PodcastConfig, client: Optional[Any] = None) -> None:
        self.model = config.tts_model
        self.voices = config.speaker_voices
        self._client = client if client is not None else genai.Client(
            api_key=config.api_key
        )
        self._generation_config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=build_speech_config(self.voices),
        )

    def synthesize(self, text: str) -> bytes:
        response = self._client.models.generate_content(
            model=self.model,
            contents=[
                types.Content(
                    role="user",
                    parts=[types.Part.from_text(text=SPEECH_PROMPT.format(text=text))],
                )
            ],
            config=self._generation_config,
        )
        audio = extract_audio_payload(response)
        if audio is None:
            raise ValueError(f"No audio payload returned by {self.model}.")
        return audio


def synthesize_chunk(provider: SpeechProvider, index: int, text: str) -> bytes:
    try:
        return provider.synthesize(text)
    except ChunkSynthesisError:
        raise
    except Exception as exc:
        raise ChunkSynthesisError(index, str(exc) or type(exc).__name__) from exc


# ----------------------------
# WAV IO utilities
# ----------------------------

def write_wav(
    path: Path,
    pcm: bytes,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
    sample_width: int = SAMPLE_WIDTH,
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")

    with wave.open(str(tmp), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)

    tmp.replace(path)


def write_silence(path: Path, duration_ms: int, sample_rate: int = SAMPLE_RATE) -> None:
    frames = int(round(sample_rate * duration_ms / 1000.0))
    write_wav(path, b"\x00" * (frames * CHANNELS * SAMPLE_WIDTH), sample_rate)
