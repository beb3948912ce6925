from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .chunker import DEFAULT_LINES_PER_CHUNK
from .errors import ConfigError
from .voice import DEFAULT_SPEAKER_VOICES, resolve_speaker_voices

DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash-lite"
DEFAULT_BATCH_SIZE = 10
DEFAULT_CONCURRENCY = 10
DEFAULT_BATCH_PAUSE = 60.0

ENV_API_KEY = "GOOGLE_GENERATIVE_AI_API_KEY"
ENV_TTS_MODEL = "GOOGLE_GENAI_TTS_MODEL"
ENV_TEXT_MODEL = "GOOGLE_GENAI_TEXT_MODEL"
ENV_VOICE_1 = "VOICE_SPEAKER_1"
ENV_VOICE_2 = "VOICE_SPEAKER_2"
ENV_BGM_PATH = "BGM_PATH"


@dataclass(frozen=True)
class PodcastConfig:
    """
    Everything a run needs, resolved once at startup.

    Build it with ``from_env`` (the CLI loads a ``.env`` file first) or
    directly in code/tests, then hand it to the provider, preprocessor and
    scheduler constructors.
    """

    api_key: str
    tts_model: str = DEFAULT_TTS_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    speaker_voices: Tuple[str, str] = DEFAULT_SPEAKER_VOICES
    background_track: Optional[Path] = None
    lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    batch_pause: float = DEFAULT_BATCH_PAUSE

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigError(f"{ENV_API_KEY} is not set.")
        if not self.tts_model:
            raise ConfigError("TTS model name must not be empty.")
        if not self.text_model:
            raise ConfigError("Text model name must not be empty.")
        for name in ("lines_per_chunk", "batch_size", "concurrency"):
            value = getattr(self, name)
            if int(value) < 1:
                raise ConfigError(f"{name} must be >= 1 (got {value}).")
        if self.batch_pause < 0:
            raise ConfigError(f"batch_pause must be >= 0 (got {self.batch_pause}).")
        try:
            voices = resolve_speaker_voices(self.speaker_voices)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        object.__setattr__(self, "speaker_voices", voices)
        if self.background_track is not None:
            track = Path(self.background_track)
            if not track.is_file():
                raise ConfigError(f"Background track not found: {track}")
            object.__setattr__(self, "background_track", track)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "PodcastConfig":
        env = os.environ if environ is None else environ
        bgm = (env.get(ENV_BGM_PATH) or "").strip()
        values = {
            "api_key": (env.get(ENV_API_KEY) or "").strip(),
            "tts_model": (env.get(ENV_TTS_MODEL) or "").strip() or DEFAULT_TTS_MODEL,
            "text_model": (env.get(ENV_TEXT_MODEL) or "").strip()
            or DEFAULT_TEXT_MODEL,
            "speaker_voices": (env.get(ENV_VOICE_1), env.get(ENV_VOICE_2)),
            "background_track": Path(bgm) if bgm else None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
