from pathlib import Path

import pytest

from podcaster import config as config_util
from podcaster.config import PodcastConfig
from podcaster.errors import ConfigError


def test_from_env_requires_api_key() -> None:
    with pytest.raises(ConfigError, match="GOOGLE_GENERATIVE_AI_API_KEY"):
        PodcastConfig.from_env({})


def test_from_env_defaults() -> None:
    cfg = PodcastConfig.from_env({"GOOGLE_GENERATIVE_AI_API_KEY": "k"})
    assert cfg.api_key == "k"
    assert cfg.tts_model == config_util.DEFAULT_TTS_MODEL
    assert cfg.text_model == config_util.DEFAULT_TEXT_MODEL
    assert cfg.speaker_voices == ("Charon", "Leda")
    assert cfg.background_track is None
    assert (cfg.lines_per_chunk, cfg.batch_size, cfg.concurrency) == (20, 10, 10)
    assert cfg.batch_pause == 60.0


def test_from_env_reads_models_voices_and_bgm(tmp_path: Path) -> None:
    bgm = tmp_path / "bed.mp3"
    bgm.write_bytes(b"id3")
    cfg = PodcastConfig.from_env(
        {
            "GOOGLE_GENERATIVE_AI_API_KEY": "k",
            "GOOGLE_GENAI_TTS_MODEL": "tts-x",
            "GOOGLE_GENAI_TEXT_MODEL": "text-y",
            "VOICE_SPEAKER_1": "puck",
            "VOICE_SPEAKER_2": "kore",
            "BGM_PATH": str(bgm),
        }
    )
    assert (cfg.tts_model, cfg.text_model) == ("tts-x", "text-y")
    assert cfg.speaker_voices == ("Puck", "Kore")
    assert cfg.background_track == bgm


def test_from_env_overrides_win(tmp_path: Path) -> None:
    bgm = tmp_path / "other.mp3"
    bgm.write_bytes(b"id3")
    cfg = PodcastConfig.from_env(
        {"GOOGLE_GENERATIVE_AI_API_KEY": "k", "BGM_PATH": str(tmp_path / "missing.mp3")},
        background_track=bgm,
        batch_size=3,
        batch_pause=None,
    )
    assert cfg.background_track == bgm
    assert cfg.batch_size == 3
    assert cfg.batch_pause == 60.0


def test_missing_background_track_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Background track not found"):
        PodcastConfig(api_key="k", background_track=tmp_path / "missing.mp3")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"lines_per_chunk": 0},
        {"batch_size": 0},
        {"concurrency": -1},
        {"batch_pause": -0.5},
        {"speaker_voices": ("Nobody", "Leda")},
        {"tts_model": ""},
    ],
)
def test_invalid_values(kwargs) -> None:
    with pytest.raises(ConfigError):
        PodcastConfig(api_key="k", **kwargs)
