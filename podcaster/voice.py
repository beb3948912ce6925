from __future__ import annotations

from typing import Optional, Sequence, Tuple

# Prebuilt Gemini TTS voices.
BUILTIN_VOICES = (
    "Achernar",
    "Achird",
    "Algenib",
    "Algieba",
    "Alnilam",
    "Aoede",
    "Autonoe",
    "Callirrhoe",
    "Charon",
    "Despina",
    "Enceladus",
    "Erinome",
    "Fenrir",
    "Gacrux",
    "Iapetus",
    "Kore",
    "Laomedeia",
    "Leda",
    "Orus",
    "Puck",
    "Pulcherrima",
    "Rasalgethi",
    "Sadachbia",
    "Sadaltager",
    "Schedar",
    "Sulafat",
    "Umbriel",
    "Vindemiatrix",
    "Zephyr",
    "Zubenelgenubi",
)
DEFAULT_SPEAKER_VOICES = ("Charon", "Leda")
SPEAKER_LABELS = ("Speaker 1", "Speaker 2")

_BY_LOWER = {name.lower(): name for name in BUILTIN_VOICES}


def resolve_voice(voice: Optional[str], default: str) -> str:
    if not voice:
        voice = default

    voice = voice.strip()
    if not voice:
        voice = default

    lowered = voice.lower()
    if lowered == "default":
        lowered = default.lower()

    if lowered in _BY_LOWER:
        return _BY_LOWER[lowered]

    choices = ", ".join(BUILTIN_VOICES)
    raise ValueError(f"Unknown voice: {voice}. Use one of: {choices}.")


def resolve_speaker_voices(
    voices: Sequence[Optional[str]] = (),
) -> Tuple[str, str]:
    given = list(voices)[: len(DEFAULT_SPEAKER_VOICES)]
    given += [None] * (len(DEFAULT_SPEAKER_VOICES) - len(given))
    first, second = (
        resolve_voice(voice, default)
        for voice, default in zip(given, DEFAULT_SPEAKER_VOICES)
    )
    return first, second


def speaker_voice_map(voices: Sequence[str]) -> dict[str, str]:
    return dict(zip(SPEAKER_LABELS, voices))
