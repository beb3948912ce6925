from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from google import genai

from .config import PodcastConfig
from .errors import PreprocessError
from .text import normalize_newlines, read_transcript

PREPROCESS_PROMPT = """Translate the following interview transcript into {language} and separate the speakers. There are two people. Prefix every line spoken by the first person with "Speaker 1: " and every line spoken by the second person with "Speaker 2: ". Reply with the translated, speaker-separated transcript only.

--- transcript start ---
{transcript}
--- transcript end ---"""

DEFAULT_LANGUAGE = "Japanese"


class TranscriptPreprocessor:
    """Turns a raw interview transcript into a two-speaker script."""

    def __init__(
        self,
        config: PodcastConfig,
        client: Optional[Any] = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.model = config.text_model
        self.language = language
        self._client = client if client is not None else genai.Client(
            api_key=config.api_key
        )

    def process(self, transcript: str) -> str:
        prompt = PREPROCESS_PROMPT.format(
            language=self.language, transcript=transcript
        )
        try:
            response = self._client.models.generate_content(
                model=self.model, contents=prompt
            )
        except Exception as exc:
            raise PreprocessError(f"model={self.model}: {exc}") from exc
        text = getattr(response, "text", None) or ""
        if not text.strip():
            raise PreprocessError(f"model={self.model}: empty response.")
        return normalize_newlines(text)

    def process_file(self, input_path: Path, output_path: Path) -> str:
        print(f"Reading transcript: {input_path}")
        transcript = read_transcript(input_path)
        processed = self.process(transcript)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(processed, encoding="utf-8")
        print(f"Wrote processed transcript to {output_path}")
        return processed
