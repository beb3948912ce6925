from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

DEFAULT_LINES_PER_CHUNK = 20


@dataclass(frozen=True)
class TextChunk:
    index: int
    content: str

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()


def split_lines(text: str) -> List[str]:
    if not text:
        return []
    return text.split("\n")


def chunk_transcript(
    text: str, lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK
) -> List[TextChunk]:
    """
    Split a transcript into consecutive groups of ``lines_per_chunk`` lines.

    Joining the chunk contents with "\\n" gives back the input unchanged, so
    empty lines (including a trailing one) belong to whichever chunk they
    fall in.
    """
    if lines_per_chunk < 1:
        raise ValueError(f"lines_per_chunk must be >= 1 (got {lines_per_chunk})")
    lines = split_lines(text)
    chunks: List[TextChunk] = []
    for start in range(0, len(lines), lines_per_chunk):
        content = "\n".join(lines[start : start + lines_per_chunk])
        chunks.append(TextChunk(index=len(chunks), content=content))
    return chunks


def expected_chunk_count(text: str, lines_per_chunk: int) -> int:
    lines = split_lines(text)
    return math.ceil(len(lines) / lines_per_chunk) if lines else 0
