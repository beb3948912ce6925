from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional, TextIO


def normalize_newlines(s: str) -> str:
    return s.replace("\r\n", "\n").replace("\r", "\n")


def read_transcript(path: Path) -> str:
    s = path.read_text(encoding="utf-8", errors="strict")
    s = s.lstrip("\ufeff")
    return normalize_newlines(s)


def read_stdin_transcript(stream: Optional[TextIO] = None) -> str:
    stream = stream if stream is not None else sys.stdin
    return normalize_newlines(stream.read())


def save_stdin_transcript(text: str, base_dir: Path) -> Path:
    base_dir.mkdir(parents=True, exist_ok=True)
    path = base_dir / f"stdin_transcript_{int(time.time() * 1000)}.txt"
    path.write_text(text, encoding="utf-8")
    return path


def processed_path_for(input_path: Path) -> Path:
    stem = input_path.stem or "transcript"
    return input_path.with_name(f"{stem}.processed.txt")

