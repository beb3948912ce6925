from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .errors import IncompleteArtifactSetError

_ARTIFACT_RE = re.compile(r"^chunk_(\d+)\.wav$")


def artifact_name(index: int) -> str:
    if index < 0:
        raise ValueError(f"Chunk index must be >= 0 (got {index})")
    return f"chunk_{index + 1}.wav"


def artifact_path(out_dir: Path, index: int) -> Path:
    return out_dir / artifact_name(index)


def chunk_number(path: Path) -> int:
    """1-based number embedded in an artifact filename, or -1."""
    match = _ARTIFACT_RE.match(path.name)
    return int(match.group(1)) if match else -1


def list_artifacts(out_dir: Path) -> List[Path]:
    if not out_dir.exists():
        return []
    paths = [p for p in out_dir.iterdir() if p.is_file() and chunk_number(p) > 0]
    return sorted(paths, key=chunk_number)


def missing_artifacts(total: int, out_dir: Path) -> List[Path]:
    return [
        path
        for path in (artifact_path(out_dir, idx) for idx in range(total))
        if not path.is_file()
    ]


def verify_artifacts(total: int, out_dir: Path) -> bool:
    return not missing_artifacts(total, out_dir)


def require_complete(total: int, out_dir: Path) -> List[Path]:
    missing = missing_artifacts(total, out_dir)
    if missing:
        raise IncompleteArtifactSetError(missing)
    return [artifact_path(out_dir, idx) for idx in range(total)]
