from __future__ import annotations

from pathlib import Path
from typing import Sequence


class PodcasterError(Exception):
    """Base class for pipeline errors."""


class ConfigError(PodcasterError, ValueError):
    pass


class ChunkSynthesisError(PodcasterError):
    """The provider failed or returned no audio for one chunk."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(f"Chunk {index + 1}: {message}")
        self.index = index


class IncompleteArtifactSetError(PodcasterError):
    def __init__(self, missing: Sequence[Path]) -> None:
        self.missing = list(missing)
        sample = ", ".join(path.name for path in self.missing[:5])
        more = "" if len(self.missing) <= 5 else f" (+{len(self.missing) - 5} more)"
        super().__init__(
            f"Missing {len(self.missing)} audio chunk(s): {sample}{more}"
        )


class AssemblyError(PodcasterError):
    """Concatenation, probing or mixing failed; the run cannot produce output."""


class PreprocessError(PodcasterError):
    pass
