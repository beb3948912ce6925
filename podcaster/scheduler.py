from __future__ import annotations

import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence

from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from .artifacts import artifact_path, chunk_number
from .chunker import TextChunk
from .config import (
    DEFAULT_BATCH_PAUSE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    PodcastConfig,
)
from .errors import ChunkSynthesisError
from .provider import SpeechProvider, synthesize_chunk, write_silence, write_wav

# Placeholder length written for blank chunks.
BLANK_CHUNK_MS = 250


@dataclass(frozen=True)
class SynthesisJob:
    chunk: TextChunk
    output_path: Path

    @classmethod
    def for_chunk(cls, chunk: TextChunk, out_dir: Path) -> "SynthesisJob":
        return cls(chunk=chunk, output_path=artifact_path(out_dir, chunk.index))


@dataclass
class BatchOutcome:
    number: int
    indices: List[int]
    written: List[Path] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    errors: List[ChunkSynthesisError] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


def partition(chunks: Sequence[TextChunk], batch_size: int) -> List[List[TextChunk]]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1 (got {batch_size})")
    return [
        list(chunks[start : start + batch_size])
        for start in range(0, len(chunks), batch_size)
    ]


def run_job(job: SynthesisJob, provider: SpeechProvider) -> bool:
    """
    Synthesize one chunk into its artifact.

    Returns False when the chunk was blank: no provider call is made and a
    short silence stands in for it, so every index still gets a file.
    """
    index = job.chunk.index
    sample_rate = int(getattr(provider, "sample_rate", 0) or 24_000)
    # A file left by an earlier run must not stand in for a failed chunk.
    try:
        job.output_path.unlink(missing_ok=True)
    except OSError as exc:
        raise ChunkSynthesisError(index, f"cannot remove stale {job.output_path}: {exc}") from exc
    if job.chunk.is_blank:
        try:
            write_silence(job.output_path, BLANK_CHUNK_MS, sample_rate=sample_rate)
        except OSError as exc:
            raise ChunkSynthesisError(index, f"cannot write placeholder: {exc}") from exc
        return False

    pcm = synthesize_chunk(provider, index, job.chunk.content)
    if not pcm:
        raise ChunkSynthesisError(index, "provider returned empty audio")
    try:
        write_wav(job.output_path, pcm, sample_rate=sample_rate)
    except OSError as exc:
        raise ChunkSynthesisError(index, f"cannot write {job.output_path}: {exc}") from exc
    return True


class SynthesisScheduler:
    def __init__(
        self,
        provider: SpeechProvider,
        batch_size: int = DEFAULT_BATCH_SIZE,
        concurrency: int = DEFAULT_CONCURRENCY,
        batch_pause: float = DEFAULT_BATCH_PAUSE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1 (got {batch_size})")
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1 (got {concurrency})")
        if batch_pause < 0:
            raise ValueError(f"batch_pause must be >= 0 (got {batch_pause})")
        self.provider = provider
        self.batch_size = batch_size
        self.concurrency = concurrency
        self.batch_pause = batch_pause
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, provider: SpeechProvider, config: PodcastConfig, **kwargs
    ) -> "SynthesisScheduler":
        return cls(
            provider,
            batch_size=config.batch_size,
            concurrency=config.concurrency,
            batch_pause=config.batch_pause,
            **kwargs,
        )

    def run(self, chunks: Sequence[TextChunk], out_dir: Path) -> List[BatchOutcome]:
        out_dir.mkdir(parents=True, exist_ok=True)
        batches = partition(chunks, self.batch_size)
        outcomes: List[BatchOutcome] = []

        progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
        )

        with progress:
            task = progress.add_task("Chunks", total=len(chunks))
            for number, batch in enumerate(batches, start=1):
                first, last = batch[0].number, batch[-1].number
                print(f"Batch {number}/{len(batches)}: chunks {first}-{last}")
                outcome = self._run_batch(number, batch, out_dir, progress, task)
                outcomes.append(outcome)

                if outcome.failed:
                    sys.stderr.write(
                        f"Batch {number} failed ({len(outcome.errors)} of "
                        f"{len(batch)} chunk(s)):\n"
                    )
                    for exc in outcome.errors:
                        sys.stderr.write(f"  {exc}\n")
                else:
                    print(f"Batch {number} done.")

                if number < len(batches):
                    print(
                        f"Waiting {self.batch_pause:g}s for the provider rate limit..."
                    )
                    self._sleep(self.batch_pause)

        print("All batches finished.")
        return outcomes

    def _run_batch(
        self,
        number: int,
        batch: Sequence[TextChunk],
        out_dir: Path,
        progress: Progress,
        task,
    ) -> BatchOutcome:
        jobs = [SynthesisJob.for_chunk(chunk, out_dir) for chunk in batch]
        outcome = BatchOutcome(number=number, indices=[c.index for c in batch])
        workers = max(1, min(len(jobs), self.concurrency))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_map = {
                executor.submit(run_job, job, self.provider): job for job in jobs
            }
            for future in as_completed(future_map):
                job = future_map[future]
                try:
                    synthesized = future.result()
                except ChunkSynthesisError as exc:
                    outcome.errors.append(exc)
                else:
                    if synthesized:
                        outcome.written.append(job.output_path)
                    else:
                        print(f"Chunk {job.chunk.number} is blank; wrote silence.")
                        outcome.skipped.append(job.chunk.index)
                progress.advance(task, 1)

        outcome.errors.sort(key=lambda exc: exc.index)
        outcome.written.sort(key=chunk_number)
        return outcome
