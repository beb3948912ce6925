from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .artifacts import require_complete
from .chunker import TextChunk, chunk_transcript
from .config import PodcastConfig
from .errors import IncompleteArtifactSetError
from .merge import AssemblyRequest, AudioAssembler
from .preprocess import TranscriptPreprocessor
from .provider import GeminiSpeechProvider, SpeechProvider
from .scheduler import BatchOutcome, SynthesisScheduler
from .text import processed_path_for, read_transcript

AUDIO_DIR_NAME = "audio_output"


@dataclass
class PipelineResult:
    chunks: List[TextChunk]
    outcomes: List[BatchOutcome] = field(default_factory=list)
    output_path: Optional[Path] = None
    missing: List[Path] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.output_path is not None


def synthesize_and_assemble(
    transcript: str,
    out_dir: Path,
    output_path: Path,
    scheduler: SynthesisScheduler,
    lines_per_chunk: int,
    background_track: Optional[Path] = None,
    assembler: Optional[AudioAssembler] = None,
) -> PipelineResult:
    chunks = chunk_transcript(transcript, lines_per_chunk)
    print(f"Split transcript into {len(chunks)} chunk(s).")
    if not chunks:
        print("Transcript is empty; nothing to synthesize.")
        return PipelineResult(chunks=chunks)

    outcomes = scheduler.run(chunks, out_dir)

    # Assembly only starts once every batch has returned.
    try:
        artifacts = require_complete(len(chunks), out_dir)
    except IncompleteArtifactSetError as exc:
        sys.stderr.write(f"{exc}\nSkipping assembly; no output was written.\n")
        return PipelineResult(chunks=chunks, outcomes=outcomes, missing=exc.missing)

    print("All audio chunks are present. Assembling...")
    assembler = assembler if assembler is not None else AudioAssembler()
    request = AssemblyRequest(
        ordered_artifacts=tuple(artifacts),
        output_path=output_path,
        background_track=background_track,
    )
    final_path = assembler.assemble(request)
    return PipelineResult(chunks=chunks, outcomes=outcomes, output_path=final_path)


def run_podcast(
    input_path: Path,
    config: PodcastConfig,
    output_path: Path,
    out_dir: Optional[Path] = None,
    preprocess: bool = True,
    provider: Optional[SpeechProvider] = None,
    preprocessor: Optional[TranscriptPreprocessor] = None,
    assembler: Optional[AudioAssembler] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineResult:
    if out_dir is None:
        out_dir = input_path.parent / AUDIO_DIR_NAME

    if preprocess:
        if preprocessor is None:
            preprocessor = TranscriptPreprocessor(config)
        transcript = preprocessor.process_file(
            input_path, processed_path_for(input_path)
        )
    else:
        transcript = read_transcript(input_path)

    if provider is None:
        provider = GeminiSpeechProvider(config)
    scheduler = SynthesisScheduler.from_config(provider, config, sleep=sleep)
    return synthesize_and_assemble(
        transcript,
        out_dir=out_dir,
        output_path=output_path,
        scheduler=scheduler,
        lines_per_chunk=config.lines_per_chunk,
        background_track=config.background_track,
        assembler=assembler,
    )
