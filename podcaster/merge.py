from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .artifacts import chunk_number, list_artifacts, require_complete
from .errors import AssemblyError

SPEECH_TRACK_NAME = "temp_speech.wav"
CONCAT_LIST_NAME = "concat.txt"

LOUDNORM_I = -16
LOUDNORM_TP = -1.5
LOUDNORM_LRA = 11
BGM_VOLUME = 0.18
BGM_FADE_IN_SECONDS = 2
DUCK_THRESHOLD = 0.08
DUCK_RATIO = 8
DUCK_ATTACK_MS = 5
DUCK_RELEASE_MS = 250
DUCK_MAKEUP = 1
FADE_OUT_SECONDS = 3
OUTPUT_SAMPLE_RATE = 48_000
OUTPUT_CODEC = "aac"
OUTPUT_BITRATE = "192k"


class AssemblyState(str, Enum):
    IDLE = "idle"
    CHUNKS_VERIFIED = "chunks_verified"
    SPEECH_CONCATENATED = "speech_concatenated"
    DURATION_PROBED = "duration_probed"
    MIXED = "mixed"
    FINALIZED = "finalized"
    CLEANED_UP = "cleaned_up"
    FAILED = "failed"


@dataclass(frozen=True)
class AssemblyRequest:
    ordered_artifacts: Tuple[Path, ...]
    output_path: Path
    background_track: Optional[Path] = None

    def __post_init__(self) -> None:
        artifacts = tuple(sorted(self.ordered_artifacts, key=chunk_number))
        if not artifacts:
            raise ValueError("Nothing to assemble: no audio chunks given.")
        numbers = [chunk_number(path) for path in artifacts]
        if numbers != list(range(1, len(artifacts) + 1)):
            raise ValueError(
                "Audio chunks must be chunk_1.wav..chunk_N.wav without gaps "
                f"(got {', '.join(path.name for path in artifacts[:5])}...)."
            )
        object.__setattr__(self, "ordered_artifacts", artifacts)


def _require_ffmpeg() -> None:
    if shutil.which("ffmpeg") is None:
        raise AssemblyError("ffmpeg not found on PATH.")


def _require_ffprobe() -> None:
    if shutil.which("ffprobe") is None:
        raise AssemblyError("ffprobe not found on PATH.")


def _stderr_tail(text: Optional[str], lines: int = 5) -> str:
    tail = [line for line in (text or "").strip().splitlines() if line.strip()]
    return "\n".join(tail[-lines:])


def _run_engine(cmd: List[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise AssemblyError(f"Cannot run {cmd[0]}: {exc}") from exc
    if proc.returncode != 0:
        detail = _stderr_tail(proc.stderr)
        message = f"{cmd[0]} exited with status {proc.returncode}"
        raise AssemblyError(f"{message}:\n{detail}" if detail else message)
    return proc


def _build_concat_file(
    segment_paths: Sequence[Path], concat_path: Path, base_dir: Path
) -> None:
    lines = []
    for path in segment_paths:
        rel = path.relative_to(base_dir).as_posix()
        lines.append(f"file '{rel}'")
    concat_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _build_concat_cmd(concat_path: Path, output_path: Path) -> list[str]:
    cmd = ["ffmpeg", "-y", "-hide_banner", "-loglevel", "error"]
    cmd += ["-f", "concat", "-safe", "0", "-i", str(concat_path)]
    cmd += ["-c", "copy", str(output_path)]
    return cmd


def probe_duration(path: Path) -> float:
    _require_ffprobe()
    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    out = _run_engine(cmd).stdout.strip()
    try:
        duration = float(out)
    except ValueError:
        raise AssemblyError(
            f"Could not determine the duration of {path} (ffprobe said {out!r})."
        ) from None
    if duration < 0:
        raise AssemblyError(f"Negative duration reported for {path}: {duration}")
    return duration


def fade_out_start(duration: float) -> float:
    return max(float(duration) - FADE_OUT_SECONDS, 0.0)


def build_mix_filter(fade_start: float) -> str:
    """
    Filter graph for input 0 (speech) and input 1 (looped background bed).

    Speech is loudness-normalized and split into a mix copy and a sidechain
    key; the bed is attenuated, faded in and ducked under the key, then both
    are mixed and faded out at ``fade_start``.
    """
    return ";".join(
        [
            f"[0:a]loudnorm=I={LOUDNORM_I}:TP={LOUDNORM_TP}:LRA={LOUDNORM_LRA},"
            "asplit=2[speech][key]",
            f"[1:a]volume={BGM_VOLUME},"
            f"afade=t=in:st=0:d={BGM_FADE_IN_SECONDS}[bgm]",
            f"[bgm][key]sidechaincompress=threshold={DUCK_THRESHOLD}:"
            f"ratio={DUCK_RATIO}:attack={DUCK_ATTACK_MS}:"
            f"release={DUCK_RELEASE_MS}:makeup={DUCK_MAKEUP}[ducked]",
            "[ducked][speech]amix=inputs=2:duration=shortest:"
            "normalize=0:dropout_transition=0,"
            f"afade=t=out:st={fade_start:.3f}:d={FADE_OUT_SECONDS}[out]",
        ]
    )


def _build_mix_cmd(
    speech_path: Path,
    background_path: Path,
    output_path: Path,
    fade_start: float,
) -> list[str]:
    cmd = ["ffmpeg", "-y", "-hide_banner", "-loglevel", "error"]
    cmd += ["-i", str(speech_path)]
    cmd += ["-stream_loop", "-1", "-i", str(background_path)]
    cmd += ["-filter_complex", build_mix_filter(fade_start), "-map", "[out]"]
    cmd += ["-ar", str(OUTPUT_SAMPLE_RATE)]
    cmd += ["-c:a", OUTPUT_CODEC, "-b:a", OUTPUT_BITRATE, str(output_path)]
    return cmd


def _remove_files(paths: Iterable[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            sys.stderr.write(f"Could not remove {path}: {exc}\n")


class AudioAssembler:
    """
    Builds the final program from verified chunk artifacts.

    The artifacts (and the intermediate speech track) are deleted only after
    the output has been written; on failure everything is left in place.
    """

    def __init__(self) -> None:
        self.state = AssemblyState.IDLE

    def assemble(self, request: AssemblyRequest) -> Path:
        try:
            return self._assemble(request)
        except AssemblyError:
            self.state = AssemblyState.FAILED
            raise
        except OSError as exc:
            self.state = AssemblyState.FAILED
            raise AssemblyError(str(exc)) from exc

    def _assemble(self, request: AssemblyRequest) -> Path:
        _require_ffmpeg()
        self.state = AssemblyState.CHUNKS_VERIFIED

        artifacts = list(request.ordered_artifacts)
        work_dir = artifacts[0].parent
        speech_path = work_dir / SPEECH_TRACK_NAME
        concat_path = work_dir / CONCAT_LIST_NAME
        output_path = request.output_path

        print(f"Concatenating {len(artifacts)} audio chunk(s)...")
        _build_concat_file(artifacts, concat_path, base_dir=work_dir)
        _run_engine(_build_concat_cmd(concat_path, speech_path), cwd=work_dir)
        self.state = AssemblyState.SPEECH_CONCATENATED

        output_path.parent.mkdir(parents=True, exist_ok=True)
        if request.background_track is None:
            shutil.move(str(speech_path), str(output_path))
        else:
            duration = probe_duration(speech_path)
            self.state = AssemblyState.DURATION_PROBED
            fade_start = fade_out_start(duration)
            print(
                f"Mixing {duration:.1f}s of speech with {request.background_track} "
                f"(fade-out at {fade_start:.1f}s)..."
            )
            cmd = _build_mix_cmd(
                speech_path, request.background_track, output_path, fade_start
            )
            _run_engine(cmd)
            self.state = AssemblyState.MIXED
        self.state = AssemblyState.FINALIZED

        _remove_files([*artifacts, speech_path, concat_path])
        self.state = AssemblyState.CLEANED_UP
        print(f"Wrote {output_path}")
        return output_path


def merge_directory(
    out_dir: Path,
    output_path: Path,
    background_track: Optional[Path] = None,
    total: Optional[int] = None,
) -> Path:
    """Assemble whatever chunk_N.wav files a directory holds (N = 1..total)."""
    if total is None:
        present = list_artifacts(out_dir)
        total = chunk_number(present[-1]) if present else 0
    if total <= 0:
        raise AssemblyError(f"No audio chunks found in {out_dir}")
    artifacts = require_complete(total, out_dir)
    request = AssemblyRequest(
        ordered_artifacts=tuple(artifacts),
        output_path=output_path,
        background_track=background_track,
    )
    return AudioAssembler().assemble(request)
