from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from . import merge as merge_util
from . import pipeline as pipeline_util
from .artifacts import artifact_name
from .chunker import DEFAULT_LINES_PER_CHUNK, chunk_transcript
from .config import (
    DEFAULT_BATCH_PAUSE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    PodcastConfig,
)
from .errors import (
    AssemblyError,
    ConfigError,
    IncompleteArtifactSetError,
    PreprocessError,
)
from .text import read_stdin_transcript, read_transcript, save_stdin_transcript

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_INCOMPLETE = 3


def _default_output(background: Optional[Path]) -> Path:
    name = "podcast.m4a" if background is not None else "podcast.wav"
    return Path.cwd() / name


def _resolve_input(args: argparse.Namespace) -> Optional[Path]:
    if args.stdin:
        print("Reading transcript from stdin (end with Ctrl+D).")
        text = read_stdin_transcript()
        if not text.strip():
            sys.stderr.write("No transcript text received on stdin.\n")
            return None
        path = save_stdin_transcript(text, Path.cwd())
        print(f"Saved stdin transcript to {path}")
        return path

    if not args.input:
        sys.stderr.write("Provide a transcript path or use --stdin.\n")
        return None
    input_path = Path(args.input)
    if not input_path.is_file():
        sys.stderr.write(f"Transcript not found: {input_path}\n")
        return None
    return input_path


def _run(args: argparse.Namespace) -> int:
    input_path = _resolve_input(args)
    if input_path is None:
        return EXIT_USAGE

    try:
        config = PodcastConfig.from_env(
            background_track=Path(args.bgm) if args.bgm else None,
            lines_per_chunk=args.lines_per_chunk,
            batch_size=args.batch_size,
            concurrency=args.concurrency,
            batch_pause=args.batch_pause,
        )
    except ConfigError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return EXIT_USAGE

    if config.background_track is not None:
        print(f"Using background track: {config.background_track}")
    output_path = (
        Path(args.output) if args.output else _default_output(config.background_track)
    )

    try:
        result = pipeline_util.run_podcast(
            input_path=input_path,
            config=config,
            output_path=output_path,
            out_dir=Path(args.out_dir) if args.out_dir else None,
            preprocess=not args.skip_preprocess,
        )
    except PreprocessError as exc:
        sys.stderr.write(f"Preprocessing failed: {exc}\n")
        return EXIT_FAILED
    except AssemblyError as exc:
        sys.stderr.write(f"Assembly failed: {exc}\n")
        return EXIT_FAILED
    except ValueError as exc:
        sys.stderr.write(f"Invalid input: {exc}\n")
        return EXIT_USAGE
    except OSError as exc:
        sys.stderr.write(f"Run failed: {exc}\n")
        return EXIT_FAILED

    if not result.chunks:
        return EXIT_OK
    if not result.completed:
        return EXIT_INCOMPLETE
    print(f"Podcast written to {result.output_path}")
    return EXIT_OK


def _chunk(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.is_file():
        sys.stderr.write(f"Transcript not found: {input_path}\n")
        return EXIT_USAGE
    try:
        chunks = chunk_transcript(read_transcript(input_path), args.lines_per_chunk)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_USAGE

    for chunk in chunks:
        lines = len(chunk.content.split("\n"))
        note = " (blank)" if chunk.is_blank else ""
        print(f"{artifact_name(chunk.index)}\t{lines} line(s){note}")
    print(f"{len(chunks)} chunk(s)")
    return EXIT_OK


def _merge(args: argparse.Namespace) -> int:
    background = Path(args.bgm) if args.bgm else None
    if background is not None and not background.is_file():
        sys.stderr.write(f"Background track not found: {background}\n")
        return EXIT_USAGE
    output_path = Path(args.output) if args.output else _default_output(background)
    try:
        merge_util.merge_directory(
            out_dir=Path(args.dir),
            output_path=output_path,
            background_track=background,
            total=args.total,
        )
    except AssemblyError as exc:
        sys.stderr.write(f"Merge failed: {exc}\n")
        return EXIT_FAILED
    except IncompleteArtifactSetError as exc:
        sys.stderr.write(f"Merge failed: {exc}\n")
        return EXIT_INCOMPLETE
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="podcaster")
    subparsers = parser.add_subparsers(dest="command")

    run = subparsers.add_parser(
        "run", help="Preprocess, synthesize and assemble a transcript"
    )
    run.add_argument("input", nargs="?", help="Path to the transcript (.txt)")
    run.add_argument(
        "--stdin", action="store_true", help="Read the transcript from stdin"
    )
    run.add_argument(
        "--output",
        help="Final audio path (default: ./podcast.m4a, ./podcast.wav without --bgm)",
    )
    run.add_argument(
        "--out-dir",
        help="Directory for per-chunk audio (default: <input dir>/audio_output)",
    )
    run.add_argument("--bgm", help="Background music to loop under the speech")
    run.add_argument(
        "--skip-preprocess",
        action="store_true",
        help="Synthesize the transcript as-is (no translation/speaker split)",
    )
    run.add_argument("--lines-per-chunk", type=int, default=DEFAULT_LINES_PER_CHUNK)
    run.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    run.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY)
    run.add_argument(
        "--batch-pause",
        type=float,
        default=DEFAULT_BATCH_PAUSE,
        help=f"Seconds to wait between batches (default: {DEFAULT_BATCH_PAUSE:g})",
    )
    run.set_defaults(func=_run)

    chunk = subparsers.add_parser("chunk", help="Show how a transcript is chunked")
    chunk.add_argument("input", help="Path to the transcript (.txt)")
    chunk.add_argument("--lines-per-chunk", type=int, default=DEFAULT_LINES_PER_CHUNK)
    chunk.set_defaults(func=_chunk)

    merge = subparsers.add_parser(
        "merge", help="Assemble existing chunk_N.wav files into one program"
    )
    merge.add_argument("--dir", required=True, help="Directory holding chunk_N.wav")
    merge.add_argument("--output", help="Final audio path")
    merge.add_argument("--bgm", help="Background music to loop under the speech")
    merge.add_argument(
        "--total",
        type=int,
        help="Expected number of chunks (default: highest chunk number found)",
    )
    merge.set_defaults(func=_merge)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_USAGE

    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
