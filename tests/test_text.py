import io
from pathlib import Path

from podcaster import text


def test_read_transcript_normalizes_newlines(tmp_path: Path) -> None:
    path = tmp_path / "t.txt"
    path.write_bytes("\ufeffa\r\nb\rc\n".encode("utf-8"))
    assert text.read_transcript(path) == "a\nb\nc\n"


def test_read_stdin_transcript() -> None:
    assert text.read_stdin_transcript(io.StringIO("x\r\ny")) == "x\ny"


def test_save_stdin_transcript(tmp_path: Path) -> None:
    path = text.save_stdin_transcript("hello", tmp_path / "in")
    assert path.parent == tmp_path / "in"
    assert path.name.startswith("stdin_transcript_")
    assert path.read_text(encoding="utf-8") == "hello"


def test_processed_path_for() -> None:
    assert text.processed_path_for(Path("/data/talk.txt")) == Path(
        "/data/talk.processed.txt"
    )
