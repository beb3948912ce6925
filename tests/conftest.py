import subprocess
import wave
from pathlib import Path
from typing import Callable, List

import pytest

from podcaster import merge

from helpers import read_frames


class FakeEngine:
    """Stands in for ffmpeg/ffprobe: concat joins WAV frames, mix touches the output."""

    def __init__(self, duration: float = 10.0) -> None:
        self.calls: List[List[str]] = []
        self.duration = duration
        self.fail_on: Callable[[List[str]], bool] = lambda cmd: False

    def __call__(self, cmd, cwd=None):
        self.calls.append(list(cmd))
        if self.fail_on(cmd):
            raise merge.AssemblyError(f"{cmd[0]} exited with status 1")
        if cmd[0] == "ffprobe":
            return subprocess.CompletedProcess(cmd, 0, stdout=f"{self.duration}\n", stderr="")
        if "concat" in cmd:
            concat_path = Path(cmd[cmd.index("-i") + 1])
            base = Path(cwd) if cwd is not None else concat_path.parent
            sources = [
                base / line.split("'")[1]
                for line in concat_path.read_text(encoding="utf-8").splitlines()
                if line.strip()
            ]
            with wave.open(str(sources[0]), "rb") as first:
                params = first.getparams()
            with wave.open(cmd[-1], "wb") as out:
                out.setparams(params)
                for source in sources:
                    out.writeframes(read_frames(source))
        else:
            Path(cmd[-1]).write_bytes(b"fake-aac")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def commands(self, program: str) -> List[List[str]]:
        return [cmd for cmd in self.calls if cmd[0] == program]


@pytest.fixture
def fake_engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngine:
    engine = FakeEngine()
    monkeypatch.setattr(merge, "_run_engine", engine)
    monkeypatch.setattr(merge, "_require_ffmpeg", lambda: None)
    monkeypatch.setattr(merge, "_require_ffprobe", lambda: None)
    return engine
