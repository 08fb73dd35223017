"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Callable

import pytest

from dirwhisper.config import QueueConfig, Settings


def write_recording(directory: Path, name: str, mtime: float | None = None, content: bytes | None = None) -> Path:
    path = directory / name
    path.write_bytes(content if content is not None else f"RIFF {name}".encode())
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "recordings"
    directory.mkdir()
    return directory


@pytest.fixture
def queue_config(input_dir: Path) -> QueueConfig:
    return QueueConfig(input_dir=input_dir)


@pytest.fixture
def fake_cli(tmp_path: Path) -> Path:
    """An executable placeholder for the whisper binary; subprocess.run is patched in tests."""
    path = tmp_path / "bin" / "whisper"
    path.parent.mkdir()
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "scratch"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(input_dir: Path, fake_cli: Path, scratch_dir: Path) -> Settings:
    return Settings(
        input_dir=input_dir, whisper_cli=str(fake_cli), scratch_dir=scratch_dir, model="tiny", settle_time=0.0
    )


class FakeWhisper:
    """Stands in for subprocess.run and writes whisper-style JSON results."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.texts: dict[str, str] = {}
        self.raw: str | bytes | None = None
        self.write_output = True
        self.returncode = 0

    def __call__(self, cmd, *args, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        if self.write_output:
            audio = Path(cmd[1])
            out_dir = Path(cmd[cmd.index("--output_dir") + 1])
            result = out_dir / (audio.stem + ".json")
            if isinstance(self.raw, bytes):
                result.write_bytes(self.raw)
            elif self.raw is not None:
                result.write_text(self.raw)
            else:
                text = self.texts.get(audio.name, f" transcript of {audio.stem} ")
                result.write_text(json.dumps({"text": text, "segments": [], "language": "en"}))
        return subprocess.CompletedProcess(cmd, self.returncode)


@pytest.fixture
def fake_whisper(monkeypatch: pytest.MonkeyPatch) -> FakeWhisper:
    fake = FakeWhisper()
    monkeypatch.setattr("dirwhisper.transcribe.subprocess.run", fake)
    return fake


@pytest.fixture
def recording_factory(input_dir: Path) -> Callable[..., Path]:
    def factory(name: str, mtime: float | None = None, content: bytes | None = None) -> Path:
        return write_recording(input_dir, name, mtime, content)

    return factory
