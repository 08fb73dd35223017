from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_WHISPER_CLI, TranscribeOptions
from .errors import MissingOutputError, OutputParseError, TranscriptionError
from .paths import remove_file_if_exists

LOGGER = logging.getLogger(__name__)

RESULT_FORMAT = "json"


class WhisperTranscriber:
    """Transcribe audio files using the whisper CLI."""

    def __init__(
        self,
        options: Optional[TranscribeOptions] = None,
        *,
        cli: str = DEFAULT_WHISPER_CLI,
        scratch_dir: Optional[Path] = None,
    ) -> None:
        self.options = options or TranscribeOptions()
        self.scratch_dir = Path(scratch_dir) if scratch_dir is not None else Path(tempfile.gettempdir())
        self._cli = self._resolve_cli_binary(cli)

    @staticmethod
    def _resolve_cli_binary(binary: str) -> str:
        path = shutil.which(binary)
        if path:
            return path
        candidate = Path(binary).expanduser()
        if candidate.exists():
            return str(candidate)
        raise FileNotFoundError(
            f"Unable to locate whisper CLI executable '{binary}'. "
            "Install it (`pip install openai-whisper`) or set DIRWHISPER_WHISPER_CLI."
        )

    def result_path(self, audio_path: Path) -> Path:
        """Where whisper writes the JSON result for ``audio_path``."""
        if not audio_path.name:
            raise TranscriptionError(f"Cannot derive a result file name from {audio_path}", audio_path)
        return self.scratch_dir / Path(audio_path.name).with_suffix(f".{RESULT_FORMAT}")

    def build_command(self, audio_path: Path) -> List[str]:
        cmd = [
            self._cli,
            str(audio_path),
            "--output_format",
            RESULT_FORMAT,
            "--output_dir",
            str(self.scratch_dir),
            "--model",
            self.options.model,
        ]

        if self.options.language:
            cmd.extend(["--language", self.options.language])

        if self.options.temperature is not None:
            cmd.extend(["--temperature", f"{self.options.temperature:.2f}"])

        return cmd

    def transcribe(self, audio_path: Path) -> str:
        """Run whisper on ``audio_path`` and return the trimmed transcript text."""
        result_path = self.result_path(audio_path)
        if remove_file_if_exists(result_path):
            LOGGER.debug("Removed stale result file %s", result_path)

        cmd = self.build_command(audio_path)
        LOGGER.info("Transcribing %s with whisper (%s)", audio_path.name, self.options.model)
        LOGGER.debug("Running %s", " ".join(cmd))

        try:
            # stdout is inherited so whisper's progress output reaches the operator
            result = subprocess.run(cmd)
        except OSError as err:
            raise TranscriptionError(f"Failed to start whisper for {audio_path.name}: {err}", audio_path) from err

        if result.returncode != 0:
            LOGGER.warning("whisper exited with code %s for %s", result.returncode, audio_path.name)

        return self._read_result(result_path, audio_path)

    @staticmethod
    def _read_result(result_path: Path, audio_path: Path) -> str:
        try:
            raw = result_path.read_bytes()
        except FileNotFoundError as err:
            raise MissingOutputError(
                f"whisper did not produce the expected output file {result_path} for {audio_path.name}",
                audio_path,
            ) from err
        except OSError as err:
            raise TranscriptionError(f"Failed reading whisper output {result_path}: {err}", audio_path) from err

        try:
            # json.loads also rejects undecodable bytes with a ValueError
            payload = json.loads(raw)
        except ValueError as err:
            raise OutputParseError(f"Malformed whisper output in {result_path}: {err}", audio_path) from err

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise OutputParseError(f"whisper output {result_path} has no 'text' string", audio_path)
        return text.strip()
