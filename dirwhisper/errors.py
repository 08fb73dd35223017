"""Exceptions raised by dirwhisper.

All project errors inherit from DirWhisperError. Queue errors are also
OSErrors so callers that only care about filesystem failures can catch those.
"""

from __future__ import annotations

from pathlib import Path


class DirWhisperError(Exception):
    """Base exception for all dirwhisper errors."""


class ConfigError(DirWhisperError, ValueError):
    """Invalid configuration value."""


class QueueError(DirWhisperError, OSError):
    """A filesystem operation of the recording queue failed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class ClaimError(QueueError):
    """Moving a recording into the staging directory failed."""


class CompleteError(QueueError):
    """Moving a staged recording into the output directory failed."""


class ReconcileError(QueueError):
    """Moving staged recordings back into the input directory failed."""


class TranscriptionError(DirWhisperError):
    """Transcribing a recording failed."""

    def __init__(self, message: str, audio_path: Path | None = None) -> None:
        super().__init__(message)
        self.audio_path = audio_path


class MissingOutputError(TranscriptionError):
    """The whisper CLI did not produce the expected result file."""


class OutputParseError(TranscriptionError):
    """The whisper result file could not be parsed."""
