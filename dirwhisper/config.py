from __future__ import annotations

from dataclasses import dataclass, replace
import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

STAGING_DIR_NAME = "in_process"
OUTPUT_DIR_NAME = "processed"
DEFAULT_EXTENSION = ".wav"
DEFAULT_WHISPER_CLI = "whisper"
DEFAULT_MODEL = "large"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_SETTLE_TIME = 2.0
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


def _env_path(environ: Mapping[str, str], key: str, default: Path) -> Path:
    raw = environ.get(key)
    return Path(raw).expanduser() if raw else default


def _optional_env_path(environ: Mapping[str, str], key: str) -> Path | None:
    raw = environ.get(key)
    if raw:
        return Path(raw).expanduser()
    return None


def _env_float(environ: Mapping[str, str], key: str, default: float | None) -> float | None:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as err:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from err


def normalize_extension(value: str) -> str:
    """Return ``value`` as a lower-case suffix with a leading dot."""
    normalized = value.strip().lower()
    if not normalized or normalized == ".":
        raise ConfigError("Audio extension must not be empty.")
    if not normalized.startswith("."):
        normalized = "." + normalized
    return normalized


def validate_temperature(value: float | None) -> float | None:
    if value is None:
        return None
    if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        raise ConfigError(
            f"Temperature needs to be between {MIN_TEMPERATURE:g} and {MAX_TEMPERATURE:g}, got {value}"
        )
    return value


@dataclass(frozen=True)
class QueueConfig:
    """Directory layout of the recording queue.

    ``output_dir`` defaults to ``{input_dir}/processed``; the staging directory
    always lives inside the input directory so claims are a same-volume rename.
    Recordings modified less than ``min_age`` seconds ago are not claimed yet.
    """

    input_dir: Path
    output_dir: Optional[Path] = None
    extension: str = DEFAULT_EXTENSION
    min_age: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_dir", Path(self.input_dir))
        if self.output_dir is not None:
            object.__setattr__(self, "output_dir", Path(self.output_dir))
        object.__setattr__(self, "extension", normalize_extension(self.extension))
        if self.min_age < 0:
            raise ConfigError(f"Minimum recording age must not be negative, got {self.min_age}")


@dataclass(frozen=True)
class TranscribeOptions:
    """Parameters passed to the whisper CLI for every recording."""

    model: str = DEFAULT_MODEL
    language: Optional[str] = None
    temperature: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.model or not self.model.strip():
            raise ConfigError("Whisper model identifier must not be empty.")
        validate_temperature(self.temperature)

    def with_language(self, language: str) -> "TranscribeOptions":
        return replace(self, language=language)

    def with_temperature(self, temperature: float) -> "TranscribeOptions":
        return replace(self, temperature=temperature)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the transcription service."""

    input_dir: Path = Path(".")
    output_dir: Optional[Path] = None
    extension: str = DEFAULT_EXTENSION
    whisper_cli: str = DEFAULT_WHISPER_CLI
    model: str = DEFAULT_MODEL
    language: Optional[str] = None
    temperature: Optional[float] = None
    scratch_dir: Path = Path(tempfile.gettempdir())
    transcript_dir: Optional[Path] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    settle_time: float = DEFAULT_SETTLE_TIME

    def __post_init__(self) -> None:
        validate_temperature(self.temperature)
        if self.poll_interval <= 0:
            raise ConfigError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.settle_time < 0:
            raise ConfigError(f"Settle time must not be negative, got {self.settle_time}")

    def queue_config(self) -> QueueConfig:
        return QueueConfig(
            input_dir=self.input_dir,
            output_dir=self.output_dir,
            extension=self.extension,
            min_age=self.settle_time,
        )

    def transcribe_options(self) -> TranscribeOptions:
        return TranscribeOptions(model=self.model, language=self.language, temperature=self.temperature)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``DIRWHISPER_*`` environment variables."""
    environ = os.environ if environ is None else environ
    return Settings(
        input_dir=_env_path(environ, "DIRWHISPER_INPUT_DIR", Path(".")),
        output_dir=_optional_env_path(environ, "DIRWHISPER_OUTPUT_DIR"),
        extension=environ.get("DIRWHISPER_EXTENSION") or DEFAULT_EXTENSION,
        whisper_cli=environ.get("DIRWHISPER_WHISPER_CLI") or DEFAULT_WHISPER_CLI,
        model=environ.get("DIRWHISPER_MODEL") or DEFAULT_MODEL,
        language=environ.get("DIRWHISPER_LANGUAGE") or None,
        temperature=_env_float(environ, "DIRWHISPER_TEMPERATURE", None),
        scratch_dir=_env_path(environ, "DIRWHISPER_SCRATCH_DIR", Path(tempfile.gettempdir())),
        transcript_dir=_optional_env_path(environ, "DIRWHISPER_TRANSCRIPT_DIR"),
        poll_interval=_env_float(environ, "DIRWHISPER_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        settle_time=_env_float(environ, "DIRWHISPER_SETTLE_TIME", DEFAULT_SETTLE_TIME),
    )
