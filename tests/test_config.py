"""Tests for dirwhisper.config module."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from dirwhisper.config import QueueConfig, Settings, TranscribeOptions, load_settings, normalize_extension
from dirwhisper.errors import ConfigError


class TestLoadSettings:
    def test_defaults_with_empty_environment(self) -> None:
        settings = load_settings({})

        assert settings.input_dir == Path(".")
        assert settings.output_dir is None
        assert settings.extension == ".wav"
        assert settings.whisper_cli == "whisper"
        assert settings.model == "large"
        assert settings.language is None
        assert settings.temperature is None
        assert settings.scratch_dir == Path(tempfile.gettempdir())
        assert settings.transcript_dir is None
        assert settings.poll_interval == 5.0
        assert settings.settle_time == 2.0

    def test_reads_environment(self, tmp_path: Path) -> None:
        environ = {
            "DIRWHISPER_INPUT_DIR": str(tmp_path / "in"),
            "DIRWHISPER_OUTPUT_DIR": str(tmp_path / "out"),
            "DIRWHISPER_EXTENSION": ".flac",
            "DIRWHISPER_WHISPER_CLI": "/opt/whisper",
            "DIRWHISPER_MODEL": "medium",
            "DIRWHISPER_LANGUAGE": "de",
            "DIRWHISPER_TEMPERATURE": "0.4",
            "DIRWHISPER_SCRATCH_DIR": str(tmp_path / "scratch"),
            "DIRWHISPER_TRANSCRIPT_DIR": str(tmp_path / "text"),
            "DIRWHISPER_POLL_INTERVAL": "1.5",
            "DIRWHISPER_SETTLE_TIME": "0.5",
        }

        settings = load_settings(environ)

        assert settings.input_dir == tmp_path / "in"
        assert settings.output_dir == tmp_path / "out"
        assert settings.extension == ".flac"
        assert settings.whisper_cli == "/opt/whisper"
        assert settings.model == "medium"
        assert settings.language == "de"
        assert settings.temperature == 0.4
        assert settings.scratch_dir == tmp_path / "scratch"
        assert settings.transcript_dir == tmp_path / "text"
        assert settings.poll_interval == 1.5
        assert settings.settle_time == 0.5

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DIRWHISPER_MODEL", "tiny")

        assert load_settings().model == "tiny"

    def test_bad_number_raises(self) -> None:
        with pytest.raises(ConfigError, match="DIRWHISPER_TEMPERATURE"):
            load_settings({"DIRWHISPER_TEMPERATURE": "warm"})

    def test_out_of_range_temperature_raises(self) -> None:
        with pytest.raises(ConfigError):
            load_settings({"DIRWHISPER_TEMPERATURE": "2.5"})

    def test_non_positive_poll_interval_raises(self) -> None:
        with pytest.raises(ConfigError):
            Settings(poll_interval=0)

    def test_negative_settle_time_raises(self) -> None:
        with pytest.raises(ConfigError):
            Settings(settle_time=-1)

    def test_negative_min_age_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            QueueConfig(input_dir=tmp_path, min_age=-0.5)


class TestDerivedConfig:
    def test_queue_config(self, tmp_path: Path) -> None:
        settings = Settings(input_dir=tmp_path, output_dir=tmp_path / "done", extension="WAV", settle_time=1.5)

        assert settings.queue_config() == QueueConfig(
            input_dir=tmp_path, output_dir=tmp_path / "done", extension=".wav", min_age=1.5
        )

    def test_transcribe_options(self) -> None:
        settings = Settings(model="small", language="fr", temperature=1.0)

        assert settings.transcribe_options() == TranscribeOptions(model="small", language="fr", temperature=1.0)


class TestNormalizeExtension:
    @pytest.mark.parametrize("raw", ["wav", ".wav", " .WAV "])
    def test_normalizes(self, raw: str) -> None:
        assert normalize_extension(raw) == ".wav"

    @pytest.mark.parametrize("raw", ["", ".", "  "])
    def test_empty_raises(self, raw: str) -> None:
        with pytest.raises(ConfigError):
            normalize_extension(raw)
