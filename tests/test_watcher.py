"""Tests for dirwhisper.watcher module."""

from __future__ import annotations

from pathlib import Path

from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from dirwhisper.watcher import RecordingHandler


class TestRecordingHandler:
    def _handler(self) -> tuple[RecordingHandler, list[Path]]:
        seen: list[Path] = []
        return RecordingHandler(".wav", seen.append), seen

    def test_created_recording_dispatches(self, tmp_path: Path) -> None:
        handler, seen = self._handler()

        handler.dispatch(FileCreatedEvent(str(tmp_path / "call.wav")))

        assert seen == [tmp_path / "call.wav"]

    def test_modified_recording_dispatches(self, tmp_path: Path) -> None:
        handler, seen = self._handler()

        handler.dispatch(FileModifiedEvent(str(tmp_path / "CALL.WAV")))

        assert seen == [tmp_path / "CALL.WAV"]

    def test_moved_in_recording_uses_destination(self, tmp_path: Path) -> None:
        handler, seen = self._handler()

        handler.dispatch(FileMovedEvent(str(tmp_path / "call.part"), str(tmp_path / "call.wav")))

        assert seen == [tmp_path / "call.wav"]

    def test_other_extensions_ignored(self, tmp_path: Path) -> None:
        handler, seen = self._handler()

        handler.dispatch(FileCreatedEvent(str(tmp_path / "note.txt")))

        assert seen == []

    def test_directories_ignored(self, tmp_path: Path) -> None:
        handler, seen = self._handler()

        handler.dispatch(DirCreatedEvent(str(tmp_path / "folder.wav")))

        assert seen == []
