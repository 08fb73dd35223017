from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Set

from watchdog.observers import Observer

from .config import Settings, load_settings
from .dirqueue import DirRecordingQueue, Recording
from .errors import ClaimError, CompleteError, TranscriptionError
from .paths import ensure_directories
from .transcribe import WhisperTranscriber
from .watcher import start_watcher

LOGGER = logging.getLogger(__name__)


def _print_transcript(recording: Recording, text: str) -> None:
    print(f"{recording.path.stem}: {text}", flush=True)


class TranscriptionService:
    """Claim recordings from the input directory and transcribe them one by one."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transcriber: Optional[WhisperTranscriber] = None,
        *,
        keep_going: bool = False,
        emit: Callable[[Recording, str], None] = _print_transcript,
    ) -> None:
        self.settings = settings or load_settings()
        self.transcriber = transcriber or WhisperTranscriber(
            self.settings.transcribe_options(),
            cli=self.settings.whisper_cli,
            scratch_dir=self.settings.scratch_dir,
        )
        self.keep_going = keep_going
        self._emit = emit
        self._wakeup = threading.Event()
        self._stop = threading.Event()
        self._observer: Optional[Observer] = None
        self.completed: List[Path] = []
        self.failures: List[Path] = []

        ensure_directories(self.settings.scratch_dir)
        if self.settings.transcript_dir is not None:
            ensure_directories(self.settings.transcript_dir)

    def stop(self) -> None:
        """Ask a watching run to finish after the current recording."""
        self._stop.set()
        self._wakeup.set()

    def notify(self, path: Optional[Path] = None) -> None:
        if path is not None:
            LOGGER.debug("Change detected: %s", path)
        self._wakeup.set()

    def run(self, watch: bool = False) -> int:
        """Process recordings until the input directory is empty.

        With ``watch`` the service keeps waiting for new recordings until
        :meth:`stop` is called. Returns the number of transcribed recordings.
        """
        LOGGER.info("Starting transcription service")
        with DirRecordingQueue(self.settings.queue_config()) as queue:
            LOGGER.info("Input directory: %s", queue.input_dir)
            LOGGER.info("Output directory: %s", queue.output_dir)
            if watch:
                self._observer = start_watcher(queue.input_dir, queue.extension, self.notify)
            try:
                while not self._stop.is_set():
                    self._wakeup.clear()
                    self._process_backlog(queue)
                    if not watch:
                        unsettled = queue.settling()
                        if unsettled:
                            LOGGER.info("Left %d recording(s) that are still being written", len(unsettled))
                        break
                    LOGGER.debug("Queue empty; waiting for new recordings")
                    self._wakeup.wait(self._wait_timeout(queue))
            finally:
                self._stop_observer()
        LOGGER.info("Finished: %d transcribed, %d failed", len(self.completed), len(self.failures))
        return len(self.completed)

    def _stop_observer(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def _wait_timeout(self, queue: DirRecordingQueue) -> float:
        if queue.settling():
            return min(self.settings.poll_interval, max(self.settings.settle_time, 0.05))
        return self.settings.poll_interval

    def _record_failure(self, path: Path, message: str, *args) -> None:
        """Remember a failed recording; re-raise the active error unless keep_going is set."""
        self.failures.append(path)
        if not self.keep_going:
            raise
        LOGGER.exception(message, *args)

    def _process_backlog(self, queue: DirRecordingQueue) -> None:
        skipped: Set[str] = set()
        while not self._stop.is_set():
            try:
                recording = queue.try_claim(exclude=skipped)
            except ClaimError as err:
                path = err.path or queue.input_dir
                self._record_failure(path, "Failed to claim %s", path.name)
                skipped.add(path.name)
                continue
            if recording is None:
                return
            self._process(queue, recording)

    def _process(self, queue: DirRecordingQueue, recording: Recording) -> None:
        try:
            text = self.transcriber.transcribe(recording.path)
        except TranscriptionError:
            self._record_failure(recording.path, "Failed to transcribe %s", recording.name)
            return

        try:
            done = queue.complete(recording)
        except CompleteError:
            self._record_failure(recording.path, "Failed to complete %s", recording.name)
            return
        self.completed.append(done)

        try:
            self._write_transcript(recording, text)
        except OSError:
            self._record_failure(done, "Failed to write the transcript for %s", recording.name)
        self._emit(recording, text)

    def _write_transcript(self, recording: Recording, text: str) -> None:
        if self.settings.transcript_dir is None:
            return
        output_path = self.settings.transcript_dir / f"{recording.path.stem}.txt"
        LOGGER.info("Writing transcript for %s to %s", recording.name, output_path)
        output_path.write_text(text + "\n", encoding="utf-8")
