from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

LOGGER = logging.getLogger(__name__)


class RecordingHandler(FileSystemEventHandler):
    """Dispatch events for new, updated or moved-in recording files."""

    def __init__(self, extension: str, callback: Callable[[Path], None]) -> None:
        super().__init__()
        self._extension = extension.lower()
        self._callback = callback

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle_path(event, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle_path(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle_path(event, event.dest_path)

    def on_closed(self, event: FileSystemEvent) -> None:
        self._handle_path(event, event.src_path)

    def _handle_path(self, event: FileSystemEvent, raw_path) -> None:
        if event.is_directory:
            return
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path)
        if path.suffix.lower() != self._extension:
            return
        self._callback(path)


def start_watcher(directory: Path, extension: str, callback: Callable[[Path], None]) -> Observer:
    """Start a watchdog observer for the given directory."""
    observer = Observer()
    observer.schedule(RecordingHandler(extension, callback), str(directory), recursive=False)
    observer.start()
    LOGGER.info("Watching %s for new recordings", directory)
    return observer
