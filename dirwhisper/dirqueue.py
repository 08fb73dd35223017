from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Iterator, List, Optional, Tuple

from .config import OUTPUT_DIR_NAME, STAGING_DIR_NAME, QueueConfig
from .errors import ClaimError, CompleteError, QueueError, ReconcileError
from .paths import ensure_directories, require_accessible_path

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recording:
    """A recording claimed from the input directory, held in staging."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name


def _unique_destination(directory: Path, name: str) -> Path:
    dest = directory / name
    if not dest.exists():
        return dest
    stem, suffix = Path(name).stem, Path(name).suffix
    counter = 1
    while True:
        candidate = directory / f"{stem}-{counter}{suffix}"
        if not candidate.exists():
            LOGGER.warning("%s already exists in %s; using %s", name, directory, candidate.name)
            return candidate
        counter += 1


class DirRecordingQueue:
    """Claim recordings one at a time from a directory that others write into.

    Recordings move input -> ``in_process/`` -> output by rename only. Anything
    left in ``in_process/`` is moved back to the input directory when the queue
    is created and again when it is closed, so an interrupted run never strands
    a recording. Use the queue as a context manager to guarantee the latter.
    """

    def __init__(self, config: QueueConfig) -> None:
        self.config = config
        self.input_dir = require_accessible_path(config.input_dir, "Input directory")
        self.staging_dir = self.input_dir / STAGING_DIR_NAME
        self.output_dir = (config.output_dir or self.input_dir / OUTPUT_DIR_NAME).expanduser()
        ensure_directories(self.staging_dir, self.output_dir)
        self.output_dir = self.output_dir.resolve()
        self.extension = config.extension
        self.min_age = config.min_age
        self._closed = False

        self.reconcile()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input_dir={str(self.input_dir)!r}, "
            f"staging_dir={str(self.staging_dir)!r}, output_dir={str(self.output_dir)!r})"
        )

    def __enter__(self) -> "DirRecordingQueue":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Move every staged recording back to the input directory."""
        if self._closed:
            return
        LOGGER.debug("Closing %r", self)
        self.reconcile()
        self._closed = True

    def reconcile(self) -> List[Path]:
        """Restore staged recordings to the input directory and return their new paths."""
        LOGGER.info("Emptying processing queue %s", self.staging_dir)
        restored: List[Path] = []
        try:
            entries = sorted(self.staging_dir.iterdir())
        except OSError as err:
            raise ReconcileError(
                f"Failed reading files in processing queue {self.staging_dir}: {err}", self.staging_dir
            ) from err

        for entry in entries:
            if not entry.is_file():
                LOGGER.debug("Leaving non-file entry %s in processing queue", entry)
                continue
            dest = _unique_destination(self.input_dir, entry.name)
            try:
                entry.rename(dest)
            except OSError as err:
                raise ReconcileError(f"Failed moving {entry.name} out of the processing queue: {err}", entry) from err
            LOGGER.info("Moved %s out of the processing queue", dest.name)
            restored.append(dest)
        return restored

    def _is_recording(self, path: Path) -> bool:
        return path.suffix.lower() == self.extension and path.is_file()

    def _scan(self) -> List[Tuple[int, str, Path, int]]:
        try:
            entries = list(self.input_dir.iterdir())
        except OSError as err:
            raise QueueError(f"Failed scanning input directory {self.input_dir}: {err}", self.input_dir) from err

        keyed = []
        for path in entries:
            try:
                if not self._is_recording(path):
                    continue
                stats = path.stat()
            except FileNotFoundError:
                # removed between listing and stat
                continue
            except OSError as err:
                raise QueueError(f"Failed reading {path.name} in {self.input_dir}: {err}", path) from err
            keyed.append((stats.st_mtime_ns, path.name, path, stats.st_size))

        keyed.sort(reverse=True)
        return keyed

    def _is_ready(self, mtime_ns: int, size: int, now: float) -> bool:
        # recordings may still be written; wait for content and a quiet period
        return size > 0 and now - mtime_ns / 1e9 >= self.min_age

    def pending(self) -> List[Path]:
        """Return unclaimed recordings, latest modification time first."""
        return [path for _, _, path, _ in self._scan()]

    def settling(self) -> List[Path]:
        """Return recordings that are not ready to be claimed yet."""
        now = time.time()
        return [path for mtime, _, path, size in self._scan() if not self._is_ready(mtime, size, now)]

    def try_claim(self, exclude: Collection[str] = ()) -> Optional[Recording]:
        """Move the latest ready recording into staging, or return None if there is none.

        Recordings named in ``exclude`` are passed over.
        """
        if self._closed:
            raise QueueError("Cannot claim from a closed queue", self.input_dir)

        now = time.time()
        latest = None
        for mtime, name, path, size in self._scan():
            if name in exclude:
                continue
            if not self._is_ready(mtime, size, now):
                LOGGER.debug("%s is still being written; not claiming it yet", name)
                continue
            latest = path
            break

        if latest is None:
            LOGGER.debug("No new recordings in %s", self.input_dir)
            return None

        dest = _unique_destination(self.staging_dir, latest.name)
        try:
            latest.rename(dest)
        except OSError as err:
            raise ClaimError(f"Failed moving {latest.name} to the processing queue: {err}", latest) from err

        LOGGER.info("Claimed %s", latest.name)
        return Recording(dest)

    def drain(self) -> Iterator[Recording]:
        """Yield claims until the input directory has no recordings left."""
        while True:
            recording = self.try_claim()
            if recording is None:
                return
            yield recording

    def complete(self, recording: Recording) -> Path:
        """Move a staged recording into the output directory and return its new path."""
        if recording.path.parent != self.staging_dir:
            raise CompleteError(f"{recording.name} is not in the processing queue {self.staging_dir}", recording.path)

        dest = _unique_destination(self.output_dir, recording.name)
        try:
            recording.path.rename(dest)
        except OSError as err:
            raise CompleteError(f"Failed moving {recording.name} to {self.output_dir}: {err}", recording.path) from err

        LOGGER.info("Moved %s to %s", recording.name, self.output_dir)
        return dest
