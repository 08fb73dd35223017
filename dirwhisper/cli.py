from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .config import Settings, load_settings, normalize_extension
from .dirqueue import DirRecordingQueue
from .errors import DirWhisperError, ReconcileError
from .service import TranscriptionService

LOGGER = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def build_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    overrides = {}
    if args.input_dir:
        overrides["input_dir"] = Path(args.input_dir).expanduser()
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir).expanduser()
    if args.extension:
        overrides["extension"] = normalize_extension(args.extension)
    if args.whisper_cli:
        overrides["whisper_cli"] = args.whisper_cli
    if args.model:
        overrides["model"] = args.model
    if args.language:
        overrides["language"] = args.language
    if args.temperature is not None:
        overrides["temperature"] = args.temperature
    if args.scratch_dir:
        overrides["scratch_dir"] = Path(args.scratch_dir).expanduser()
    if args.transcript_dir:
        overrides["transcript_dir"] = Path(args.transcript_dir).expanduser()
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval
    if args.settle_time is not None:
        overrides["settle_time"] = args.settle_time

    if overrides:
        settings = replace(settings, **overrides)
    return settings


def _format_size(size: int) -> str:
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}GB"


def _list_recordings(settings: Settings) -> int:
    # creating the queue also reconciles leftovers from an interrupted run
    with DirRecordingQueue(settings.queue_config()) as queue:
        pending = queue.pending()

    if not pending:
        LOGGER.info("No recordings found in %s", queue.input_dir)
        return 0

    print(f"{'Modified':19}  {'Size':>8}  File")
    for path in pending:
        try:
            stats = path.stat()
        except FileNotFoundError:
            continue
        when = datetime.fromtimestamp(stats.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        print(f"{when:19}  {_format_size(stats.st_size):>8}  {path.name}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirwhisper",
        description="Transcribe audio recordings dropped into a directory with the whisper CLI.",
    )
    parser.add_argument(
        "input_dir",
        nargs="?",
        help="Directory to take recordings from. Defaults to DIRWHISPER_INPUT_DIR or the current directory.",
    )
    parser.add_argument(
        "--output-dir",
        help="Where finished recordings are moved. Defaults to '<input_dir>/processed'.",
    )
    parser.add_argument("--extension", help="Recording file extension (default '.wav').")
    parser.add_argument("--whisper-cli", help="whisper executable (default 'whisper' on PATH).")
    parser.add_argument("--model", help="Whisper model identifier (default from env or 'large').")
    parser.add_argument("--language", help="Language hint for Whisper (e.g. 'en', 'de'). Auto-detect if omitted.")
    parser.add_argument("--temperature", type=float, help="Sampling temperature between 0 and 2.")
    parser.add_argument("--scratch-dir", help="Directory whisper writes its JSON results to.")
    parser.add_argument("--transcript-dir", help="Also save each transcript as '<name>.txt' in this directory.")
    parser.add_argument("--watch", action="store_true", help="Keep running and wait for new recordings.")
    parser.add_argument("--poll-interval", type=float, help="Seconds between rescans while watching (default 5).")
    parser.add_argument(
        "--settle-time",
        type=float,
        help="Seconds a recording must stay unmodified before it is claimed (default 2).",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Log failed recordings and continue instead of stopping at the first error.",
    )
    parser.add_argument("--list", action="store_true", help="List pending recordings and exit.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING...). Default: INFO.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        settings = build_settings(args)
    except DirWhisperError as err:
        LOGGER.error("%s", err)
        return 1

    try:
        if args.list:
            return _list_recordings(settings)

        service = TranscriptionService(settings, keep_going=args.keep_going)
        signal.signal(signal.SIGTERM, lambda signum, frame: service.stop())
        if args.watch:
            LOGGER.info("Watching for new recordings. Press Ctrl+C to exit.")
        service.run(watch=args.watch)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted by user.")
        return 130
    except ReconcileError as err:
        LOGGER.critical("Could not restore the processing queue: %s", err)
        return 1
    except (DirWhisperError, OSError) as err:
        LOGGER.error("%s", err)
        return 1

    if service.failures:
        LOGGER.error("%d recording(s) failed", len(service.failures))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
